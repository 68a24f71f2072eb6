"""Local image builder.

This module handles:
- Building Bazel image tarballs and loading them into the docker daemon
- Building Dockerfile artifacts with the docker CLI
- Tagging and, outside local clusters, pushing built images
- Streaming command output to the caller's log sink

Artifacts are built one after another; the first failure aborts the batch.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from typing import TYPE_CHECKING, TextIO

from imagedispatch.errors import CollaboratorError
from imagedispatch.local.kubecontext import is_local_cluster
from imagedispatch.types import BuildResult, TagAssignments

if TYPE_CHECKING:
    from imagedispatch.config import Settings
    from imagedispatch.schema import Artifact, BazelArtifact, DockerArtifact, LocalBuild

logger = logging.getLogger(__name__)


class LocalBuildError(CollaboratorError):
    """Raised when a local build step fails."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        code: str = "local_build_error",
    ) -> None:
        super().__init__(message, code=code)
        self.exit_code = exit_code


def tarball_path(build_target: str) -> str:
    """Return the bazel-bin relative path of a target's image tarball.

    Raises:
        LocalBuildError: If the target does not produce a .tar file.
    """
    if not build_target.endswith(".tar"):
        raise LocalBuildError(
            f"the bazel build target {build_target} should end with .tar",
            code="invalid_target",
        )
    return build_target.removeprefix("//").replace(":", "/").lstrip("/")


def loaded_image(output: str) -> str:
    """Extract the image reference from `docker load` output.

    Raises:
        LocalBuildError: If no loaded image is reported.
    """
    for line in reversed(output.splitlines()):
        for prefix in ("Loaded image: ", "Loaded image ID: "):
            if line.startswith(prefix):
                return line[len(prefix) :].strip()
    raise LocalBuildError("docker load did not report a loaded image")


def compose_docker_build(
    docker_binary: str,
    workspace: str,
    config: DockerArtifact,
    tag: str,
) -> list[str]:
    """Compose a `docker build` command for a Dockerfile artifact."""
    cmd = [
        docker_binary,
        "build",
        workspace,
        "--file",
        os.path.join(workspace, config.dockerfile),
        "--tag",
        tag,
    ]
    for key, value in config.build_args.items():
        cmd.extend(["--build-arg", key if value is None else f"{key}={value}"])
    for image in config.cache_from:
        cmd.extend(["--cache-from", image])
    if config.target:
        cmd.extend(["--target", config.target])
    if config.network_mode:
        cmd.extend(["--network", config.network_mode])
    return cmd


class LocalBuilder:
    """Builds images on the local machine.

    Attributes:
        config: Local build options.
        kube_context: Cluster context images are built for.
        skip_tests: Recorded for interface parity with other builders. Bazel
            image targets and docker builds run no tests here, so it does not
            change the commands run.
        push: Whether built images are pushed.
    """

    def __init__(
        self,
        config: LocalBuild,
        kube_context: str,
        skip_tests: bool,
        settings: Settings,
    ) -> None:
        self.config = config
        self.kube_context = kube_context
        self.skip_tests = skip_tests
        self.settings = settings
        if config.push is None:
            self.push = not is_local_cluster(kube_context)
        else:
            self.push = config.push
        logger.debug(
            "Local builder for %s (push=%s, skip_tests=%s, buildkit=%s)",
            kube_context,
            self.push,
            skip_tests,
            config.use_buildkit,
        )

    def build(
        self,
        out: TextIO,
        tags: TagAssignments,
        artifacts: list[Artifact],
        timeout: float | None = None,
    ) -> list[BuildResult]:
        """Build each artifact and tag it as assigned.

        Args:
            out: Sink for build output.
            tags: Tag to build each image as.
            artifacts: Materialized artifacts.
            timeout: Seconds each command may take.

        Returns:
            One BuildResult per artifact, in order.

        Raises:
            LocalBuildError: If a tag is missing or a command fails.
        """
        results: list[BuildResult] = []
        for artifact in artifacts:
            tag = tags.get(artifact.image_name)
            if not tag:
                raise LocalBuildError(
                    f"no tag assigned for {artifact.image_name}", code="missing_tag"
                )

            out.write(f"Building [{artifact.image_name}]...\n")
            bazel = artifact.artifact_type.bazel_artifact
            docker = artifact.artifact_type.docker_artifact
            if bazel is not None:
                self._build_bazel(out, artifact.workspace, bazel, tag, timeout)
            elif docker is not None:
                self._build_docker(out, artifact.workspace, docker, tag, timeout)
            else:
                raise LocalBuildError(
                    f"{artifact.image_name} has no build configuration",
                    code="unconfigured",
                )

            if self.push:
                self._run([self.settings.docker_binary, "push", tag], out, timeout=timeout)

            results.append(BuildResult(image_name=artifact.image_name, tag=tag))
        return results

    def _build_bazel(
        self,
        out: TextIO,
        workspace: str,
        config: BazelArtifact,
        tag: str,
        timeout: float | None,
    ) -> None:
        bazel = self.settings.bazel_binary
        docker = self.settings.docker_binary
        tarball = tarball_path(config.build_target)

        self._run(
            [bazel, "build", config.build_target, *config.build_args],
            out,
            cwd=workspace,
            timeout=timeout,
        )
        bazel_bin = self._run(
            [bazel, "info", "bazel-bin", *config.build_args],
            None,
            cwd=workspace,
            timeout=timeout,
        ).strip()
        output = self._run(
            [docker, "load", "--input", os.path.join(bazel_bin, tarball)],
            out,
            timeout=timeout,
        )
        self._run([docker, "tag", loaded_image(output), tag], out, timeout=timeout)

    def _build_docker(
        self,
        out: TextIO,
        workspace: str,
        config: DockerArtifact,
        tag: str,
        timeout: float | None,
    ) -> None:
        env = None
        if self.config.use_buildkit:
            env = dict(os.environ)
            env["DOCKER_BUILDKIT"] = "1"
        cmd = compose_docker_build(self.settings.docker_binary, workspace, config, tag)
        self._run(cmd, out, timeout=timeout, env=env)

    def _run(
        self,
        cmd: list[str],
        out: TextIO | None,
        cwd: str | None = None,
        timeout: float | None = None,
        env: dict[str, str] | None = None,
    ) -> str:
        """Run a command, copy its output to ``out`` and return it."""
        cmd_str = shlex.join(cmd)
        logger.info("Executing: %s", cmd_str)
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=timeout,
                env=env,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise LocalBuildError(
                f"{cmd_str} timed out after {timeout} seconds",
                exit_code=-1,
                code="build_timeout",
            ) from e
        except OSError as e:
            raise LocalBuildError(
                f"Failed to execute {cmd_str}: {e}", code="execution_error"
            ) from e

        if out is not None and result.stdout:
            out.write(result.stdout)
        if result.returncode != 0:
            raise LocalBuildError(
                f"{cmd_str} failed with exit code {result.returncode}",
                exit_code=result.returncode,
            )
        return result.stdout


def new_local_builder(
    config: LocalBuild,
    kube_context: str,
    skip_tests: bool,
    settings: Settings,
) -> LocalBuilder:
    """Create a local builder; the default builder factory of the bazel plugin."""
    return LocalBuilder(config, kube_context, skip_tests, settings)


__all__ = [
    "LocalBuildError",
    "LocalBuilder",
    "compose_docker_build",
    "loaded_image",
    "new_local_builder",
    "tarball_path",
]
