"""Google Cloud Build plugin.

Covers the parts of Cloud Build that run on the caller's side: image
labels and Dockerfile dependencies for watchers. Job submission is not
handled here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from imagedispatch.config import Settings, get_settings
from imagedispatch.deps.docker import docker_dependencies
from imagedispatch.plugins.dependencies import DependencyEnumerator, resolve_dependencies
from imagedispatch.plugins.environment import adapt
from imagedispatch.plugins.materialize import materialize
from imagedispatch.schema import GoogleCloudBuild
from imagedispatch.types import LABEL_BUILDER, BuilderKind

if TYPE_CHECKING:
    from imagedispatch.schema import Artifact, ExecutionEnvironment

logger = logging.getLogger(__name__)


class CloudBuildPlugin:
    """Builds artifacts with Google Cloud Build."""

    name = "google-cloud-build"

    def __init__(
        self,
        config: GoogleCloudBuild,
        skip_tests: bool = False,
        settings: Settings | None = None,
        enumerator: DependencyEnumerator | None = None,
    ) -> None:
        self.config = config
        self.skip_tests = skip_tests
        self.settings = settings or get_settings()
        self.enumerator = enumerator or docker_dependencies

    @classmethod
    def from_environment(
        cls,
        env: ExecutionEnvironment,
        skip_tests: bool = False,
        settings: Settings | None = None,
    ) -> CloudBuildPlugin:
        """Create a plugin from an execution environment's properties."""
        return cls(adapt(env, GoogleCloudBuild), skip_tests=skip_tests, settings=settings)

    def labels(self) -> dict[str, str]:
        """Labels identifying images built by this plugin."""
        return {LABEL_BUILDER: self.name}

    def dependencies_for_artifact(
        self, artifact: Artifact, timeout: float | None = None
    ) -> list[str]:
        """Return the Dockerfile dependencies of an artifact as absolute paths."""
        config = artifact.artifact_type.docker_artifact
        if config is None and artifact.builder_plugin is not None:
            config = materialize(artifact, BuilderKind.DOCKER)
        if timeout is None:
            timeout = self.settings.dependency_timeout
        return resolve_dependencies(artifact, config, self.enumerator, timeout=timeout)


__all__ = ["CloudBuildPlugin"]
