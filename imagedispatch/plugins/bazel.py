"""Bazel builder plugin.

Artifacts built with Bazel carry their configuration as a plugin payload.
The plugin materializes it, answers dependency queries for watchers, and
dispatches builds to the builder bound to the execution environment.
Only the local environment is bound.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import partial
from typing import TYPE_CHECKING, TextIO

from imagedispatch.config import Settings, get_settings
from imagedispatch.deps.bazel import bazel_dependencies
from imagedispatch.errors import DelegatedBuilderError, DispatchError
from imagedispatch.local.builder import new_local_builder
from imagedispatch.local.kubecontext import current_context
from imagedispatch.plugins.dependencies import DependencyEnumerator, resolve_dependencies
from imagedispatch.plugins.dispatch import Dispatcher
from imagedispatch.plugins.environment import adapt
from imagedispatch.plugins.materialize import materialize
from imagedispatch.schema import LocalBuild
from imagedispatch.types import (
    LABEL_BUILDER,
    BuilderKind,
    BuildResult,
    EnvironmentName,
    TagAssignments,
)

if TYPE_CHECKING:
    from imagedispatch.schema import Artifact, ExecutionEnvironment
    from imagedispatch.types import Builder

logger = logging.getLogger(__name__)

BuilderFactory = Callable[[LocalBuild, str, bool], "Builder"]
ContextProvider = Callable[..., str]


class BazelPlugin:
    """Builds artifacts with Bazel.

    Args:
        settings: Application settings; loaded from the environment if omitted.
        enumerator: Dependency enumerator; defaults to a bazel query.
        context_provider: Returns the current cluster context; called with
            the build timeout.
        builder_factory: Creates the local builder.
    """

    name = BuilderKind.BAZEL.value

    def __init__(
        self,
        settings: Settings | None = None,
        enumerator: DependencyEnumerator | None = None,
        context_provider: ContextProvider | None = None,
        builder_factory: BuilderFactory | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.enumerator = enumerator or partial(
            bazel_dependencies, bazel_binary=self.settings.bazel_binary
        )
        self.context_provider = context_provider or partial(
            current_context, self.settings
        )
        self.builder_factory = builder_factory or partial(
            new_local_builder, settings=self.settings
        )
        self.env: ExecutionEnvironment | None = None
        self.skip_tests = False

        self.dispatcher = Dispatcher(self.name)
        self.dispatcher.register(EnvironmentName.LOCAL.value, self._local)

    def init(self, env: ExecutionEnvironment, skip_tests: bool = False) -> None:
        """Store the execution environment builds will run in."""
        self.env = env
        self.skip_tests = skip_tests

    def labels(self) -> dict[str, str]:
        """Labels identifying images built by this plugin."""
        return {LABEL_BUILDER: self.name}

    def dependencies_for_artifact(
        self, artifact: Artifact, timeout: float | None = None
    ) -> list[str]:
        """Return the absolute paths of the files a Bazel artifact depends on."""
        config = materialize(artifact, BuilderKind.BAZEL)
        if timeout is None:
            timeout = self.settings.dependency_timeout
        return resolve_dependencies(artifact, config, self.enumerator, timeout=timeout)

    def build(
        self,
        out: TextIO,
        tags: TagAssignments,
        artifacts: list[Artifact],
        timeout: float | None = None,
    ) -> list[BuildResult]:
        """Build artifacts in the execution environment given to init().

        Raises:
            UnsupportedEnvironmentError: If the environment is not bound.
            DispatchError: If init() was not called, or any stage fails.
        """
        if self.env is None:
            raise DispatchError("bazel builder is not initialized")
        if timeout is None:
            timeout = self.settings.build_timeout
        return self.dispatcher.dispatch(self.env, out, tags, artifacts, timeout)

    def _local(
        self,
        env: ExecutionEnvironment,
        out: TextIO,
        tags: TagAssignments,
        artifacts: list[Artifact],
        timeout: float | None,
    ) -> list[BuildResult]:
        local = adapt(env, LocalBuild)

        # All configurations must decode before anything is built.
        for artifact in artifacts:
            try:
                materialize(artifact, BuilderKind.BAZEL)
            except DispatchError as e:
                logger.error("Setting artifact %s failed: %s", artifact.image_name, e)
                raise

        try:
            kube_context = self.context_provider(timeout=timeout)
        except DispatchError:
            raise
        except Exception as e:
            raise DelegatedBuilderError(
                env.name, "getting current cluster context", str(e)
            ) from e

        try:
            builder = self.builder_factory(local, kube_context, self.skip_tests)
        except DispatchError:
            raise
        except Exception as e:
            raise DelegatedBuilderError(env.name, "getting local builder", str(e)) from e

        try:
            return builder.build(out, tags, artifacts, timeout=timeout)
        except DispatchError:
            raise
        except Exception as e:
            raise DelegatedBuilderError(env.name, "building artifacts", str(e)) from e


__all__ = ["BazelPlugin", "BuilderFactory", "ContextProvider"]
