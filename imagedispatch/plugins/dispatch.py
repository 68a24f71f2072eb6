"""Routing builds to the builder bound to an execution environment.

Each builder plugin owns a Dispatcher that maps environment names to
routes. Adding a backend environment is a ``register`` call; names that
were never registered are rejected before any artifact is touched.
"""

import logging
from collections.abc import Callable
from typing import TextIO

from imagedispatch.errors import UnsupportedEnvironmentError
from imagedispatch.schema import Artifact, ExecutionEnvironment
from imagedispatch.types import BuildResult, TagAssignments

logger = logging.getLogger(__name__)

Route = Callable[
    [ExecutionEnvironment, TextIO, TagAssignments, list[Artifact], float | None],
    list[BuildResult],
]


class Dispatcher:
    """Registry of environment name -> build route for one builder."""

    def __init__(self, builder_name: str) -> None:
        self.builder_name = builder_name
        self._routes: dict[str, Route] = {}

    def register(self, environment: str, route: Route) -> None:
        """Bind a route to an environment name, replacing any previous one."""
        self._routes[environment] = route

    def supported(self) -> list[str]:
        """Return the registered environment names, sorted."""
        return sorted(self._routes)

    def dispatch(
        self,
        env: ExecutionEnvironment,
        out: TextIO,
        tags: TagAssignments,
        artifacts: list[Artifact],
        timeout: float | None = None,
    ) -> list[BuildResult]:
        """Build artifacts with the route bound to ``env.name``.

        Args:
            env: Execution environment selecting the route.
            out: Sink for build logs.
            tags: Tag to build each image as.
            artifacts: Artifacts to build.
            timeout: Seconds each external build step may take.

        Returns:
            One BuildResult per artifact.

        Raises:
            UnsupportedEnvironmentError: If no route is bound to the name.
        """
        route = self._routes.get(env.name)
        if route is None:
            raise UnsupportedEnvironmentError(env.name, self.builder_name)

        logger.info(
            "Building %d artifact(s) with %s in %s",
            len(artifacts),
            self.builder_name,
            env.name,
        )
        return route(env, out, tags, artifacts, timeout)


__all__ = ["Dispatcher", "Route"]
