"""Dependency resolution for file watching.

Backends enumerate the files an artifact depends on through an external
enumerator, which may answer with paths relative to the workspace or
absolute ones. Everything handed back to callers is absolute.
"""

import logging
import os
from collections.abc import Iterable
from typing import Any, Protocol

from imagedispatch.errors import ConfigValidationError, DependencyResolutionError
from imagedispatch.schema import Artifact

logger = logging.getLogger(__name__)


class DependencyEnumerator(Protocol):
    """Lists the files an artifact's build reads."""

    def __call__(
        self, workspace: str, config: Any, timeout: float | None = None
    ) -> list[str]: ...


def absolute_paths(workspace: str, paths: Iterable[str]) -> list[str]:
    """Anchor paths at a workspace.

    Relative paths are joined onto the absolute workspace, absolute paths
    are kept. All results are normalized.

    Args:
        workspace: Workspace directory; may itself be relative.
        paths: Paths returned by an enumerator.

    Returns:
        Absolute, normalized paths in input order.
    """
    root = os.path.abspath(workspace)
    return [os.path.normpath(os.path.join(root, p)) for p in paths]


def resolve_dependencies(
    artifact: Artifact,
    config: Any,
    enumerator: DependencyEnumerator,
    timeout: float | None = None,
) -> list[str]:
    """Enumerate an artifact's dependencies as absolute paths.

    Args:
        artifact: A materialized artifact.
        config: The artifact's backend configuration.
        enumerator: Backend-specific dependency enumerator.
        timeout: Seconds the enumerator may run before it is aborted.

    Returns:
        Absolute dependency paths.

    Raises:
        ConfigValidationError: If the artifact was not materialized.
        DependencyResolutionError: If the enumerator fails.
    """
    if config is None:
        raise ConfigValidationError(
            artifact.image_name,
            "configuration",
            f"{artifact.image_name} has no materialized configuration",
        )

    try:
        paths = enumerator(artifact.workspace, config, timeout=timeout)
    except Exception as e:
        raise DependencyResolutionError(artifact.image_name, str(e)) from e

    deps = absolute_paths(artifact.workspace, paths)
    logger.debug("Resolved %d dependencies for %s", len(deps), artifact.image_name)
    return deps


__all__ = ["DependencyEnumerator", "absolute_paths", "resolve_dependencies"]
