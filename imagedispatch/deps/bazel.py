"""Bazel dependency enumeration.

Runs a `bazel query` for the source files and BUILD files a target
depends on, and converts the resulting labels to paths relative to the
artifact's workspace.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

from imagedispatch.errors import CollaboratorError

if TYPE_CHECKING:
    from imagedispatch.schema import BazelArtifact

logger = logging.getLogger(__name__)

WORKSPACE_FILE = "WORKSPACE"


class BazelQueryError(CollaboratorError):
    """Raised when a bazel query fails."""

    def __init__(self, message: str, code: str = "bazel_query_error") -> None:
        super().__init__(message, code=code)


def compose_query(target: str) -> str:
    """Compose the query expression listing a target's source dependencies."""
    return f"kind('source file', deps('{target}')) union buildfiles('{target}')"


def label_to_path(label: str) -> str:
    """Convert a Bazel label to a path relative to the Bazel workspace.

    Args:
        label: Label such as '//pkg/sub:file.go'.

    Returns:
        Path such as 'pkg/sub/file.go'.
    """
    return label.removeprefix("//").replace(":", "/").lstrip("/")


def find_workspace(workspace: str) -> Path:
    """Find the Bazel workspace root enclosing a directory.

    Raises:
        BazelQueryError: If no WORKSPACE file is found.
    """
    start = Path(workspace).resolve()
    for candidate in (start, *start.parents):
        if (candidate / WORKSPACE_FILE).is_file():
            return candidate
    raise BazelQueryError(
        f"no {WORKSPACE_FILE} file found in {start} or its parents",
        code="workspace_not_found",
    )


def bazel_dependencies(
    workspace: str,
    config: BazelArtifact,
    timeout: float | None = None,
    bazel_binary: str = "bazel",
) -> list[str]:
    """List the files a Bazel artifact depends on.

    Args:
        workspace: Artifact workspace.
        config: Bazel configuration of the artifact.
        timeout: Seconds before the query is killed (None = no timeout).
        bazel_binary: Bazel executable.

    Returns:
        Paths relative to ``workspace``, ending with the WORKSPACE file.

    Raises:
        BazelQueryError: If the workspace root cannot be found or the
            query fails.
    """
    top_level = find_workspace(workspace)
    root = Path(workspace).resolve()

    cmd = [
        bazel_binary,
        "query",
        compose_query(config.build_target),
        "--noimplicit_deps",
        "--order_output=no",
    ]
    logger.debug("Querying bazel dependencies: %s", cmd)

    try:
        result = subprocess.run(
            cmd,
            cwd=root,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True,
        )
    except subprocess.TimeoutExpired as e:
        raise BazelQueryError(
            f"bazel query timed out after {timeout}s", code="timeout"
        ) from e
    except subprocess.CalledProcessError as e:
        raise BazelQueryError(
            f"bazel query failed: {e.stderr}", code="query_failed"
        ) from e
    except OSError as e:
        raise BazelQueryError(
            f"Failed to run bazel query: {e}", code="execution_error"
        ) from e

    deps: list[str] = []
    for line in result.stdout.splitlines():
        label = line.strip()
        # External repositories live outside the workspace
        if not label or label.startswith("@") or label.startswith("//external"):
            continue
        deps.append(os.path.relpath(top_level / label_to_path(label), root))

    deps.append(os.path.relpath(top_level / WORKSPACE_FILE, root))
    return deps


__all__ = [
    "BazelQueryError",
    "bazel_dependencies",
    "compose_query",
    "find_workspace",
    "label_to_path",
]
