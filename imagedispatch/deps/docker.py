"""Dockerfile dependency enumeration.

Reads a Dockerfile and lists the workspace files its COPY and ADD
instructions pull into the build context, plus the Dockerfile itself.
"""

from __future__ import annotations

import glob
import json
import logging
import os
import shlex
from typing import TYPE_CHECKING

from imagedispatch.errors import CollaboratorError

if TYPE_CHECKING:
    from imagedispatch.schema import DockerArtifact

logger = logging.getLogger(__name__)

COPY_INSTRUCTIONS = {"COPY", "ADD"}
REMOTE_PREFIXES = ("http://", "https://", "git@")


class DockerfileError(CollaboratorError):
    """Raised when a Dockerfile cannot be read or understood."""

    def __init__(self, message: str, code: str = "dockerfile_error") -> None:
        super().__init__(message, code=code)


def read_instructions(text: str) -> list[tuple[str, str]]:
    """Split Dockerfile text into (INSTRUCTION, arguments) pairs.

    Comments and blank lines are dropped and backslash continuations are
    joined.
    """
    instructions: list[tuple[str, str]] = []
    pending = ""
    for raw in text.splitlines():
        line = raw.strip()
        if not pending and (not line or line.startswith("#")):
            continue
        if line.endswith("\\"):
            pending += line[:-1] + " "
            continue
        line = pending + line
        pending = ""
        keyword, _, rest = line.partition(" ")
        instructions.append((keyword.upper(), rest.strip()))
    if pending.strip():
        keyword, _, rest = pending.strip().partition(" ")
        instructions.append((keyword.upper(), rest.strip()))
    return instructions


def copy_sources(arguments: str) -> list[str]:
    """Return the local sources of a COPY/ADD instruction.

    Copies from other build stages and remote URLs have no local source
    and yield an empty list.
    """
    if arguments.startswith("["):
        try:
            args = json.loads(arguments)
        except json.JSONDecodeError as e:
            raise DockerfileError(f"invalid JSON form: {arguments}") from e
    else:
        args = shlex.split(arguments)

    flags = [a for a in args if a.startswith("--")]
    if any(f.startswith("--from") for f in flags):
        return []
    paths = [a for a in args if not a.startswith("--")]
    if len(paths) < 2:
        raise DockerfileError(f"COPY/ADD needs a source and a destination: {arguments}")
    return [p for p in paths[:-1] if not p.startswith(REMOTE_PREFIXES)]


def expand_source(workspace: str, source: str) -> list[str]:
    """Expand a COPY source to workspace-relative file paths.

    Raises:
        DockerfileError: If the source matches nothing.
    """
    matches = glob.glob(os.path.join(workspace, source))
    if not matches:
        raise DockerfileError(
            f"file pattern {source} must match at least one file",
            code="no_match",
        )

    files: list[str] = []
    for match in matches:
        if os.path.isdir(match):
            for dirpath, _, filenames in os.walk(match):
                files.extend(
                    os.path.relpath(os.path.join(dirpath, f), workspace)
                    for f in filenames
                )
        else:
            files.append(os.path.relpath(match, workspace))
    return files


def docker_dependencies(
    workspace: str,
    config: DockerArtifact,
    timeout: float | None = None,
) -> list[str]:
    """List the files a Dockerfile build reads from the workspace.

    Args:
        workspace: Artifact workspace (the build context).
        config: Docker configuration of the artifact.
        timeout: Unused; reading a Dockerfile does not block.

    Returns:
        Sorted paths relative to ``workspace``, including the Dockerfile.

    Raises:
        DockerfileError: If the Dockerfile cannot be read or a source
            matches no file.
    """
    dockerfile = os.path.join(workspace, config.dockerfile)
    try:
        with open(dockerfile, encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise DockerfileError(
            f"reading Dockerfile {dockerfile}: {e}", code="read_error"
        ) from e

    deps = {os.path.relpath(dockerfile, workspace)}
    for keyword, arguments in read_instructions(text):
        if keyword not in COPY_INSTRUCTIONS:
            continue
        for source in copy_sources(arguments):
            deps.update(expand_source(workspace, source))

    logger.debug("Found %d Dockerfile dependencies in %s", len(deps), workspace)
    return sorted(deps)


__all__ = [
    "DockerfileError",
    "copy_sources",
    "docker_dependencies",
    "expand_source",
    "read_instructions",
]
