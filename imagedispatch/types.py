"""Shared type definitions for imagedispatch.

This module contains enums, dataclasses, and type aliases shared across
subpackages to avoid circular imports.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol, TextIO

if TYPE_CHECKING:
    from imagedispatch.schema import Artifact

# Label key identifying the backend that produced an image
LABEL_BUILDER = "builder"

# Image name -> fully qualified tag to build it as
TagAssignments = dict[str, str]


class BuilderKind(str, Enum):
    """Backend an artifact configuration belongs to."""

    BAZEL = "bazel"
    DOCKER = "docker"


class EnvironmentName(str, Enum):
    """Known execution environment names."""

    LOCAL = "local"
    GOOGLE_CLOUD_BUILD = "googleCloudBuild"


@dataclass(frozen=True)
class BuildResult:
    """Image produced for one artifact.

    Attributes:
        image_name: Name of the artifact that was built.
        tag: Fully qualified image reference that was produced.
    """

    image_name: str
    tag: str


class Builder(Protocol):
    """A concrete backend able to build a batch of artifacts."""

    def build(
        self,
        out: TextIO,
        tags: TagAssignments,
        artifacts: list[Artifact],
        timeout: float | None = None,
    ) -> list[BuildResult]: ...


__all__ = [
    "LABEL_BUILDER",
    "BuildResult",
    "Builder",
    "BuilderKind",
    "EnvironmentName",
    "TagAssignments",
]
