"""Dependency enumerators.

Each enumerator takes a workspace, a backend configuration and a timeout,
and returns the files the build reads, relative to the workspace.
"""

from imagedispatch.deps.bazel import BazelQueryError, bazel_dependencies
from imagedispatch.deps.docker import DockerfileError, docker_dependencies

__all__ = [
    "BazelQueryError",
    "DockerfileError",
    "bazel_dependencies",
    "docker_dependencies",
]
