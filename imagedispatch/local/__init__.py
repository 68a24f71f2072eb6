"""Local build environment: cluster context discovery and the local builder."""

from imagedispatch.local.builder import LocalBuilder, LocalBuildError, new_local_builder
from imagedispatch.local.kubecontext import ClusterContextError, current_context

__all__ = [
    "ClusterContextError",
    "LocalBuildError",
    "LocalBuilder",
    "current_context",
    "new_local_builder",
]
