"""Cluster context discovery."""

from __future__ import annotations

import logging
import subprocess
from typing import TYPE_CHECKING

from imagedispatch.errors import CollaboratorError

if TYPE_CHECKING:
    from imagedispatch.config import Settings

logger = logging.getLogger(__name__)

LOCAL_CLUSTERS = {"minikube", "docker-desktop", "docker-for-desktop"}
LOCAL_CLUSTER_PREFIXES = ("kind-", "k3d-")


class ClusterContextError(CollaboratorError):
    """Raised when the current cluster context cannot be determined."""

    def __init__(self, message: str, code: str = "cluster_context_error") -> None:
        super().__init__(message, code=code)


def is_local_cluster(kube_context: str) -> bool:
    """Return True if images built for this context need not be pushed."""
    return kube_context in LOCAL_CLUSTERS or kube_context.startswith(
        LOCAL_CLUSTER_PREFIXES
    )


def current_context(settings: Settings, timeout: float | None = 30) -> str:
    """Return the cluster context builds target.

    Uses the configured override if set, otherwise asks kubectl.

    Raises:
        ClusterContextError: If kubectl fails or reports no context.
    """
    if settings.kube_context:
        return settings.kube_context

    try:
        result = subprocess.run(
            [settings.kubectl_binary, "config", "current-context"],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True,
        )
    except subprocess.TimeoutExpired as e:
        raise ClusterContextError(
            f"kubectl timed out after {timeout}s", code="timeout"
        ) from e
    except subprocess.CalledProcessError as e:
        raise ClusterContextError(
            f"kubectl config current-context failed: {e.stderr}"
        ) from e
    except OSError as e:
        raise ClusterContextError(
            f"Failed to run kubectl: {e}", code="execution_error"
        ) from e

    context = result.stdout.strip()
    if not context:
        raise ClusterContextError("no current cluster context is set")
    logger.debug("Current cluster context: %s", context)
    return context


__all__ = ["ClusterContextError", "current_context", "is_local_cluster"]
