"""Tests for local/kubecontext.py module."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from imagedispatch.config import Settings
from imagedispatch.local.kubecontext import (
    ClusterContextError,
    current_context,
    is_local_cluster,
)


class TestIsLocalCluster:
    """Tests for is_local_cluster function."""

    @pytest.mark.parametrize(
        "context", ["minikube", "docker-desktop", "docker-for-desktop", "kind-a", "k3d-b"]
    )
    def test_local(self, context):
        """Known local clusters are recognized."""
        assert is_local_cluster(context) is True

    def test_remote(self):
        """Anything else is remote."""
        assert is_local_cluster("gke_project_zone_cluster") is False


class TestCurrentContext:
    """Tests for current_context function."""

    def test_override(self):
        """A configured context should be used without running kubectl."""
        settings = Settings(_env_file=None, kube_context="staging")
        with patch("imagedispatch.local.kubecontext.subprocess.run") as run:
            assert current_context(settings) == "staging"
        run.assert_not_called()

    def test_queries_kubectl(self):
        """Should return kubectl's current context."""
        settings = Settings(_env_file=None, kube_context=None)
        result = MagicMock(stdout="minikube\n")
        with patch(
            "imagedispatch.local.kubecontext.subprocess.run", return_value=result
        ) as run:
            assert current_context(settings) == "minikube"
        assert run.call_args.args[0] == ["kubectl", "config", "current-context"]

    def test_timeout_passed_to_kubectl(self):
        """The caller's timeout should bound the kubectl call."""
        settings = Settings(_env_file=None, kube_context=None)
        with patch(
            "imagedispatch.local.kubecontext.subprocess.run",
            return_value=MagicMock(stdout="minikube\n"),
        ) as run:
            current_context(settings, timeout=4)
        assert run.call_args.kwargs["timeout"] == 4

    def test_empty_context(self):
        """An empty answer is an error."""
        settings = Settings(_env_file=None, kube_context=None)
        with patch(
            "imagedispatch.local.kubecontext.subprocess.run",
            return_value=MagicMock(stdout="\n"),
        ):
            with pytest.raises(ClusterContextError, match="no current cluster context"):
                current_context(settings)

    def test_kubectl_failure(self):
        """kubectl errors should be reported."""
        settings = Settings(_env_file=None, kube_context=None)
        error = subprocess.CalledProcessError(1, "kubectl", stderr="no config")
        with patch("imagedispatch.local.kubecontext.subprocess.run", side_effect=error):
            with pytest.raises(ClusterContextError, match="no config"):
                current_context(settings)
