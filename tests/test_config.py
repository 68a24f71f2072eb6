"""Tests for configuration module."""

import json
import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from imagedispatch.config import Settings, get_settings, print_settings_json


class TestSettings:
    """Test Settings class."""

    def test_default_settings(self) -> None:
        """Settings should have sensible defaults."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.log_level == "INFO"
        assert settings.default_environment == "local"
        assert settings.skip_tests is False
        assert settings.kube_context is None
        assert settings.bazel_binary == "bazel"
        assert settings.docker_binary == "docker"
        assert settings.kubectl_binary == "kubectl"
        assert settings.dependency_timeout >= 1
        assert settings.build_timeout >= 60

    def test_settings_from_env(self) -> None:
        """Settings should be loadable from environment variables."""
        with patch.dict(
            os.environ,
            {
                "IMGDISPATCH_LOG_LEVEL": "DEBUG",
                "IMGDISPATCH_SKIP_TESTS": "true",
                "IMGDISPATCH_KUBE_CONTEXT": "minikube",
                "IMGDISPATCH_DEPENDENCY_TIMEOUT": "30",
            },
        ):
            settings = Settings()
            assert settings.log_level == "DEBUG"
            assert settings.skip_tests is True
            assert settings.kube_context == "minikube"
            assert settings.dependency_timeout == 30

    def test_invalid_log_level_rejected(self) -> None:
        """Unknown log levels should fail validation."""
        with pytest.raises(ValidationError):
            Settings(log_level="LOUD")

    def test_build_timeout_lower_bound(self) -> None:
        """Build timeouts below a minute should be rejected."""
        with pytest.raises(ValidationError):
            Settings(build_timeout=5)


class TestGetSettings:
    """Test get_settings function."""

    def test_get_settings_returns_settings(self) -> None:
        """get_settings should return a Settings instance."""
        settings = get_settings()
        assert isinstance(settings, Settings)


class TestPrintSettingsJson:
    """Test print_settings_json function."""

    def test_print_settings_json(self) -> None:
        """print_settings_json should return valid JSON."""
        settings = Settings()
        parsed = json.loads(print_settings_json(settings))

        assert "default_environment" in parsed
        assert "kube_context" in parsed
        assert "build_timeout" in parsed

    def test_print_settings_json_default(self) -> None:
        """print_settings_json without args should use default settings."""
        parsed = json.loads(print_settings_json())
        assert "log_level" in parsed
