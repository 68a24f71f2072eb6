"""Configuration settings for imagedispatch.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the IMGDISPATCH_
    prefix. CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="IMGDISPATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Build behaviour
    default_environment: str = Field(
        default="local",
        description="Execution environment used when a build file names none",
    )
    skip_tests: bool = Field(
        default=False,
        description="Skip image tests after building",
    )
    kube_context: str | None = Field(
        default=None,
        description="Cluster context override (queries kubectl if not set)",
    )

    # External tools
    bazel_binary: str = Field(default="bazel", description="Bazel executable")
    docker_binary: str = Field(default="docker", description="Docker executable")
    kubectl_binary: str = Field(default="kubectl", description="kubectl executable")

    # Timeouts (in seconds)
    dependency_timeout: int = Field(
        default=120,
        ge=1,
        description="Timeout for dependency enumeration",
    )
    build_timeout: int = Field(
        default=3600,
        ge=60,
        description="Timeout for a single build command",
    )


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
