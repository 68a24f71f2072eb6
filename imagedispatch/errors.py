"""Error definitions for imagedispatch.

Every error carries a stable ``code`` for programmatic handling, plus the
image name or environment name it concerns. Nothing in this package
retries or swallows these errors; they are raised to the caller with the
underlying cause chained.
"""

# Error code constants
CONFIG_DECODE = "config_decode"
CONFIG_VALIDATION = "config_validation"
ENVIRONMENT_ADAPT = "environment_adapt"
DEPENDENCY_RESOLUTION = "dependency_resolution"
UNSUPPORTED_ENVIRONMENT = "unsupported_environment"
DELEGATED_BUILDER = "delegated_builder"


class DispatchError(Exception):
    """Base error for build dispatch operations."""

    def __init__(self, message: str, code: str = "dispatch_error") -> None:
        super().__init__(message)
        self.code = code


class ConfigDecodeError(DispatchError):
    """Raised when an artifact's plugin payload cannot be decoded."""

    def __init__(self, image_name: str, reason: str) -> None:
        super().__init__(
            f"decoding configuration for {image_name}: {reason}",
            code=CONFIG_DECODE,
        )
        self.image_name = image_name
        self.reason = reason


class ConfigValidationError(DispatchError):
    """Raised when a decoded configuration lacks a required field."""

    def __init__(self, image_name: str, field: str, message: str | None = None) -> None:
        super().__init__(
            message or f"{image_name} must have an associated {field}",
            code=CONFIG_VALIDATION,
        )
        self.image_name = image_name
        self.field = field


class EnvironmentAdaptError(DispatchError):
    """Raised when environment properties do not fit the backend's options."""

    def __init__(self, environment: str, reason: str) -> None:
        super().__init__(
            f"converting execution environment {environment}: {reason}",
            code=ENVIRONMENT_ADAPT,
        )
        self.environment = environment


class DependencyResolutionError(DispatchError):
    """Raised when the dependencies of an artifact cannot be enumerated."""

    def __init__(self, image_name: str, reason: str) -> None:
        super().__init__(
            f"getting dependencies for {image_name}: {reason}",
            code=DEPENDENCY_RESOLUTION,
        )
        self.image_name = image_name


class UnsupportedEnvironmentError(DispatchError):
    """Raised when no builder is bound to the requested environment."""

    def __init__(self, environment: str, builder: str) -> None:
        super().__init__(
            f"{environment} is not a supported environment for builder {builder}",
            code=UNSUPPORTED_ENVIRONMENT,
        )
        self.environment = environment
        self.builder = builder


class DelegatedBuilderError(DispatchError):
    """Raised when the concrete backend builder fails."""

    def __init__(self, environment: str, stage: str, reason: str) -> None:
        super().__init__(f"{stage} in {environment}: {reason}", code=DELEGATED_BUILDER)
        self.environment = environment
        self.stage = stage


class CollaboratorError(Exception):
    """Base error for external tools this package drives."""

    def __init__(self, message: str, code: str = "collaborator_error") -> None:
        super().__init__(message)
        self.code = code


__all__ = [
    "CONFIG_DECODE",
    "CONFIG_VALIDATION",
    "DELEGATED_BUILDER",
    "DEPENDENCY_RESOLUTION",
    "ENVIRONMENT_ADAPT",
    "UNSUPPORTED_ENVIRONMENT",
    "CollaboratorError",
    "ConfigDecodeError",
    "ConfigValidationError",
    "DelegatedBuilderError",
    "DependencyResolutionError",
    "DispatchError",
    "EnvironmentAdaptError",
    "UnsupportedEnvironmentError",
]
