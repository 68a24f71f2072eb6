"""Artifact configuration materialization.

An artifact handled by a builder plugin arrives with its configuration as
an opaque YAML payload. The first time a plugin needs it, the payload is
decoded into the backend's model, validated and stored on the artifact.
Later calls find the stored model and return without decoding again.
"""

import logging

import yaml
from pydantic import ValidationError

from imagedispatch.errors import ConfigDecodeError, ConfigValidationError
from imagedispatch.schema import ARTIFACT_VARIANTS, Artifact, ArtifactConfig
from imagedispatch.types import BuilderKind

logger = logging.getLogger(__name__)


def decode_payload(
    image_name: str,
    contents: bytes | None,
    model: type[ArtifactConfig],
) -> ArtifactConfig:
    """Strictly decode a YAML payload into a backend configuration model.

    Args:
        image_name: Artifact the payload belongs to, for error messages.
        contents: Raw YAML bytes.
        model: Backend configuration model to validate against.

    Returns:
        Validated configuration.

    Raises:
        ConfigDecodeError: If the payload is missing, not YAML, empty,
            not a mapping, or rejected by the model.
    """
    if contents is None:
        raise ConfigDecodeError(image_name, "no plugin configuration")

    try:
        data = yaml.safe_load(contents)
    except yaml.YAMLError as e:
        raise ConfigDecodeError(image_name, f"invalid YAML: {e}") from e

    if data is None:
        raise ConfigDecodeError(image_name, "configuration is empty")
    if not isinstance(data, dict):
        raise ConfigDecodeError(
            image_name, f"expected a mapping, got {type(data).__name__}"
        )

    try:
        # Payload keys are the camelCase aliases only.
        return model.model_validate(data, by_name=False)
    except ValidationError as e:
        raise ConfigDecodeError(image_name, str(e)) from e


def check_required(image_name: str, config: ArtifactConfig) -> None:
    """Raise ConfigValidationError if a required field is empty."""
    for field in config.required_fields:
        if not getattr(config, field):
            raise ConfigValidationError(image_name, field.replace("_", " "))


def materialize(artifact: Artifact, kind: BuilderKind) -> ArtifactConfig:
    """Decode and attach an artifact's configuration for a backend.

    Idempotent: if the configuration for ``kind`` is already set, it is
    returned as is.

    Args:
        artifact: Artifact to materialize; mutated in place.
        kind: Backend whose configuration is expected.

    Returns:
        The materialized configuration.

    Raises:
        ConfigDecodeError: If the payload cannot be decoded.
        ConfigValidationError: If a required field is empty, or the
            artifact is already configured for another backend.
    """
    attr, model = ARTIFACT_VARIANTS[kind]
    existing = getattr(artifact.artifact_type, attr)
    if existing is not None:
        return existing

    others = [k for k in artifact.artifact_type.populated() if k != kind.value]
    if others:
        raise ConfigValidationError(
            artifact.image_name,
            f"{kind.value} configuration",
            f"{artifact.image_name} is already configured as a {others[0]} artifact",
        )

    plugin = artifact.builder_plugin
    if plugin is None:
        raise ConfigDecodeError(artifact.image_name, "no plugin configuration")
    if plugin.name != kind.value:
        raise ConfigDecodeError(
            artifact.image_name,
            f"plugin configuration is for {plugin.name}, expected {kind.value}",
        )

    config = decode_payload(artifact.image_name, plugin.contents, model)
    check_required(artifact.image_name, config)

    setattr(artifact.artifact_type, attr, config)
    logger.debug("Materialized %s configuration for %s", kind.value, artifact.image_name)
    return config


__all__ = ["check_required", "decode_payload", "materialize"]
