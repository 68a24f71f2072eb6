"""Execution environment property adaptation.

An execution environment carries a generic property bag. Each backend
reinterprets it as its own options model by cloning it through JSON:
keys are matched by name, keys the model does not know are ignored and
keys that are absent take the model's defaults.
"""

import json
import logging
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from imagedispatch.errors import EnvironmentAdaptError
from imagedispatch.schema import ExecutionEnvironment

logger = logging.getLogger(__name__)

ConfigT = TypeVar("ConfigT", bound=BaseModel)


def adapt(env: ExecutionEnvironment, config_cls: type[ConfigT]) -> ConfigT:
    """Convert an environment's properties into a backend options model.

    Args:
        env: Execution environment; not modified.
        config_cls: Options model of the target backend.

    Returns:
        Options instance. Empty or missing properties give the defaults.

    Raises:
        EnvironmentAdaptError: If the properties cannot be serialized or
            do not fit the options model.
    """
    if not env.properties:
        logger.info(
            "Execution environment %s has no properties, using default %s options",
            env.name,
            config_cls.__name__,
        )
        return config_cls()

    try:
        encoded = json.dumps(env.properties)
    except (TypeError, ValueError) as e:
        raise EnvironmentAdaptError(env.name, f"encoding properties: {e}") from e

    try:
        return config_cls.model_validate_json(encoded)
    except ValidationError as e:
        raise EnvironmentAdaptError(
            env.name, f"properties do not fit {config_cls.__name__}: {e}"
        ) from e


__all__ = ["adapt"]
