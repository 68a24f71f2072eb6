"""Build file loading.

A build file lists artifacts and the execution environment to build them
in. Artifacts handled by a builder plugin declare their configuration
under ``plugin.properties``; it is stored as an opaque YAML payload and
only decoded when the plugin first needs it.

Example::

    executionEnvironment:
      name: local
      properties:
        push: false
    artifacts:
      - imageName: app
        workspace: ./app
        plugin:
          name: bazel
          properties:
            buildTarget: //:app.tar
"""

import json
from pathlib import Path
from typing import Any

import yaml

from imagedispatch.schema import BuildFile


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the content is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping, got {type(data).__name__}")
    return data


def load_json(path: Path) -> dict[str, Any]:
    """Load a JSON file and return its contents as a dict.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the content is not an object.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def normalize_artifact(artifact: dict[str, Any]) -> dict[str, Any]:
    """Bring a raw artifact mapping into the shape of the Artifact model.

    Inline backend sections (``bazel:``, ``docker:``) move under
    ``artifactType`` and plugin properties become an opaque payload.

    Args:
        artifact: Raw artifact mapping from a build file.

    Returns:
        A normalized copy.
    """
    result = dict(artifact)

    inline = {k: result.pop(k) for k in ("bazel", "docker") if k in result}
    if inline:
        result["artifactType"] = {**(result.get("artifactType") or {}), **inline}

    plugin = result.get("plugin")
    if isinstance(plugin, dict) and "properties" in plugin:
        encoded = dict(plugin)
        properties = encoded.pop("properties")
        encoded["contents"] = yaml.safe_dump(properties, sort_keys=False).encode(
            "utf-8"
        )
        result["plugin"] = encoded
    return result


def parse_build_data(data: dict[str, Any], base_dir: Path | None = None) -> BuildFile:
    """Parse and validate build file data.

    Args:
        data: Mapping loaded from a build file.
        base_dir: Directory relative workspaces are resolved against.

    Returns:
        Validated BuildFile.

    Raises:
        pydantic.ValidationError: If data does not match the schema.
    """
    raw = dict(data)
    raw["artifacts"] = [normalize_artifact(a) for a in raw.get("artifacts") or []]
    build = BuildFile.model_validate(raw)

    if base_dir is not None:
        for artifact in build.artifacts:
            artifact.workspace = str(base_dir / artifact.workspace)
    return build


def load_build_file(path: Path) -> BuildFile:
    """Load and validate a build file (YAML or JSON).

    File format is determined by extension (.yaml, .yml for YAML,
    .json for JSON). Workspaces are resolved relative to the file.

    Raises:
        ValueError: If file extension is not supported.
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If data does not match the schema.
    """
    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = load_yaml(path)
    elif suffix == ".json":
        data = load_json(path)
    else:
        raise ValueError(
            f"Unsupported file extension '{suffix}'. Use .yaml, .yml, or .json"
        )
    return parse_build_data(data, base_dir=path.parent)


__all__ = [
    "load_build_file",
    "load_json",
    "load_yaml",
    "normalize_artifact",
    "parse_build_data",
]
