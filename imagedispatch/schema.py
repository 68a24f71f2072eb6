"""Pydantic models for artifacts, backend configuration and environments.

Artifact configuration variants are strict (unknown fields are rejected)
because a misspelled key would otherwise be silently ignored. Environment
option models are lenient: an execution environment's property bag is
shared by several backends, so keys that do not apply are ignored.
"""

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from imagedispatch.types import BuilderKind

STRICT = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)
LENIENT = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)


class BuilderPlugin(BaseModel):
    """Opaque, backend-tagged configuration stored until first use.

    Attributes:
        name: Backend the payload is meant for (e.g. 'bazel').
        contents: Raw YAML payload.
    """

    model_config = STRICT

    name: str = Field(min_length=1, description="Backend tag")
    contents: bytes | None = Field(default=None, description="Raw YAML payload")


class BazelArtifact(BaseModel):
    """Configuration for an artifact built by Bazel.

    Attributes:
        build_target: Bazel target producing the image tarball.
        build_args: Extra arguments passed to `bazel build`.
    """

    model_config = STRICT

    required_fields: ClassVar[tuple[str, ...]] = ("build_target",)

    build_target: str = Field(default="", description="Bazel build target")
    build_args: list[str] = Field(default_factory=list)


class DockerArtifact(BaseModel):
    """Configuration for an artifact built from a Dockerfile.

    Attributes:
        dockerfile: Dockerfile path, relative to the workspace.
        target: Optional multi-stage build target.
        build_args: Build arguments; a None value is taken from the environment.
        cache_from: Images to use as cache sources.
        network_mode: Networking mode for RUN instructions.
    """

    model_config = STRICT

    required_fields: ClassVar[tuple[str, ...]] = ("dockerfile",)

    dockerfile: str = Field(default="Dockerfile")
    target: str | None = Field(default=None)
    build_args: dict[str, str | None] = Field(default_factory=dict)
    cache_from: list[str] = Field(default_factory=list)
    network_mode: str | None = Field(default=None)


ArtifactConfig = BazelArtifact | DockerArtifact

# Backend -> (ArtifactType attribute, model)
ARTIFACT_VARIANTS: dict[BuilderKind, tuple[str, type[ArtifactConfig]]] = {
    BuilderKind.BAZEL: ("bazel_artifact", BazelArtifact),
    BuilderKind.DOCKER: ("docker_artifact", DockerArtifact),
}


class ArtifactType(BaseModel):
    """Tagged union of backend configurations; at most one is set."""

    model_config = STRICT

    bazel_artifact: BazelArtifact | None = Field(default=None, alias="bazel")
    docker_artifact: DockerArtifact | None = Field(default=None, alias="docker")

    @model_validator(mode="after")
    def check_single_variant(self) -> "ArtifactType":
        """Validate that no more than one variant is populated."""
        populated = self.populated()
        if len(populated) > 1:
            raise ValueError(
                f"only one artifact type may be set, got {', '.join(populated)}"
            )
        return self

    def populated(self) -> list[str]:
        """Return the backend names of populated variants."""
        return [
            kind.value
            for kind, (attr, _) in ARTIFACT_VARIANTS.items()
            if getattr(self, attr) is not None
        ]


class Artifact(BaseModel):
    """One image to build.

    Attributes:
        image_name: Image name, unique within a build invocation.
        workspace: Source root for the build context and dependencies.
        artifact_type: Materialized backend configuration.
        builder_plugin: Undecoded configuration, present before materialization.
    """

    model_config = STRICT

    image_name: str = Field(min_length=1)
    workspace: str = Field(default=".")
    artifact_type: ArtifactType = Field(default_factory=ArtifactType)
    builder_plugin: BuilderPlugin | None = Field(default=None, alias="plugin")


class ExecutionEnvironment(BaseModel):
    """Target context a build runs in.

    Attributes:
        name: Environment identifier (e.g. 'local').
        properties: Loosely typed options, reinterpreted per backend.
    """

    model_config = STRICT

    name: str = Field(min_length=1)
    properties: dict[str, Any] | None = Field(default=None)


class LocalBuild(BaseModel):
    """Options for building on the local machine.

    Attributes:
        push: Push images after building; None picks a default from the
            cluster context.
        use_docker_cli: Shell out to the docker CLI.
        use_buildkit: Enable BuildKit for docker builds.
    """

    model_config = LENIENT

    push: bool | None = Field(default=None)
    use_docker_cli: bool = Field(default=False, alias="useDockerCLI")
    use_buildkit: bool = Field(default=False)


class GoogleCloudBuild(BaseModel):
    """Options for building with Google Cloud Build."""

    model_config = LENIENT

    project_id: str | None = Field(default=None)
    disk_size_gb: int | None = Field(default=None)
    machine_type: str | None = Field(default=None)
    timeout: str | None = Field(default=None)
    docker_image: str = Field(default="gcr.io/cloud-builders/docker")


class BuildFile(BaseModel):
    """Contents of a declarative build file."""

    model_config = STRICT

    artifacts: list[Artifact] = Field(default_factory=list)
    execution_environment: ExecutionEnvironment | None = Field(default=None)


__all__ = [
    "ARTIFACT_VARIANTS",
    "Artifact",
    "ArtifactConfig",
    "ArtifactType",
    "BazelArtifact",
    "BuildFile",
    "BuilderPlugin",
    "DockerArtifact",
    "ExecutionEnvironment",
    "GoogleCloudBuild",
    "LocalBuild",
]
