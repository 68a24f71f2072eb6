"""Tests for plugins/environment.py module."""

import copy
import logging

import pytest

from imagedispatch.errors import EnvironmentAdaptError
from imagedispatch.plugins.environment import adapt
from imagedispatch.schema import ExecutionEnvironment, GoogleCloudBuild, LocalBuild


class TestAdapt:
    """Tests for adapt function."""

    def test_none_properties_give_defaults(self):
        """A missing property bag is valid and yields defaults."""
        local = adapt(ExecutionEnvironment(name="local"), LocalBuild)
        assert local == LocalBuild()
        assert local.push is None

    def test_empty_properties_give_defaults(self):
        """An empty property bag is valid and yields defaults."""
        local = adapt(ExecutionEnvironment(name="local", properties={}), LocalBuild)
        assert local == LocalBuild()

    def test_empty_properties_are_logged(self, caplog):
        """Falling back to defaults should be observable."""
        with caplog.at_level(logging.INFO, logger="imagedispatch.plugins.environment"):
            adapt(ExecutionEnvironment(name="local"), LocalBuild)
        assert "no properties" in caplog.text

    def test_maps_fields_by_name(self):
        """Known keys should be mapped, unknown keys ignored."""
        env = ExecutionEnvironment(
            name="local",
            properties={
                "push": True,
                "useDockerCLI": True,
                "useBuildkit": True,
                "projectId": "ignored",
            },
        )

        local = adapt(env, LocalBuild)

        assert local.push is True
        assert local.use_docker_cli is True
        assert local.use_buildkit is True

    def test_does_not_mutate_environment(self):
        """The environment should be left as it was."""
        env = ExecutionEnvironment(
            name="local", properties={"push": False, "nested": {"a": [1, 2]}}
        )
        before = copy.deepcopy(env.properties)

        adapt(env, LocalBuild)

        assert env.properties == before

    def test_type_mismatch_is_adapt_error(self):
        """Values that cannot fit the target schema should fail."""
        env = ExecutionEnvironment(name="local", properties={"push": [1, 2]})

        with pytest.raises(EnvironmentAdaptError) as exc_info:
            adapt(env, LocalBuild)

        assert exc_info.value.environment == "local"

    def test_unserializable_is_adapt_error(self):
        """Values that cannot be re-encoded should fail."""
        env = ExecutionEnvironment(name="local", properties={"push": object()})

        with pytest.raises(EnvironmentAdaptError, match="encoding properties"):
            adapt(env, LocalBuild)

    def test_google_cloud_build_options(self):
        """Cloud Build options should be adapted the same way."""
        env = ExecutionEnvironment(
            name="googleCloudBuild",
            properties={"projectId": "my-project", "diskSizeGb": 200, "push": True},
        )

        gcb = adapt(env, GoogleCloudBuild)

        assert gcb.project_id == "my-project"
        assert gcb.disk_size_gb == 200
        assert gcb.docker_image == "gcr.io/cloud-builders/docker"

    def test_zero_values_are_accepted(self):
        """Zero values adapt as given; they mean the backend default."""
        env = ExecutionEnvironment(name="googleCloudBuild", properties={"diskSizeGb": 0})

        gcb = adapt(env, GoogleCloudBuild)

        assert gcb.disk_size_gb == 0
