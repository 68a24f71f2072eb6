"""Tests for deps/docker.py module."""

import pytest

from imagedispatch.deps.docker import (
    DockerfileError,
    copy_sources,
    docker_dependencies,
    read_instructions,
)
from imagedispatch.schema import DockerArtifact


@pytest.fixture
def context_dir(tmp_path):
    """Create a build context with sources and a Dockerfile."""
    (tmp_path / "app.py").write_text("print('hi')\n")
    (tmp_path / "requirements.txt").write_text("rich\n")
    (tmp_path / "src" / "pkg").mkdir(parents=True)
    (tmp_path / "src" / "a.py").write_text("")
    (tmp_path / "src" / "pkg" / "b.py").write_text("")
    (tmp_path / "Dockerfile").write_text(
        "# syntax=docker/dockerfile:1\n"
        "FROM python:3.12 AS base\n"
        "COPY requirements.txt /app/\n"
        "RUN pip install -r /app/requirements.txt\n"
        "COPY app.py \\\n"
        "     src /app/\n"
        "ADD https://example.com/archive.tgz /tmp/\n"
        "COPY --from=base /app /app\n"
    )
    return tmp_path


class TestReadInstructions:
    """Tests for read_instructions function."""

    def test_skips_comments_and_joins_lines(self):
        """Continuations should be joined and comments dropped."""
        text = "# comment\nFROM scratch\n\ncopy a \\\n  b /dst\n"
        assert read_instructions(text) == [
            ("FROM", "scratch"),
            ("COPY", "a  b /dst"),
        ]


class TestCopySources:
    """Tests for copy_sources function."""

    def test_shell_form(self):
        """All but the last argument are sources."""
        assert copy_sources("a.txt b.txt /dst/") == ["a.txt", "b.txt"]

    def test_json_form(self):
        """The JSON array form should be understood."""
        assert copy_sources('["a b.txt", "/dst/"]') == ["a b.txt"]

    def test_flags_ignored(self):
        """Flags other than --from are not sources."""
        assert copy_sources("--chown=app:app a.txt /dst/") == ["a.txt"]

    def test_from_stage_has_no_sources(self):
        """Copies from another stage read nothing from the context."""
        assert copy_sources("--from=builder /out /out") == []

    def test_remote_sources_dropped(self):
        """URLs are not workspace files."""
        assert copy_sources("https://example.com/x.tgz /tmp/") == []

    def test_missing_destination(self):
        """A single argument is malformed."""
        with pytest.raises(DockerfileError):
            copy_sources("onlyone")


class TestDockerDependencies:
    """Tests for docker_dependencies function."""

    def test_collects_sources(self, context_dir):
        """Should list copied files, expanded directories and the Dockerfile."""
        deps = docker_dependencies(str(context_dir), DockerArtifact())

        assert deps == [
            "Dockerfile",
            "app.py",
            "requirements.txt",
            "src/a.py",
            "src/pkg/b.py",
        ]

    def test_glob_sources(self, tmp_path):
        """Glob patterns should be expanded."""
        (tmp_path / "one.txt").write_text("")
        (tmp_path / "two.txt").write_text("")
        (tmp_path / "skip.md").write_text("")
        (tmp_path / "Dockerfile").write_text("FROM scratch\nCOPY *.txt /\n")

        deps = docker_dependencies(str(tmp_path), DockerArtifact())

        assert deps == ["Dockerfile", "one.txt", "two.txt"]

    def test_custom_dockerfile(self, tmp_path):
        """A Dockerfile in a subdirectory should be read and listed."""
        (tmp_path / "docker").mkdir()
        (tmp_path / "docker" / "Dockerfile.prod").write_text("FROM scratch\n")

        deps = docker_dependencies(
            str(tmp_path), DockerArtifact(dockerfile="docker/Dockerfile.prod")
        )

        assert deps == ["docker/Dockerfile.prod"]

    def test_unmatched_source(self, tmp_path):
        """A source matching nothing should fail."""
        (tmp_path / "Dockerfile").write_text("FROM scratch\nCOPY missing.txt /\n")

        with pytest.raises(DockerfileError) as exc_info:
            docker_dependencies(str(tmp_path), DockerArtifact())
        assert exc_info.value.code == "no_match"

    def test_missing_dockerfile(self, tmp_path):
        """A missing Dockerfile should fail."""
        with pytest.raises(DockerfileError) as exc_info:
            docker_dependencies(str(tmp_path), DockerArtifact())
        assert exc_info.value.code == "read_error"
