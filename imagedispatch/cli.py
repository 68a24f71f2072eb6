"""Thin CLI wrapper for imagedispatch.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, NoReturn

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from imagedispatch import __version__
from imagedispatch.config import Settings, get_settings, print_settings_json
from imagedispatch.errors import DispatchError
from imagedispatch.io import load_build_file
from imagedispatch.plugins import BazelPlugin, CloudBuildPlugin
from imagedispatch.plugins.materialize import materialize
from imagedispatch.schema import (
    Artifact,
    BuildFile,
    ExecutionEnvironment,
    GoogleCloudBuild,
)
from imagedispatch.types import BuilderKind, EnvironmentName

app = typer.Typer(
    name="imagedispatch",
    help="Image Dispatch - build container images with pluggable backends",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"imagedispatch version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Image Dispatch - build container images with pluggable backends."""
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def fail(error: BaseException) -> NoReturn:
    """Print an error and its causes, then exit non-zero."""
    err_console.print(f"[red]Error: {escape(str(error))}[/red]")
    cause = error.__cause__
    while cause is not None:
        err_console.print(f"  caused by: {escape(str(cause))}")
        cause = cause.__cause__
    raise typer.Exit(code=1)


def print_json(data: object) -> None:
    """Print data as JSON without wrapping or markup."""
    console.print(json.dumps(data, indent=2), soft_wrap=True, markup=False)


def load(path: Path) -> BuildFile:
    """Load a build file or exit with an error."""
    if not path.exists():
        err_console.print(f"[red]Path not found: {path}[/red]")
        raise typer.Exit(code=1)
    try:
        return load_build_file(path)
    except (ValidationError, yaml.YAMLError, json.JSONDecodeError, ValueError) as e:
        err_console.print(f"[red]Invalid build file {path}:[/red]")
        err_console.print(escape(str(e)))
        raise typer.Exit(code=1) from None


def environment_of(
    build: BuildFile, settings: Settings, name: str | None
) -> ExecutionEnvironment:
    """Select the execution environment for a command."""
    env = build.execution_environment or ExecutionEnvironment(
        name=settings.default_environment
    )
    if name is not None and name != env.name:
        env = ExecutionEnvironment(name=name)
    return env


def is_bazel(artifact: Artifact) -> bool:
    """Return True if the bazel plugin handles this artifact."""
    plugin = artifact.builder_plugin
    return artifact.artifact_type.bazel_artifact is not None or (
        plugin is not None and plugin.name == BuilderKind.BAZEL.value
    )


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(print_settings_json(settings))
        return

    kube_context = settings.kube_context or "(from kubectl)"
    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print("[bold]Build:[/bold]")
    console.print(f"  Default environment: {settings.default_environment}")
    console.print(f"  Skip tests:          {settings.skip_tests}")
    console.print(f"  Cluster context:     {kube_context}")
    console.print(f"  Log level:           {settings.log_level}")
    console.print()
    console.print("[bold]Tools:[/bold]")
    console.print(f"  Bazel:               {settings.bazel_binary}")
    console.print(f"  Docker:              {settings.docker_binary}")
    console.print(f"  kubectl:             {settings.kubectl_binary}")
    console.print()
    console.print("[bold]Timeouts (seconds):[/bold]")
    console.print(f"  Dependency timeout:  {settings.dependency_timeout}")
    console.print(f"  Build timeout:       {settings.build_timeout}")


@app.command()
def labels(
    builder: Annotated[
        str,
        typer.Option("--builder", "-b", help="Builder: bazel or google-cloud-build"),
    ] = BazelPlugin.name,
) -> None:
    """Show the labels a builder attaches to images."""
    if builder == BazelPlugin.name:
        result = BazelPlugin(get_settings()).labels()
    elif builder == CloudBuildPlugin.name:
        result = CloudBuildPlugin(GoogleCloudBuild(), settings=get_settings()).labels()
    else:
        console.print(f"[red]Unknown builder: {builder}[/red]")
        raise typer.Exit(code=1)
    print_json(result)


@app.command()
def validate(
    path: Annotated[Path, typer.Argument(help="Build file (YAML or JSON)")],
) -> None:
    """Decode and validate the plugin configuration of every artifact."""
    build = load(path)
    failed = False
    for artifact in build.artifacts:
        if artifact.builder_plugin is None:
            console.print(f"  [green]{artifact.image_name}[/green]: inline configuration")
            continue
        try:
            materialize(artifact, BuilderKind(artifact.builder_plugin.name))
        except ValueError:
            console.print(
                f"  [red]{artifact.image_name}[/red]: "
                f"unknown plugin {artifact.builder_plugin.name}"
            )
            failed = True
        except DispatchError as e:
            console.print(f"  [red]{artifact.image_name}[/red]: {escape(str(e))}")
            failed = True
        else:
            console.print(f"  [green]{artifact.image_name}[/green]: valid")

    if failed:
        raise typer.Exit(code=1)


@app.command()
def deps(
    path: Annotated[Path, typer.Argument(help="Build file (YAML or JSON)")],
    image: Annotated[
        str | None,
        typer.Option("--image", "-i", help="Only this artifact"),
    ] = None,
    env_name: Annotated[
        str | None,
        typer.Option("--env", "-e", help="Execution environment name"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """List the source files each artifact depends on."""
    settings = get_settings()
    build = load(path)
    env = environment_of(build, settings, env_name)

    artifacts = [a for a in build.artifacts if image is None or a.image_name == image]
    if not artifacts:
        console.print(f"[red]No artifact named {image}[/red]")
        raise typer.Exit(code=1)

    output: dict[str, list[str]] = {}
    try:
        for artifact in artifacts:
            if is_bazel(artifact):
                plugin = BazelPlugin(settings)
                output[artifact.image_name] = plugin.dependencies_for_artifact(artifact)
            elif env.name == EnvironmentName.GOOGLE_CLOUD_BUILD.value:
                gcb = CloudBuildPlugin.from_environment(env, settings=settings)
                output[artifact.image_name] = gcb.dependencies_for_artifact(artifact)
            else:
                console.print(
                    f"[red]No builder plugin resolves dependencies of "
                    f"{artifact.image_name} in {env.name}[/red]"
                )
                raise typer.Exit(code=1)
    except DispatchError as e:
        fail(e)

    if json_output:
        print_json(output)
        return
    for name, paths in output.items():
        console.print(f"[bold]{name}[/bold] ({len(paths)} file(s))")
        for p in paths:
            console.print(f"  {p}")


@app.command()
def build(
    path: Annotated[Path, typer.Argument(help="Build file (YAML or JSON)")],
    env_name: Annotated[
        str | None,
        typer.Option("--env", "-e", help="Execution environment name"),
    ] = None,
    tag: Annotated[
        list[str] | None,
        typer.Option("--tag", "-t", help="IMAGE=TAG assignment (can be repeated)"),
    ] = None,
    skip_tests: Annotated[
        bool | None,
        typer.Option("--skip-tests/--no-skip-tests", help="Skip image tests"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Build every artifact of a build file with the bazel builder."""
    settings = get_settings()
    build_file = load(path)
    env = environment_of(build_file, settings, env_name)

    tags = {a.image_name: f"{a.image_name}:latest" for a in build_file.artifacts}
    for assignment in tag or []:
        name, sep, value = assignment.partition("=")
        if not sep or not value:
            console.print(f"[red]Invalid tag assignment: {assignment}[/red]")
            raise typer.Exit(code=1)
        tags[name] = value

    plugin = BazelPlugin(settings)
    plugin.init(env, skip_tests=settings.skip_tests if skip_tests is None else skip_tests)
    try:
        results = plugin.build(sys.stdout, tags, build_file.artifacts)
    except DispatchError as e:
        fail(e)

    if json_output:
        output = [{"imageName": r.image_name, "tag": r.tag} for r in results]
        print_json(output)
        return
    console.print(f"[bold]Built {len(results)} image(s):[/bold]")
    for r in results:
        console.print(f"  [green]{r.image_name}[/green] -> {r.tag}")


if __name__ == "__main__":
    app()
