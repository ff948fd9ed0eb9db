from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import click

from mavenverifier.config import load_config, save_config
from mavenverifier.errors import VerifierError
from mavenverifier.repository import ArtifactCoordinate, RepositoryLayout, resolve_artifact_path
from mavenverifier.settings import resolve_local_repository
from mavenverifier.verifier import Verifier, default_host_properties


def _resolve_config_path(basedir: Path, config_value: str) -> Path:
    config_path = Path(config_value)
    if not config_path.is_absolute():
        config_path = basedir / config_path
    return config_path.resolve()


def _parse_pairs(values: tuple[str, ...], option: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for value in values:
        key, sep, rendered = value.partition("=")
        if not key:
            raise click.BadParameter(f"expected KEY=VALUE, got '{value}'", param_hint=option)
        # a bare -Dflag means flag=true, as on the mvn command line
        pairs[key] = rendered if sep else "true"
    return pairs


def _echo_event(event: dict[str, Any]) -> None:
    click.echo(json.dumps(event, ensure_ascii=False), err=True)


def _load_verifier(
    basedir: str,
    config_value: str,
    *,
    settings_file: str | None = None,
    fork_jvm: bool | None = None,
    verbose: bool = False,
) -> Verifier:
    root = Path(basedir).resolve()
    try:
        config = load_config(_resolve_config_path(root, config_value))
        return Verifier(
            root,
            settings_file=settings_file,
            fork_jvm=fork_jvm,
            config=config,
            event_hook=_echo_event if verbose else None,
        )
    except VerifierError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
def cli(log_level: str) -> None:
    """Run Maven builds and verify what they leave behind."""
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")


@cli.command("init")
@click.option("--basedir", default=".", show_default=True)
@click.option("--config", "config_value", default="verifier.toml", show_default=True)
def init_command(basedir: str, config_value: str) -> None:
    config_path = _resolve_config_path(Path(basedir).resolve(), config_value)
    try:
        config = load_config(config_path)
    except VerifierError as exc:
        raise click.ClickException(str(exc)) from exc
    save_config(config_path, config)
    click.echo(f"Config: {config_path}")


@cli.command("run")
@click.argument("goals", nargs=-1)
@click.option("--basedir", default=".", show_default=True)
@click.option("--config", "config_value", default="verifier.toml", show_default=True)
@click.option("--settings", "settings_file", default=None)
@click.option("-D", "properties", multiple=True, help="System property KEY=VALUE.")
@click.option("--env", "env_values", multiple=True, help="Environment variable KEY=VALUE.")
@click.option("--fork/--embedded", "fork_jvm", default=None)
@click.option("--autoclean/--no-autoclean", default=None)
@click.option("--log-file", "log_file_name", default=None)
@click.option("--verbose", is_flag=True, default=False)
def run_command(
    goals: tuple[str, ...],
    basedir: str,
    config_value: str,
    settings_file: str | None,
    properties: tuple[str, ...],
    env_values: tuple[str, ...],
    fork_jvm: bool | None,
    autoclean: bool | None,
    log_file_name: str | None,
    verbose: bool,
) -> None:
    verifier = _load_verifier(
        basedir, config_value, settings_file=settings_file, fork_jvm=fork_jvm, verbose=verbose
    )
    for key, value in _parse_pairs(properties, "-D").items():
        verifier.set_system_property(key, value)
    for key, value in _parse_pairs(env_values, "--env").items():
        verifier.set_environment_variable(key, value)
    if autoclean is not None:
        verifier.autoclean = autoclean
    try:
        if log_file_name is not None:
            verifier.log_file_name = log_file_name
        verifier.execute_goals(list(goals))
    except VerifierError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Build succeeded, log: {verifier.log_file}")


@cli.command("verify")
@click.option("--basedir", default=".", show_default=True)
@click.option("--config", "config_value", default="verifier.toml", show_default=True)
@click.option("--choke/--no-choke", default=True, show_default=True)
def verify_command(basedir: str, config_value: str, choke: bool) -> None:
    verifier = _load_verifier(basedir, config_value)
    try:
        verifier.verify(choke)
    except VerifierError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo("Verification passed.")


@cli.command("text-in-log")
@click.argument("text")
@click.option("--basedir", default=".", show_default=True)
@click.option("--config", "config_value", default="verifier.toml", show_default=True)
def text_in_log_command(text: str, basedir: str, config_value: str) -> None:
    verifier = _load_verifier(basedir, config_value)
    try:
        verifier.verify_text_in_log(text)
    except VerifierError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Found: {text}")


@cli.command("artifact-path")
@click.argument("group_id")
@click.argument("artifact_id")
@click.argument("version")
@click.argument("extension")
@click.option("--classifier", default=None)
@click.option(
    "--layout",
    type=click.Choice([layout.value for layout in RepositoryLayout]),
    default=RepositoryLayout.DEFAULT.value,
    show_default=True,
)
@click.option("--repo", "repo_root", default=None, help="Local repository root.")
def artifact_path_command(
    group_id: str,
    artifact_id: str,
    version: str,
    extension: str,
    classifier: str | None,
    layout: str,
    repo_root: str | None,
) -> None:
    try:
        root = repo_root or resolve_local_repository(properties=default_host_properties())
        path = resolve_artifact_path(
            layout, root, ArtifactCoordinate(group_id, artifact_id, version, extension, classifier)
        )
    except VerifierError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(path)


@cli.command("version")
@click.option("--basedir", default=".", show_default=True)
@click.option("--config", "config_value", default="verifier.toml", show_default=True)
def version_command(basedir: str, config_value: str) -> None:
    verifier = _load_verifier(basedir, config_value)
    try:
        click.echo(verifier.get_maven_version())
    except VerifierError as exc:
        raise click.ClickException(str(exc)) from exc


def main() -> None:
    cli()

