"""CLI commands for managing chronocontext settings and health checks."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from chronocontext.configuration.settings import (
    DEFAULT_CONFIG_PATH,
    Settings,
    bootstrap_settings,
    load_settings,
    resolve_settings,
    save_settings,
)
from chronocontext.errors import ConfigurationError
from chronocontext.errors.user_messages import format_error_for_cli


config_app = typer.Typer(help="Manage chronocontext configuration")
health_app = typer.Typer(help="Run health diagnostics")


@config_app.command("init")
def init_config(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to config file"),
    duckling_url: Optional[str] = typer.Option(None, help="Override Duckling URL"),
    timeout: Optional[float] = typer.Option(None, help="Override request timeout (seconds)"),
    include_latent: Optional[bool] = typer.Option(
        None, "--include-latent/--exclude-latent", help="Keep latent matches"
    ),
) -> None:
    """Initialize the chronocontext settings file."""

    overrides: dict = {}
    if duckling_url:
        overrides.setdefault("duckling", {})["base_url"] = duckling_url
    if timeout is not None:
        overrides.setdefault("duckling", {})["timeout_seconds"] = timeout
    if include_latent is not None:
        overrides.setdefault("extraction", {})["include_latent"] = include_latent

    try:
        settings = bootstrap_settings(path=config_path, overrides=overrides)
    except ConfigurationError as e:
        typer.echo(format_error_for_cli(e), err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Configuration initialized at {config_path}")
    typer.echo(_summarize_settings(settings))


@config_app.command("show")
def show_config(config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to config")) -> None:
    """Display effective configuration."""

    try:
        settings = load_settings(config_path)
    except ConfigurationError as e:
        typer.echo(format_error_for_cli(e), err=True)
        raise typer.Exit(code=1)
    typer.echo(_summarize_settings(settings))


@config_app.command("set")
def set_config(
    key: str = typer.Argument(..., help="Configuration key, e.g. duckling.base_url"),
    value: str = typer.Argument(..., help="New value"),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to config"),
) -> None:
    """Update a configuration value.

    Values starting with "-" must follow ``--``, e.g. ``config set -- KEY -1``.
    """

    try:
        settings = load_settings(config_path)
        payload = settings.model_dump(mode="python")
        _assign(payload, key.split("."), value)
        updated = Settings.model_validate(payload)
    except ConfigurationError as e:
        typer.echo(format_error_for_cli(e), err=True)
        raise typer.Exit(code=1)
    except ValueError as e:
        typer.echo(f"❌ Invalid value for {key}: {e}", err=True)
        raise typer.Exit(code=1)
    save_settings(updated, config_path)
    typer.echo(f"Updated {key}")


@health_app.command("run")
def run_health(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Config file"),
    json_output: bool = typer.Option(False, "--json", help="Emit JSON output"),
) -> None:
    """Check that the Duckling server is reachable."""

    try:
        settings = resolve_settings(config_path)
    except ConfigurationError as e:
        typer.echo(format_error_for_cli(e), err=True)
        raise typer.Exit(code=1)
    extractor = settings.duckling.build_extractor()
    healthy = extractor.health_check()
    report = {
        "checks": [
            {
                "name": "duckling",
                "status": "ok" if healthy else "unreachable",
                "detail": settings.duckling.base_url,
            }
        ]
    }
    if json_output:
        typer.echo(json.dumps(report, indent=2))
    else:
        typer.echo("chronocontext Health Report")
        for entry in report["checks"]:
            status_icon = "✅" if entry["status"] == "ok" else "⚠️"
            typer.echo(f"- {status_icon} {entry['name']}: {entry['detail']}")
    if not healthy:
        raise typer.Exit(code=1)


def _summarize_settings(settings: Settings) -> str:
    data = settings.model_dump(mode="json")
    return json.dumps(data, indent=2)


def _assign(payload: dict, keys: list[str], value: str) -> None:
    current = payload
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            raise ValueError(f"unknown section '{key}'")
        current = current[key]
    current[keys[-1]] = value
