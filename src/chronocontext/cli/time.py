"""Time resolution CLI commands.

Commands:
    chronocontext time resolve "on May 27 at 18h and the 29th" --lang en --reference 2016-04-01T08:00
    chronocontext time languages
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from chronocontext.configuration.settings import (
    DEFAULT_CONFIG_PATH,
    LOG_LEVELS,
    Settings,
    resolve_settings,
)
from chronocontext.errors import ChronoContextError, UnsupportedLanguageError
from chronocontext.errors.user_messages import format_error_for_cli
from chronocontext.extraction.duckling_client import DucklingHTTPExtractor
from chronocontext.extraction.temporal.contextualizer import TemporalContextualizer
from chronocontext.extraction.temporal.dates import to_datetime
from chronocontext.extraction.temporal.models import DateToken

logger = logging.getLogger(__name__)

console = Console()
error_console = Console(stderr=True)
time_app = typer.Typer(help="Resolve date/time mentions in text")


def _configure_logging(level: str) -> None:
    level = level.upper()
    if level not in LOG_LEVELS:
        raise typer.BadParameter(
            f"'{level}' is not one of {', '.join(LOG_LEVELS)}", param_hint="--log-level"
        )
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True,
    )


def _load_settings(config_path: Path) -> Settings:
    """Settings from ``config_path`` (defaults if missing) with env overrides."""
    return resolve_settings(config_path)


def _build_extractor(settings: Settings, duckling_url: Optional[str] = None) -> DucklingHTTPExtractor:
    return settings.duckling.build_extractor(duckling_url)


def _token_text(text: str, token: DateToken) -> str:
    return text[token.offset_start:token.offset_end]


def _render_table(text: str, tokens: List[DateToken]) -> Table:
    table = Table(title=f"Temporal mentions ({len(tokens)})")
    table.add_column("Span", style="dim")
    table.add_column("Text", style="bold")
    table.add_column("Kind")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Confidence", justify="right")

    for token in tokens:
        if token.instant:
            kind = "instant"
        else:
            kind = "open interval" if token.is_open_interval else "interval"
        table.add_row(
            f"{token.offset_start}-{token.offset_end}",
            _token_text(text, token),
            kind,
            str(token.start) if token.start else "-",
            str(token.end) if token.end else "-",
            f"{token.confidence:.2f}",
        )
    return table


@time_app.command("resolve")
def resolve_text(
    text: str = typer.Argument(..., help="Text containing date/time mentions"),
    lang: str = typer.Option("en", "--lang", "-l", help="Language of the text"),
    reference: Optional[str] = typer.Option(
        None, "--reference", "-r", help="ISO reference time (default: configured context or now)"
    ),
    include_latent: Optional[bool] = typer.Option(
        None, "--include-latent/--exclude-latent", help="Keep latent (low confidence) matches"
    ),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
    duckling_url: Optional[str] = typer.Option(None, "--duckling-url", help="Duckling server URL"),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config-path", help="Path to config"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level override"),
) -> None:
    """Resolve all date/time mentions of TEXT with carried-over context."""
    try:
        settings = _load_settings(config_path)
    except ChronoContextError as e:
        typer.echo(format_error_for_cli(e), err=True)
        raise typer.Exit(code=1)
    _configure_logging(log_level or settings.logging.level)

    if reference is not None:
        reference_time = to_datetime(reference)
        if reference_time is None:
            raise typer.BadParameter(f"'{reference}' is not an ISO date-time", param_hint="--reference")
    else:
        reference_time = settings.extraction.temporal_context or datetime.now()

    latent = settings.extraction.include_latent if include_latent is None else include_latent
    contextualizer = TemporalContextualizer(
        _build_extractor(settings, duckling_url), include_latent=latent
    )

    language = lang.lower()
    try:
        if not contextualizer.is_language_supported(language):
            raise UnsupportedLanguageError(language)
        tokens = contextualizer.resolve(text, language, reference_time)
    except ChronoContextError as e:
        if output_json:
            typer.echo(json.dumps({"error": e.to_dict()}, indent=2, default=str))
        else:
            typer.echo(format_error_for_cli(e), err=True)
        raise typer.Exit(code=1)

    if output_json:
        response = {
            "text": text,
            "language": language,
            "reference_time": reference_time.isoformat(),
            "tokens": [
                {**token.to_dict(), "text": _token_text(text, token)} for token in tokens
            ],
        }
        typer.echo(json.dumps(response, indent=2))
    elif tokens:
        console.print(_render_table(text, tokens))
    else:
        console.print("[yellow]No date/time mentions found[/yellow]")


@time_app.command("languages")
def list_languages(
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config-path", help="Path to config"),
) -> None:
    """List languages with a configured Duckling locale."""
    try:
        settings = _load_settings(config_path)
    except ChronoContextError as e:
        typer.echo(format_error_for_cli(e), err=True)
        raise typer.Exit(code=1)
    extractor = _build_extractor(settings)

    languages = {lang: extractor.locales[lang] for lang in extractor.supported_languages()}
    if output_json:
        typer.echo(json.dumps(languages, indent=2))
        return

    table = Table(title="Supported languages")
    table.add_column("Language", style="bold")
    table.add_column("Duckling locale")
    for lang, locale in languages.items():
        table.add_row(lang, locale)
    console.print(table)
