"""Command line entry points for chronocontext utilities."""

from typer import Typer

from ..configuration.cli import config_app, health_app
from .time import time_app


cli = Typer(help="chronocontext command line tools")
cli.add_typer(time_app, name="time")
cli.add_typer(config_app, name="config")
cli.add_typer(health_app, name="health")

__all__ = ["cli", "time_app", "config_app", "health_app"]
