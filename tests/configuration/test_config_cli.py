"""Tests for configuration and health CLI commands."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from chronocontext.configuration.cli import config_app, health_app
from chronocontext.configuration.settings import (
    DucklingSettings,
    Settings,
    load_settings,
    save_settings,
)
from chronocontext.extraction.duckling_client import DucklingHTTPExtractor


@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


def test_init_creates_config(runner, tmp_path: Path):
    config_path = tmp_path / "config.json"

    result = runner.invoke(
        config_app,
        [
            "init",
            "--config-path", str(config_path),
            "--duckling-url", "http://duckling:8000",
            "--include-latent",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Configuration initialized" in result.output
    settings = load_settings(config_path)
    assert settings.duckling.base_url == "http://duckling:8000"
    assert settings.extraction.include_latent is True


def test_show_config(runner, tmp_path: Path):
    config_path = tmp_path / "config.json"
    runner.invoke(config_app, ["init", "--config-path", str(config_path)])

    result = runner.invoke(config_app, ["show", "--config-path", str(config_path)])

    assert result.exit_code == 0
    assert '"base_url": "http://localhost:8000"' in result.output


def test_show_missing_config(runner, tmp_path: Path):
    result = runner.invoke(config_app, ["show", "--config-path", str(tmp_path / "missing.json")])

    assert result.exit_code == 1
    assert "MISSING_CONFIG" in result.output


def test_set_config(runner, tmp_path: Path):
    config_path = tmp_path / "config.json"
    runner.invoke(config_app, ["init", "--config-path", str(config_path)])

    result = runner.invoke(
        config_app,
        ["set", "duckling.timeout_seconds", "2.5", "--config-path", str(config_path)],
    )

    assert result.exit_code == 0, result.output
    assert load_settings(config_path).duckling.timeout_seconds == 2.5


@pytest.mark.parametrize(
    "key,value",
    [
        ("duckling.timeout_seconds", "-1"),
        ("logging.level", "LOUD"),
        ("nosuch.section", "x"),
    ],
)
def test_set_invalid_value(runner, tmp_path: Path, key, value):
    config_path = tmp_path / "config.json"
    runner.invoke(config_app, ["init", "--config-path", str(config_path)])

    result = runner.invoke(config_app, ["set", "--config-path", str(config_path), "--", key, value])

    assert result.exit_code == 1
    assert "Invalid value" in result.output
    assert load_settings(config_path).duckling.timeout_seconds == 10.0
    assert load_settings(config_path).logging.level == "INFO"


def test_health_ok(runner, tmp_path: Path):
    with patch(
        "chronocontext.extraction.duckling_client.DucklingHTTPExtractor.health_check",
        return_value=True,
    ):
        result = runner.invoke(
            health_app, ["--config-path", str(tmp_path / "missing.json"), "--json"]
        )

    assert result.exit_code == 0, result.output
    report = json.loads(result.output)
    assert report["checks"][0]["status"] == "ok"


def test_health_unreachable(runner, tmp_path: Path):
    with patch(
        "chronocontext.extraction.duckling_client.DucklingHTTPExtractor.health_check",
        return_value=False,
    ):
        result = runner.invoke(health_app, ["--config-path", str(tmp_path / "missing.json")])

    assert result.exit_code == 1
    assert "duckling" in result.output


def test_health_uses_configured_locales(runner, tmp_path: Path):
    config_path = tmp_path / "config.json"
    save_settings(
        Settings(duckling=DucklingSettings(timeout_seconds=2.0, locales={"en": "en_US"})),
        config_path,
    )

    with patch.object(
        DucklingHTTPExtractor, "health_check", autospec=True, return_value=True
    ) as health_check:
        result = runner.invoke(health_app, ["--config-path", str(config_path)])

    assert result.exit_code == 0, result.output
    extractor = health_check.call_args.args[0]
    assert extractor.locales["en"] == "en_US"
    assert extractor.timeout == 2.0


def test_health_honours_env_url(runner, tmp_path: Path, monkeypatch):
    monkeypatch.setenv("CHRONOCONTEXT_DUCKLING_URL", "http://envhost:9999")

    with patch.object(
        DucklingHTTPExtractor, "health_check", autospec=True, return_value=True
    ) as health_check:
        result = runner.invoke(
            health_app, ["--config-path", str(tmp_path / "missing.json"), "--json"]
        )

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["checks"][0]["detail"] == "http://envhost:9999"
    assert health_check.call_args.args[0].base_url == "http://envhost:9999"
