"""Typed settings management for chronocontext.

This module wraps user configuration in Pydantic models so CLI commands and
services can rely on validated settings: where the Duckling server lives,
how latent matches are handled and which reference time to fall back to.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from chronocontext.errors import InvalidConfigError, MissingConfigError
from chronocontext.extraction.duckling_client import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    DucklingHTTPExtractor,
)

logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = Path.home() / ".chronocontext" / "config.json"

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class DucklingSettings(BaseModel):
    """Connection settings for the Duckling server."""

    base_url: str = Field(DEFAULT_BASE_URL, description="Duckling HTTP URL")
    timeout_seconds: float = Field(DEFAULT_TIMEOUT, gt=0, description="Request timeout")
    locales: Dict[str, str] = Field(
        default_factory=dict,
        description="Language to Duckling locale overrides, e.g. {'en': 'en_US'}",
    )

    @field_validator("base_url")
    def _validate_base_url(cls, value: str) -> str:
        if not value.startswith("http://") and not value.startswith("https://"):
            raise ValueError("base_url must start with http:// or https://")
        return value.rstrip("/")

    def build_extractor(self, base_url: Optional[str] = None) -> DucklingHTTPExtractor:
        """Create a Duckling client, optionally pointed at another server."""
        return DucklingHTTPExtractor(
            base_url=base_url or self.base_url,
            timeout=self.timeout_seconds,
            locales=self.locales,
        )


class ExtractionSettings(BaseModel):
    """Defaults for temporal contextualization."""

    include_latent: bool = Field(False, description="Keep latent (low confidence) matches")
    temporal_context: Optional[datetime] = Field(
        default=None,
        description="Reference time used when a document carries none (default: now)",
    )


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")

    @field_validator("level")
    def _validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"level must be one of {', '.join(LOG_LEVELS)}")
        return level


class Settings(BaseModel):
    """Root configuration state."""

    duckling: DucklingSettings = Field(default_factory=DucklingSettings)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(path: Path = DEFAULT_CONFIG_PATH) -> Settings:
    """Load settings from disk or raise if missing or invalid."""

    if not path.exists():
        raise MissingConfigError(
            f"Settings file not found at {path}", details={"path": str(path)}
        )
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        return Settings.model_validate(payload)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise InvalidConfigError(
            f"Invalid configuration: {exc}", details={"path": str(path)}
        ) from exc


def save_settings(settings: Settings, path: Path = DEFAULT_CONFIG_PATH) -> None:
    """Persist settings to disk."""

    payload = settings.model_dump(mode="json")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def resolve_settings(path: Path = DEFAULT_CONFIG_PATH) -> Settings:
    """Effective settings for a command run: file (or defaults) plus environment.

    Unlike ``bootstrap_settings`` nothing is written to disk.
    """

    settings = load_settings(path) if path.exists() else Settings()
    merged = _apply_env_overrides(settings.model_dump(mode="python"))
    try:
        return Settings.model_validate(merged)
    except ValidationError as exc:
        raise InvalidConfigError(f"Invalid environment override: {exc}") from exc


def bootstrap_settings(
    *,
    path: Path = DEFAULT_CONFIG_PATH,
    overrides: Optional[Dict[str, Any]] = None,
) -> Settings:
    """Create or load settings respecting overrides and the environment.

    Environment variables win over explicit overrides, which win over the
    settings file.
    """

    overrides = overrides or {}

    if path.exists():
        settings = load_settings(path)
    else:
        logger.info(f"Creating default settings at {path}")
        settings = Settings()
        save_settings(settings, path)

    merged = settings.model_dump(mode="python")
    merged = _apply_overrides(merged, overrides)
    merged = _apply_env_overrides(merged)

    try:
        resolved = Settings.model_validate(merged)
    except ValidationError as exc:
        raise InvalidConfigError(f"Invalid configuration override: {exc}") from exc
    save_settings(resolved, path)
    return resolved


def _apply_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = base.copy()
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _apply_overrides(merged[key], value)
        else:
            merged[key] = value
    return merged


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    duckling = data.setdefault("duckling", {})
    _set_env_override(duckling, "base_url", "CHRONOCONTEXT_DUCKLING_URL")
    _set_env_override(
        duckling, "timeout_seconds", "CHRONOCONTEXT_DUCKLING_TIMEOUT", cast_float=True
    )

    extraction = data.setdefault("extraction", {})
    _set_env_override(
        extraction, "include_latent", "CHRONOCONTEXT_INCLUDE_LATENT", cast_bool=True
    )
    _set_env_override(extraction, "temporal_context", "CHRONOCONTEXT_TEMPORAL_CONTEXT")

    logging_settings = data.setdefault("logging", {})
    _set_env_override(logging_settings, "level", "CHRONOCONTEXT_LOG_LEVEL")
    return data


def _set_env_override(
    mapping: Dict[str, Any],
    key: str,
    env_name: str,
    *,
    cast_bool: bool = False,
    cast_float: bool = False,
) -> None:
    raw = os.getenv(env_name)
    if raw is None:
        return
    if cast_bool:
        mapping[key] = raw.lower() in {"1", "true", "yes"}
    elif cast_float:
        try:
            mapping[key] = float(raw)
        except ValueError as exc:
            raise InvalidConfigError(
                f"{env_name} must be a number, got '{raw}'"
            ) from exc
    else:
        mapping[key] = raw
