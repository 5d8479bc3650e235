"""Duckling HTTP client for date/time extraction.

Talks to a Duckling server (``docker run -p 8000:8000 rasa/duckling``) and
converts its JSON matches into ``RawMatch`` objects for the contextualizer.

Reference times are sent as wall-clock time in UTC. Duckling then returns
literals in the wall clock of the caller, and the contextualizer attaches the
caller's own timezone when parsing them.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import requests

from chronocontext.extraction.temporal.exceptions import (
    ExtractionFailure,
    ExtractorUnavailable,
)
from chronocontext.extraction.temporal.models import (
    RawInstantValue,
    RawIntervalValue,
    RawMatch,
    RawValue,
)

logger = logging.getLogger(__name__)


DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 10.0
DEFAULT_DIMENSIONS = ("time", "duration")

# Language code to Duckling locale
DEFAULT_LOCALES: Dict[str, str] = {
    "ar": "ar_EG",
    "da": "da_DK",
    "de": "de_DE",
    "en": "en_GB",
    "es": "es_ES",
    "fr": "fr_FR",
    "ga": "ga_IE",
    "he": "he_IL",
    "hr": "hr_HR",
    "hu": "hu_HU",
    "it": "it_IT",
    "ja": "ja_JP",
    "ko": "ko_KR",
    "nb": "nb_NO",
    "nl": "nl_NL",
    "pl": "pl_PL",
    "pt": "pt_BR",
    "ro": "ro_RO",
    "ru": "ru_RU",
    "sv": "sv_SE",
    "tr": "tr_TR",
    "uk": "uk_UA",
    "vi": "vi_VN",
    "zh": "zh_CN",
}


def _epoch_millis(reference_time: datetime) -> int:
    wall_clock = reference_time.replace(tzinfo=timezone.utc)
    return int(wall_clock.timestamp() * 1000)


def _instant_value(entry: Optional[Dict[str, Any]]) -> Optional[RawInstantValue]:
    if not entry or entry.get("value") is None:
        return None
    return RawInstantValue(literal=str(entry["value"]), grain=entry.get("grain"))


def convert_value(value: Optional[Dict[str, Any]]) -> Optional[RawValue]:
    """Convert the ``value`` object of a Duckling time match."""
    if not value:
        return None
    if value.get("type") == "interval":
        return RawIntervalValue(
            start=_instant_value(value.get("from")),
            end=_instant_value(value.get("to")),
        )
    return _instant_value(value)


def convert_match(entry: Dict[str, Any]) -> RawMatch:
    """Convert one entry of a Duckling ``/parse`` response.

    Raises:
        KeyError: If a mandatory field is missing
    """
    dimension = entry["dim"]
    value = convert_value(entry.get("value")) if dimension == "time" else None
    return RawMatch(
        dimension=dimension,
        start=int(entry["start"]),
        end=int(entry["end"]),
        latent=bool(entry.get("latent", False)),
        value=value,
        body=entry.get("body"),
    )


class DucklingHTTPExtractor:
    """Date/time extractor backed by a Duckling HTTP server.

    Safe for concurrent use: every thread gets its own ``requests.Session``.

    Example:
        >>> extractor = DucklingHTTPExtractor("http://localhost:8000")
        >>> extractor.extract("tomorrow at 5pm", "en", datetime.now(), 2025, 2031)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        locales: Optional[Dict[str, str]] = None,
        dimensions: Sequence[str] = DEFAULT_DIMENSIONS,
    ):
        """Initialize Duckling client.

        Args:
            base_url: Duckling server URL
            timeout: Request timeout in seconds
            locales: Language to locale mapping merged over the defaults
            dimensions: Duckling dimensions to request
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.locales = dict(DEFAULT_LOCALES)
        if locales:
            self.locales.update({k.lower(): v for k, v in locales.items()})
        self.dimensions = tuple(dimensions)
        self._local = threading.local()

        logger.info(f"Initialized Duckling client: {self.base_url}")

    @property
    def session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session

    def is_language_supported(self, language: str) -> bool:
        return language.lower() in self.locales

    def supported_languages(self) -> List[str]:
        return sorted(self.locales)

    def extract(
        self,
        text: str,
        language: str,
        reference_time: datetime,
        min_year: int,
        max_year: int,
    ) -> List[RawMatch]:
        """Parse ``text`` with Duckling.

        Raises:
            ExtractorUnavailable: If Duckling cannot be reached or times out
            ExtractionFailure: On unsupported languages, HTTP or response
                               format errors
        """
        locale = self.locales.get(language.lower())
        if locale is None:
            raise ExtractionFailure(
                f"No Duckling locale configured for language '{language}'",
                language=language,
            )
        # The HTTP API offers no year window
        logger.debug(f"Ignoring year window [{min_year},{max_year}] (not supported)")

        form = {
            "locale": locale,
            "text": text,
            "reftime": str(_epoch_millis(reference_time)),
            "tz": "UTC",
            "dims": json.dumps(list(self.dimensions)),
            "latent": "true",
        }
        try:
            response = self.session.post(
                f"{self.base_url}/parse",
                data=form,
                timeout=self.timeout,
            )
            response.raise_for_status()
            entries = response.json()
        except requests.exceptions.Timeout as e:
            logger.error(f"Duckling request timed out after {self.timeout}s")
            raise ExtractorUnavailable(
                f"Duckling request timed out after {self.timeout}s",
                language=language,
                cause=e,
            ) from e
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Cannot connect to Duckling at {self.base_url}: {e}")
            raise ExtractorUnavailable(
                f"Cannot connect to Duckling at {self.base_url}",
                language=language,
                cause=e,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Duckling request failed: {e}")
            raise ExtractionFailure(
                f"Duckling request failed: {e}", language=language, cause=e
            ) from e
        except ValueError as e:
            raise ExtractionFailure(
                f"Duckling returned invalid JSON: {e}", language=language, cause=e
            ) from e

        if not isinstance(entries, list):
            raise ExtractionFailure(
                f"Unexpected Duckling response of type {type(entries).__name__}",
                language=language,
            )
        try:
            return [convert_match(entry) for entry in entries]
        except (KeyError, TypeError, ValueError) as e:
            raise ExtractionFailure(
                f"Malformed Duckling match: {e}", language=language, cause=e
            ) from e

    def health_check(self) -> bool:
        """Check if the Duckling server is reachable.

        Returns:
            True if the server answers, False otherwise
        """
        try:
            response = self.session.get(self.base_url, timeout=min(self.timeout, 5))
            return response.status_code == 200
        except requests.exceptions.RequestException as e:
            logger.warning(f"Duckling server not reachable: {e}")
            return False


__all__ = [
    "DucklingHTTPExtractor",
    "DEFAULT_LOCALES",
    "convert_match",
    "convert_value",
]
