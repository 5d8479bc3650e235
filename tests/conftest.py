"""Shared test configuration and a scripted date/time extractor."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import pytest

from chronocontext.extraction.temporal.models import (
    RawInstantValue,
    RawIntervalValue,
    RawMatch,
)


ENV_VARS = (
    "CHRONOCONTEXT_DUCKLING_URL",
    "CHRONOCONTEXT_DUCKLING_TIMEOUT",
    "CHRONOCONTEXT_INCLUDE_LATENT",
    "CHRONOCONTEXT_TEMPORAL_CONTEXT",
    "CHRONOCONTEXT_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer environment out of settings resolution."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@dataclass
class ExtractorCall:
    text: str
    language: str
    reference_time: datetime
    min_year: int
    max_year: int


class ScriptedExtractor:
    """Replays Duckling-style matches per text (and optionally reference time).

    Offsets of the scripted matches are relative to the scripted text, just
    like the real extractor returns them for the slice it was given.
    """

    def __init__(self, languages=("en", "de")) -> None:
        self.languages = set(languages)
        self.responses: Dict[Tuple[str, Optional[datetime]], List[RawMatch]] = {}
        self.failures: Dict[str, Exception] = {}
        self.calls: List[ExtractorCall] = []

    def script(
        self,
        text: str,
        *matches: RawMatch,
        reference_time: Optional[datetime] = None,
    ) -> "ScriptedExtractor":
        self.responses[(text, reference_time)] = list(matches)
        return self

    def fail_on(self, text: str, error: Exception) -> "ScriptedExtractor":
        self.failures[text] = error
        return self

    def extract(
        self,
        text: str,
        language: str,
        reference_time: datetime,
        min_year: int,
        max_year: int,
    ) -> List[RawMatch]:
        self.calls.append(ExtractorCall(text, language, reference_time, min_year, max_year))
        if text in self.failures:
            raise self.failures[text]
        if (text, reference_time) in self.responses:
            return list(self.responses[(text, reference_time)])
        return list(self.responses.get((text, None), []))

    def is_language_supported(self, language: str) -> bool:
        return language in self.languages


class MatchFactory:
    """Builds raw matches by locating a phrase within a text."""

    @staticmethod
    def span(text: str, phrase: str, occurrence: int = 0) -> Tuple[int, int]:
        start = -1
        for _ in range(occurrence + 1):
            start = text.index(phrase, start + 1)
        return start, start + len(phrase)

    def instant(
        self,
        text: str,
        phrase: str,
        literal: str,
        grain: Optional[str] = "second",
        latent: bool = False,
        occurrence: int = 0,
    ) -> RawMatch:
        start, end = self.span(text, phrase, occurrence)
        return RawMatch(
            dimension="time",
            start=start,
            end=end,
            latent=latent,
            value=RawInstantValue(literal, grain),
            body=phrase,
        )

    def interval(
        self,
        text: str,
        phrase: str,
        start_literal: Optional[str] = None,
        end_literal: Optional[str] = None,
        grain: Optional[str] = "hour",
        latent: bool = False,
        occurrence: int = 0,
    ) -> RawMatch:
        start, end = self.span(text, phrase, occurrence)
        return RawMatch(
            dimension="time",
            start=start,
            end=end,
            latent=latent,
            value=RawIntervalValue(
                start=RawInstantValue(start_literal, grain) if start_literal else None,
                end=RawInstantValue(end_literal, grain) if end_literal else None,
            ),
            body=phrase,
        )

    def duration(self, text: str, phrase: str, latent: bool = False) -> RawMatch:
        start, end = self.span(text, phrase)
        return RawMatch(
            dimension="duration",
            start=start,
            end=end,
            latent=latent,
            body=phrase,
        )


@pytest.fixture
def extractor() -> ScriptedExtractor:
    """Scripted extractor supporting English and German."""
    return ScriptedExtractor()


@pytest.fixture
def matches() -> MatchFactory:
    return MatchFactory()


@pytest.fixture
def reference_time() -> datetime:
    """Friday 2016-04-01 08:00 (naive)."""
    return datetime(2016, 4, 1, 8, 0)
