"""Temporal value models for date/time contextualization.

This module defines the data structures shared by the extractor, the
contextualization engine and the annotation sink:
- Grain: ordered precision levels (millisecond ... year)
- Temporal: a point in time with the grain it was resolved at
- DateToken: an instant or interval anchored to a character span
- RawMatch / RawInstantValue / RawIntervalValue: raw extractor output
- TemporalAnnotation: the record written to annotation sinks
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Grain(str, Enum):
    """Precision of a temporal value, declared from finest to coarsest.

    Declaration order is significant: ``rank`` grows with the covered
    duration, so ``Grain.YEAR.rank > Grain.DAY.rank``.
    """

    MILLISECOND = "millisecond"
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def rank(self) -> int:
        return _GRAIN_ORDER.index(self)

    def is_coarser_than(self, other: "Grain") -> bool:
        return self.rank > other.rank

    def finer(self) -> Optional["Grain"]:
        """Next finer grain, or None for the finest one."""
        if self.rank == 0:
            return None
        return _GRAIN_ORDER[self.rank - 1]

    @classmethod
    def parse(cls, name: str) -> "Grain":
        """Parse a grain name as emitted by the extractor (``hour``, ``:hour``).

        Raises:
            ValueError: If the name is not a known grain
        """
        value = str(name).strip().lower()
        if value.startswith(":"):
            value = value[1:]
        return cls(value)


_GRAIN_ORDER = tuple(Grain)


# ---------------------------------------------------------------------------
# Core Temporal Data Structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Temporal:
    """A resolved point in time.

    ``date`` is expressed in the context timezone that was applied at parse
    time. ``grain`` states the precision to use for comparison and rounding;
    a day-grained value may still carry a time of day internally.
    """

    date: datetime
    grain: Grain = Grain.SECOND

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "date": self.date.isoformat(),
            "grain": self.grain.value,
        }

    def __str__(self) -> str:
        return f"{self.date.isoformat()}(grain={self.grain.value})"


@dataclass(frozen=True)
class DateToken:
    """A temporal mention resolved to an instant or an interval.

    Offsets are a half-open ``[offset_start, offset_end)`` range into the
    original, un-sliced content. Instants only carry ``start``; closed
    intervals carry both bounds; open intervals carry exactly one.
    """

    offset_start: int
    offset_end: int
    instant: bool
    start: Optional[Temporal] = None
    end: Optional[Temporal] = None
    confidence: float = 0.0

    def __post_init__(self) -> None:
        if self.offset_start < 0 or self.offset_end <= self.offset_start:
            raise ValueError(
                f"Invalid token span [{self.offset_start},{self.offset_end})"
            )
        if self.start is None and self.end is None:
            raise ValueError("DateToken requires a start or an end value")
        object.__setattr__(self, "confidence", min(1.0, max(0.0, float(self.confidence))))

    @property
    def is_interval(self) -> bool:
        return not self.instant

    @property
    def is_open_interval(self) -> bool:
        return self.is_interval and (self.start is None or self.end is None)

    @property
    def value(self) -> Temporal:
        """The start if present, otherwise the end."""
        return self.start if self.start is not None else self.end

    @property
    def span(self) -> Tuple[int, int]:
        return self.offset_start, self.offset_end

    def shifted(self, delta: int) -> "DateToken":
        """Copy of this token with both offsets moved by ``delta`` characters."""
        return replace(
            self,
            offset_start=self.offset_start + delta,
            offset_end=self.offset_end + delta,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "offset_start": self.offset_start,
            "offset_end": self.offset_end,
            "instant": self.instant,
            "start": self.start.to_dict() if self.start else None,
            "end": self.end.to_dict() if self.end else None,
            "confidence": self.confidence,
        }

    def __str__(self) -> str:
        if self.instant:
            kind = "instant"
        else:
            kind = "interval (open)" if self.is_open_interval else "interval"
        return (
            f"DateToken [{kind}, start={self.start}, end={self.end}, "
            f"offset={self.offset_start}..{self.offset_end}, conf={self.confidence}]"
        )


def token_sort_key(token: DateToken) -> Tuple[int, int]:
    """Lower start offset first; for equal starts the longer mention first."""
    return token.offset_start, -token.offset_end


def confidence_sort_key(token: DateToken) -> float:
    """Highest confidence first."""
    return -token.confidence


# ---------------------------------------------------------------------------
# Raw Extractor Output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawInstantValue:
    """A single date-time literal as emitted by the extractor.

    ``literal`` has the form ``YYYY-MM-DDTHH:mm:ss.sss`` optionally followed
    by a ``Z`` or ``+HH:MM`` suffix.
    """

    literal: str
    grain: Optional[str] = None


@dataclass(frozen=True)
class RawIntervalValue:
    """An interval value; either bound may be missing (open interval)."""

    start: Optional[RawInstantValue] = None
    end: Optional[RawInstantValue] = None


RawValue = Union[RawInstantValue, RawIntervalValue]


@dataclass(frozen=True)
class RawMatch:
    """One candidate match of the extractor.

    Offsets are relative to the text passed to the extractor.
    """

    dimension: str
    start: int
    end: int
    latent: bool = False
    value: Optional[RawValue] = None
    body: Optional[str] = None


# ---------------------------------------------------------------------------
# Annotation Output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TemporalAnnotation:
    """Temporal annotation attached to an absolute document span."""

    start: int
    end: int
    confidence: float
    instant: bool
    start_value: Optional[Temporal] = None
    end_value: Optional[Temporal] = None

    @classmethod
    def from_token(cls, token: DateToken, offset: int = 0) -> "TemporalAnnotation":
        """Build an annotation for ``token`` shifted by the section ``offset``."""
        return cls(
            start=token.offset_start + offset,
            end=token.offset_end + offset,
            confidence=token.confidence,
            instant=token.instant,
            start_value=token.start,
            end_value=token.end,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "start": self.start,
            "end": self.end,
            "confidence": self.confidence,
            "instant": self.instant,
            "start_value": self.start_value.to_dict() if self.start_value else None,
            "end_value": self.end_value.to_dict() if self.end_value else None,
        }
