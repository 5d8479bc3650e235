"""Grain-aware date arithmetic.

Truncation, comparison and range helpers used by the contextualizer and by
consumers of ``Temporal`` values:
- truncate / compare_truncated: calendar truncation with grain step-down
- inclusive_end: turn an exclusive interval end into an inclusive one
- date_range: earliest and latest instant covered by a temporal
- with_default_time / to_datetime: coercion helpers
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Optional, Tuple

from dateutil import parser as dateutil_parser
from dateutil.relativedelta import relativedelta

from chronocontext.extraction.temporal.exceptions import GrainTruncationUnsupported
from chronocontext.extraction.temporal.models import Grain, Temporal

logger = logging.getLogger(__name__)


# Fields reset to their minimum when truncating at a grain. Week has no
# calendar-field truncation and is handled by the step-down in
# compare_truncated.
_TRUNCATION_FIELDS = {
    Grain.SECOND: {"microsecond": 0},
    Grain.MINUTE: {"second": 0, "microsecond": 0},
    Grain.HOUR: {"minute": 0, "second": 0, "microsecond": 0},
    Grain.DAY: {"hour": 0, "minute": 0, "second": 0, "microsecond": 0},
    Grain.MONTH: {"day": 1, "hour": 0, "minute": 0, "second": 0, "microsecond": 0},
    Grain.YEAR: {
        "month": 1,
        "day": 1,
        "hour": 0,
        "minute": 0,
        "second": 0,
        "microsecond": 0,
    },
}

_GRAIN_DELTAS = {
    Grain.MILLISECOND: relativedelta(microseconds=1000),
    Grain.SECOND: relativedelta(seconds=1),
    Grain.MINUTE: relativedelta(minutes=1),
    Grain.HOUR: relativedelta(hours=1),
    Grain.DAY: relativedelta(days=1),
    Grain.WEEK: relativedelta(weeks=1),
    Grain.MONTH: relativedelta(months=1),
    Grain.YEAR: relativedelta(years=1),
}


def truncate(value: datetime, grain: Grain) -> datetime:
    """Truncate ``value`` to the start of its ``grain`` period.

    Raises:
        GrainTruncationUnsupported: For grains without calendar truncation
            (week)
    """
    if grain is Grain.MILLISECOND:
        return value.replace(microsecond=value.microsecond - value.microsecond % 1000)
    fields = _TRUNCATION_FIELDS.get(grain)
    if fields is None:
        raise GrainTruncationUnsupported(grain)
    return value.replace(**fields)


def compare_truncated(date1: datetime, date2: datetime, grain: Grain) -> int:
    """Compare two dates truncated at ``grain``.

    If truncation is not supported for ``grain`` the next finer grain is
    tried, until one succeeds or no grain is left. In the latter case the
    untruncated dates are compared.

    Returns:
        -1, 0 or 1 like a classic comparator
    """
    current: Optional[Grain] = grain
    truncated1: Optional[datetime] = None
    truncated2: Optional[datetime] = None
    while truncated2 is None and current is not None:
        try:
            truncated1 = truncate(date1, current)
            truncated2 = truncate(date2, current)
        except GrainTruncationUnsupported:
            finer = current.finer()
            if finer is not None:
                logger.debug(
                    f"Can not truncate dates with grain {current.value}, "
                    f"will use {finer.value} instead"
                )
            current = finer
            truncated1 = truncated2 = None

    if truncated1 is None or truncated2 is None:
        logger.warning(
            f"Unable to truncate {date1} and {date2} using grain {grain.value} "
            "(comparing the original dates)"
        )
        truncated1, truncated2 = date1, date2

    return (truncated1 > truncated2) - (truncated1 < truncated2)


def same_day(date1: datetime, date2: datetime) -> bool:
    return truncate(date1, Grain.DAY) == truncate(date2, Grain.DAY)


def inclusive_end(exclusive: Temporal) -> Temporal:
    """Convert an exclusive interval end into an inclusive one.

    Intervals are usually represented with an exclusive end: ``1.3.-3.3.2016``
    yields ``2016-03-01`` to ``2016-03-04`` with day grain, so the inclusive
    end is ``2016-03-03``. Months and years are stepped back on the calendar.
    """
    return Temporal(exclusive.date - _GRAIN_DELTAS[exclusive.grain], exclusive.grain)


def _period_start(value: datetime, grain: Grain) -> datetime:
    if grain is Grain.WEEK:
        day = truncate(value, Grain.DAY)
        return day - timedelta(days=day.weekday())
    return truncate(value, grain)


def date_range(temporal: Temporal) -> Tuple[datetime, datetime]:
    """Earliest and latest (exclusive) instant covered by ``temporal``.

    Weeks start on Monday.
    """
    start = _period_start(temporal.date, temporal.grain)
    return start, start + _GRAIN_DELTAS[temporal.grain]


def with_default_time(temporal: Temporal, default_time: time) -> datetime:
    """Date of ``temporal`` with ``default_time`` for day-or-coarser grains.

    Finer grains already carry a meaningful time of day and are returned
    unchanged.
    """
    if temporal.grain.rank >= Grain.DAY.rank:
        return temporal.date.replace(
            hour=default_time.hour,
            minute=default_time.minute,
            second=default_time.second,
            microsecond=default_time.microsecond,
        )
    return temporal.date


def to_datetime(value: Any) -> Optional[datetime]:
    """Coerce ``value`` to a ``datetime``.

    Supports ``Temporal``, ``datetime``, ``date`` and ISO 8601 strings.
    Returns None for None and for strings that can not be parsed.
    """
    if value is None:
        return None
    if isinstance(value, Temporal):
        return value.date
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    try:
        return dateutil_parser.isoparse(str(value))
    except (ValueError, OverflowError) as e:
        logger.warning(f"Could not parse date '{value}': {e}")
        return None


__all__ = [
    "truncate",
    "compare_truncated",
    "same_day",
    "inclusive_end",
    "date_range",
    "with_default_time",
    "to_datetime",
]
