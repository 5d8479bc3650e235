"""Temporal contextualization of extracted date/time mentions.

The external extractor resolves expressions relative to one fixed reference
time and only sees the text it is given. Real documents mention times
sequentially with carried-over context ("on May 27 at 18h ... and on the 29th
in the evening": the 29th is in May). The contextualizer therefore re-parses
the remaining text after every resolved mention, using that mention as the
new reference time, and merges the results:

- a finer statement of the current context replaces the coarser one
- an open interval without start ("until Sunday 22h") is combined with the
  preceding instant into a closed interval
- latent (low confidence) matches are dropped unless requested

The contextualizer holds no per-call state, so one instance can be shared
between threads as long as the extractor is thread-safe.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, tzinfo
from typing import List, Optional, Protocol, Sequence

from dateutil import parser as dateutil_parser

from chronocontext.extraction.temporal.dates import compare_truncated, same_day
from chronocontext.extraction.temporal.exceptions import (
    ContextInvariantError,
    ExtractionFailure,
    ValueParseFailure,
)
from chronocontext.extraction.temporal.models import (
    DateToken,
    Grain,
    RawInstantValue,
    RawIntervalValue,
    RawMatch,
    Temporal,
    token_sort_key,
)

logger = logging.getLogger(__name__)


TIME_DIMENSION = "time"
DURATION_DIMENSION = "duration"

DEFAULT_CONFIDENCE = 0.9
LATENT_CONFIDENCE = 0.1

# Hour used for day-or-coarser contexts. The extractor uses the context hour
# to pick between 12h and 24h readings and midnight biases it towards PM.
CONTEXT_DEFAULT_HOUR = 6

# Plausible year window handed to the extractor, relative to the context year
MIN_YEAR_OFFSET = -1
MAX_YEAR_OFFSET = 5

TIMEZONE_SUFFIX_PATTERN = re.compile(r"(Z|[+-]\d\d:?\d\d)$")


class TemporalExtractor(Protocol):
    """Protocol for the rule-based date/time extractor."""

    def extract(
        self,
        text: str,
        language: str,
        reference_time: datetime,
        min_year: int,
        max_year: int,
    ) -> Sequence[RawMatch]:
        """Return raw matches with offsets relative to ``text``."""
        ...

    def is_language_supported(self, language: str) -> bool:
        """Check whether rules for ``language`` are available."""
        ...


def latent_confidence(latent: bool) -> float:
    """Map the extractor's latent flag to a token confidence."""
    return LATENT_CONFIDENCE if latent else DEFAULT_CONFIDENCE


def parse_value(
    raw: Optional[RawInstantValue],
    context_tz: Optional[tzinfo],
) -> Optional[Temporal]:
    """Parse a raw extractor value into a ``Temporal``.

    The timezone suffix of the literal is discarded and the context timezone
    attached instead; the caller's context is authoritative. Missing grains
    default to second, unknown grains are logged and default to second too.

    Raises:
        ValueParseFailure: If the literal is not a valid date-time
    """
    if raw is None:
        return None

    literal = TIMEZONE_SUFFIX_PATTERN.sub("", raw.literal.strip(), count=1)
    logger.debug(f"Parsing time-string {raw.literal} (stripped: {literal})")
    try:
        parsed = dateutil_parser.isoparse(literal)
    except (ValueError, OverflowError) as e:
        raise ValueParseFailure(raw.literal, cause=e) from e
    parsed = parsed.replace(tzinfo=context_tz)

    grain = Grain.SECOND
    if raw.grain is not None:
        try:
            grain = Grain.parse(raw.grain)
        except ValueError:
            logger.warning(
                f"Unknown grain value {raw.grain} "
                f"(supported: {', '.join(g.value for g in Grain)})"
            )
    return Temporal(parsed, grain)


class TemporalContextualizer:
    """Resolve date/time mentions in a text with carried-over context.

    Example:
        >>> contextualizer = TemporalContextualizer(DucklingHTTPExtractor())
        >>> tokens = contextualizer.resolve(
        ...     "on May 27 at 18h and on the 29th in the evening",
        ...     "en",
        ...     datetime(2016, 4, 1, 8, 0),
        ... )
        >>> [t.value.date.month for t in tokens]
        [5, 5]
    """

    def __init__(self, extractor: TemporalExtractor, include_latent: bool = False):
        """Initialize the contextualizer.

        Args:
            extractor: Extractor returning raw matches for a text
            include_latent: Default for keeping latent (low confidence) matches
        """
        self.extractor = extractor
        self.include_latent = include_latent

    def is_language_supported(self, language: str) -> bool:
        return self.extractor.is_language_supported(language)

    def resolve(
        self,
        content: str,
        language: str,
        reference_time: Optional[datetime] = None,
        include_latent: Optional[bool] = None,
    ) -> List[DateToken]:
        """Extract and contextualize all date/time mentions of ``content``.

        Args:
            content: Text to analyse
            language: Language of the text (e.g. ``en``)
            reference_time: Reference time for relative expressions
                           (defaults to now)
            include_latent: Keep latent matches; None uses the instance default

        Returns:
            Tokens ordered by start offset, longer mentions first on ties

        Raises:
            ExtractionFailure: If the extractor fails
        """
        if reference_time is None:
            reference_time = datetime.now()
        logger.debug(f"Analyzing ({language}) content of {len(content)} chars")

        context = reference_time
        context_grain = Grain.SECOND
        offset = 0
        contextualized: List[DateToken] = []

        tokens = self.extract_tokens(offset, content, language, context, include_latent)
        while tokens:
            head = tokens[0]
            value = head.value
            token = head
            if contextualized:
                if (
                    context_grain.is_coarser_than(value.grain)
                    and compare_truncated(context, value.date, context_grain) == 0
                ):
                    # same moment as the context, only more specific
                    contextualized.pop()
                elif head.is_open_interval and head.start is None:
                    combined = self._combine_open_interval(contextualized[-1], head)
                    if combined is not None:
                        contextualized.pop()
                        token = combined
            contextualized.append(token)

            # further tokens for the same mention (other dimensions)
            next_idx = 1
            while next_idx < len(tokens) and tokens[next_idx].span == head.span:
                contextualized.append(tokens[next_idx])
                next_idx += 1

            if len(tokens) > next_idx:
                if head.offset_end <= offset:
                    raise ContextInvariantError(
                        f"Token {head} does not advance past offset {offset}",
                        offset=offset,
                        token=head,
                    )
                context = value.date
                context_grain = value.grain
                if context_grain.rank >= Grain.DAY.rank:
                    context = self._normalize_context(context, reference_time)
                offset = head.offset_end
                tokens = self.extract_tokens(
                    offset, content, language, context, include_latent
                )
            else:
                tokens = []

        return contextualized

    def extract_tokens(
        self,
        offset: int,
        content: str,
        language: str,
        context: datetime,
        include_latent: Optional[bool] = None,
    ) -> List[DateToken]:
        """Extract tokens from ``content[offset:]`` using ``context``.

        Returned tokens carry absolute offsets into ``content`` and are sorted
        by ``token_sort_key``.

        Raises:
            ExtractionFailure: If the extractor fails
            ContextInvariantError: If the extractor returns a span outside the
                                   text it was given
        """
        include = self.include_latent if include_latent is None else include_latent
        text = content[offset:]
        logger.debug(
            f"Extract tokens [offset: {offset} | context: {context.isoformat()} "
            f"| remaining: {len(text)} chars]"
        )

        min_year = context.year + MIN_YEAR_OFFSET
        max_year = context.year + MAX_YEAR_OFFSET
        try:
            matches = self.extractor.extract(text, language, context, min_year, max_year)
        except ExtractionFailure:
            raise
        except Exception as e:
            raise ExtractionFailure(
                f"Time extractor failed for language '{language}': {e}",
                language=language,
                offset=offset,
                cause=e,
            ) from e

        seen = set()
        tokens: List[DateToken] = []
        for match in matches:
            logger.debug(f"Extractor match: {match}")
            if match.start < 0 or match.end <= match.start or match.end > len(text):
                raise ContextInvariantError(
                    f"Extractor returned span [{match.start},{match.end}) outside "
                    f"of a text with {len(text)} chars",
                    offset=offset,
                )
            start_offset = match.start + offset
            end_offset = match.end + offset

            key = (match.dimension, start_offset, end_offset)
            if key in seen:
                logger.debug(
                    f"Ignore {match} because of an existing match for "
                    f"{match.dimension}@[{start_offset},{end_offset}]"
                )
                continue
            seen.add(key)

            if match.latent and not include:
                continue

            if match.dimension == TIME_DIMENSION:
                try:
                    token = self._build_token(match, start_offset, end_offset, context.tzinfo)
                except ValueParseFailure as e:
                    logger.warning(f"Extractor returned an invalid date-time value: {e}")
                    continue
                if token is not None:
                    tokens.append(token)
            elif match.dimension == DURATION_DIMENSION:
                logger.debug(
                    f"Duration not supported, ignoring match at [{start_offset},{end_offset}]"
                )
            else:
                logger.debug(f"Ignoring match of unsupported dimension '{match.dimension}'")

        tokens.sort(key=token_sort_key)
        return tokens

    @staticmethod
    def _build_token(
        match: RawMatch,
        start_offset: int,
        end_offset: int,
        context_tz: Optional[tzinfo],
    ) -> Optional[DateToken]:
        confidence = latent_confidence(match.latent)
        value = match.value
        if isinstance(value, RawIntervalValue):
            start = parse_value(value.start, context_tz)
            end = parse_value(value.end, context_tz)
            instant = False
        else:
            start = parse_value(value, context_tz)
            end = None
            instant = True

        if start is None and end is None:
            logger.warning(
                f"Ignoring time match at [{start_offset},{end_offset}] without a value"
            )
            return None
        return DateToken(
            offset_start=start_offset,
            offset_end=end_offset,
            instant=instant,
            start=start,
            end=end,
            confidence=confidence,
        )

    @staticmethod
    def _combine_open_interval(last: DateToken, token: DateToken) -> Optional[DateToken]:
        """Combine ``last`` with an open interval lacking a start.

        Only two tokens are ever combined: ``last`` must be an instant or an
        open interval without end, and the end of ``token`` must lie after the
        start of ``last``.
        """
        if not (last.instant or (last.is_open_interval and last.end is None)):
            return None
        if not token.end.date > last.start.date:
            return None

        combined = DateToken(
            offset_start=last.offset_start,
            offset_end=token.offset_end,
            instant=False,
            start=last.start,
            end=token.end,
            confidence=max(last.confidence, token.confidence),
        )
        logger.debug(f"Combined {last} with {token} to interval {combined}")
        return combined

    @staticmethod
    def _normalize_context(context: datetime, reference_time: datetime) -> datetime:
        if same_day(reference_time, context):
            # keep the time of the reference as context
            return reference_time
        return context.replace(
            hour=CONTEXT_DEFAULT_HOUR, minute=0, second=0, microsecond=0
        )


__all__ = [
    "TemporalExtractor",
    "TemporalContextualizer",
    "latent_confidence",
    "parse_value",
    "DEFAULT_CONFIDENCE",
    "LATENT_CONFIDENCE",
    "TIME_DIMENSION",
    "DURATION_DIMENSION",
]
