"""Temporal contextualization of date/time mentions.

This package turns the raw, possibly overlapping matches of a rule-based
date/time extractor into a clean sequence of instants and intervals:
- Temporal value models (grains, temporals, date tokens)
- Grain-aware date helpers
- The contextualizer carrying reference time across sequential mentions
- Document enrichment writing annotations to a sink
"""

from chronocontext.extraction.temporal.models import (
    # Enums
    Grain,
    # Core data structures
    Temporal,
    DateToken,
    token_sort_key,
    confidence_sort_key,
    # Extractor output
    RawMatch,
    RawInstantValue,
    RawIntervalValue,
    # Annotation output
    TemporalAnnotation,
)

from chronocontext.extraction.temporal.exceptions import (
    ExtractionFailure,
    ExtractorUnavailable,
    ValueParseFailure,
    GrainTruncationUnsupported,
    ContextInvariantError,
)

from chronocontext.extraction.temporal.dates import (
    truncate,
    compare_truncated,
    same_day,
    inclusive_end,
    date_range,
    with_default_time,
    to_datetime,
)

from chronocontext.extraction.temporal.contextualizer import (
    TemporalExtractor,
    TemporalContextualizer,
    latent_confidence,
    parse_value,
)

from chronocontext.extraction.temporal.enricher import (
    AnnotationSink,
    ListAnnotationSink,
    Document,
    Section,
    TemporalEnricher,
)

__all__ = [
    # Enums
    "Grain",
    # Core data structures
    "Temporal",
    "DateToken",
    "token_sort_key",
    "confidence_sort_key",
    # Extractor output
    "RawMatch",
    "RawInstantValue",
    "RawIntervalValue",
    # Annotation output
    "TemporalAnnotation",
    # Exceptions
    "ExtractionFailure",
    "ExtractorUnavailable",
    "ValueParseFailure",
    "GrainTruncationUnsupported",
    "ContextInvariantError",
    # Date helpers
    "truncate",
    "compare_truncated",
    "same_day",
    "inclusive_end",
    "date_range",
    "with_default_time",
    "to_datetime",
    # Contextualization
    "TemporalExtractor",
    "TemporalContextualizer",
    "latent_confidence",
    "parse_value",
    # Document enrichment
    "AnnotationSink",
    "ListAnnotationSink",
    "Document",
    "Section",
    "TemporalEnricher",
]
