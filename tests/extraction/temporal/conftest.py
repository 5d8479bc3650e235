"""Test fixtures for temporal contextualization tests.

Provides:
- A contextualizer wired to the scripted extractor
- Document enrichment with an in-memory sink
"""

import pytest

from chronocontext.extraction.temporal.contextualizer import TemporalContextualizer
from chronocontext.extraction.temporal.enricher import ListAnnotationSink, TemporalEnricher


@pytest.fixture
def contextualizer(extractor):
    return TemporalContextualizer(extractor)


@pytest.fixture
def sink():
    return ListAnnotationSink()


@pytest.fixture
def enricher(contextualizer, sink, reference_time):
    """Enricher with a configured temporal context of 2016-04-01 08:00."""
    return TemporalEnricher(contextualizer, sink, temporal_context=reference_time)
