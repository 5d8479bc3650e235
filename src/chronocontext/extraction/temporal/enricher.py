"""Temporal Enricher - Document Integration for Temporal Contextualization.

This module connects the contextualizer to documents:
- Language checks (missing, too short or unsupported languages are skipped)
- Temporal context selection (document, configuration, section overrides)
- Section handling (non-content and already processed sections are skipped)
- Writing shifted annotations to an annotation sink

A failing section never aborts the document; it is logged and skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Protocol

from chronocontext.extraction.temporal.contextualizer import TemporalContextualizer
from chronocontext.extraction.temporal.dates import to_datetime
from chronocontext.extraction.temporal.exceptions import ExtractionFailure
from chronocontext.extraction.temporal.models import TemporalAnnotation

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 40


class AnnotationSink(Protocol):
    """Protocol for annotation consumers."""

    def add(self, annotation: TemporalAnnotation) -> None:
        """Receive one annotation with absolute document offsets."""
        ...


class ListAnnotationSink:
    """Sink collecting annotations in memory."""

    def __init__(self) -> None:
        self.annotations: List[TemporalAnnotation] = []

    def add(self, annotation: TemporalAnnotation) -> None:
        self.annotations.append(annotation)

    def __len__(self) -> int:
        return len(self.annotations)

    def __iter__(self):
        return iter(self.annotations)


@dataclass
class Section:
    """A span of a document.

    Attributes:
        start: Absolute start offset in the document text
        end: Absolute end offset (exclusive)
        temporal_context: Reference time overriding the document context
        content: False for sections that hold no running text (headers,
                 navigation, ...); those are not analysed
    """

    start: int
    end: int
    temporal_context: Optional[datetime] = None
    content: bool = True
    document: Optional["Document"] = field(default=None, repr=False, compare=False)

    @property
    def text(self) -> str:
        if self.document is None:
            return ""
        return self.document.text[self.start:self.end]


@dataclass
class Document:
    """A text with its language, temporal context and optional sections."""

    text: str
    language: Optional[str] = None
    temporal_context: Optional[datetime] = None
    sections: List[Section] = field(default_factory=list)

    def __post_init__(self) -> None:
        for section in self.sections:
            section.document = self

    def add_section(
        self,
        start: int,
        end: int,
        temporal_context: Optional[datetime] = None,
        content: bool = True,
    ) -> Section:
        section = Section(start, end, temporal_context, content, document=self)
        self.sections.append(section)
        return section


def _preview(text: str) -> str:
    if len(text) > PREVIEW_LENGTH:
        text = text[: PREVIEW_LENGTH - 3] + "..."
    return text.replace("\n", "\\n").replace("\t", "\\t").replace("\r", "\\r")


class TemporalEnricher:
    """Annotate documents with contextualized date/time mentions.

    Example:
        >>> sink = ListAnnotationSink()
        >>> enricher = TemporalEnricher(contextualizer, sink)
        >>> enricher.process(Document(text, language="en"))
        >>> print(f"Found {len(sink)} temporal annotations")
    """

    def __init__(
        self,
        contextualizer: TemporalContextualizer,
        sink: Optional[AnnotationSink] = None,
        include_latent: bool = False,
        temporal_context: Any = None,
    ):
        """Initialize temporal enricher.

        Args:
            contextualizer: Contextualizer used for every section
            sink: Receiver of the annotations (defaults to an in-memory sink)
            include_latent: Keep latent (low confidence) mentions
            temporal_context: Configured reference time used when a document
                              carries none. Accepts anything ``to_datetime``
                              understands; defaults to now.
        """
        self.contextualizer = contextualizer
        self.sink = sink if sink is not None else ListAnnotationSink()
        self.include_latent = include_latent
        self.temporal_context = temporal_context

    def process(
        self,
        document: Document,
        include_latent: Optional[bool] = None,
    ) -> List[TemporalAnnotation]:
        """Contextualize all content sections of ``document``.

        Args:
            document: Document to process
            include_latent: Overrides the configured latent handling

        Returns:
            The annotations that were passed to the sink
        """
        language = document.language
        if language is None:
            logger.debug("Unable to extract date/time values: the language is unknown")
            return []
        if len(language) < 2:
            logger.debug(
                f"Invalid language '{language}'. Will not extract date/time values"
            )
            return []
        language = language.lower()
        logger.debug(f" - language: {language}")

        include = self.include_latent if include_latent is None else include_latent
        if not self.contextualizer.is_language_supported(language):
            logger.debug(
                f"Language '{language}' is not supported. "
                "Will not extract date/time values"
            )
            return []

        global_context = self._global_context(document)
        logger.debug(f" - global temporal context: {global_context.isoformat()}")

        sections = document.sections or [
            Section(0, len(document.text), document=document)
        ]
        annotations: List[TemporalAnnotation] = []
        processed_until = -1
        for section in sections:
            if not section.content or section.end <= processed_until:
                continue

            if section.start < processed_until:
                logger.debug(
                    f"Partly overlapping {section} (already processed until: "
                    f"{processed_until})"
                )
                offset = processed_until
            else:
                offset = section.start
            content = document.text[offset:section.end]

            context = section.temporal_context or global_context
            logger.debug(f"Process {section} - temporal context: {context.isoformat()}")
            try:
                tokens = self.contextualizer.resolve(content, language, context, include)
            except ExtractionFailure as e:
                logger.warning(
                    f"Failed to parse section [{section.start},{section.end}]: "
                    f"{_preview(section.text)} [lang: {language}] "
                    f"({type(e).__name__} - {e})"
                )
                logger.debug("Section failure details", exc_info=True)
                continue
            processed_until = section.end

            for token in tokens:
                annotation = TemporalAnnotation.from_token(token, offset)
                self.sink.add(annotation)
                annotations.append(annotation)

        logger.info(
            f"Temporal enrichment complete: {len(annotations)} annotations"
        )
        return annotations

    def _global_context(self, document: Document) -> datetime:
        if document.temporal_context is not None:
            return document.temporal_context
        configured = to_datetime(self.temporal_context)
        return configured if configured is not None else datetime.now()


__all__ = [
    "AnnotationSink",
    "ListAnnotationSink",
    "Section",
    "Document",
    "TemporalEnricher",
]
