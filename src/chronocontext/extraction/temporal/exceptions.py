"""Contextualization-Specific Exceptions.

Defines the exception hierarchy for the temporal contextualization engine.
Extraction failures extend the package-wide ``ExtractionError`` so callers
can treat them like any other processing error.
"""

from __future__ import annotations

from typing import Optional

from chronocontext.errors import ExtractionError, ExtractorConnectionError


class ExtractionFailure(ExtractionError):
    """The external time extractor failed for a piece of text.

    Raised by the contextualizer when the extractor call fails. Document
    processing catches it per section and carries on with the next one.

    Attributes:
        language: Language the extractor was asked to use
        offset: Offset of the sliced text within the content
        cause: Underlying exception (optional)
    """

    code = "EXTRACTION_ERROR"
    default_message = "Time extraction failed"

    def __init__(
        self,
        message: str,
        language: Optional[str] = None,
        offset: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            details={"language": language, "offset": offset},
        )
        self.language = language
        self.offset = offset
        self.cause = cause


class ExtractorUnavailable(ExtractionFailure, ExtractorConnectionError):
    """The extractor service could not be reached or did not answer in time.

    Still an ``ExtractionFailure``, so document processing skips the section
    as for any other extractor failure.
    """

    code = "EXTRACTOR_CONNECTION_ERROR"
    default_message = "Time extractor unavailable"


class ValueParseFailure(ExtractionError):
    """A single date-time literal returned by the extractor is unparseable.

    Only the affected match is dropped.

    Attributes:
        literal: The literal that failed to parse
    """

    code = "EXTRACTION_ERROR"
    default_message = "Invalid date-time literal"

    def __init__(self, literal: str, cause: Optional[Exception] = None):
        super().__init__(
            f"Unable to parse date-time literal '{literal}'",
            details={"literal": literal},
        )
        self.literal = literal
        self.cause = cause


class GrainTruncationUnsupported(ValueError):
    """Calendar truncation is not available for a grain.

    Recovered internally by stepping down to the next finer grain.
    """

    def __init__(self, grain):
        super().__init__(f"Truncation to grain '{grain.value}' is not supported")
        self.grain = grain


class ContextInvariantError(AssertionError):
    """The contextualization loop would stop making progress.

    Indicates a misbehaving extractor or a bug in the engine; never
    swallowed by document processing.
    """

    def __init__(self, message: str, offset: int, token=None):
        super().__init__(message)
        self.offset = offset
        self.token = token
