"""chronocontext extraction package.

Clients:
    DucklingHTTPExtractor - Date/time extraction via a Duckling HTTP server

Example:
    >>> from chronocontext.extraction import DucklingHTTPExtractor
    >>> from chronocontext.extraction.temporal import TemporalContextualizer
    >>>
    >>> contextualizer = TemporalContextualizer(DucklingHTTPExtractor())
    >>> tokens = contextualizer.resolve("from May 27 until June 2", "en")
"""

from .duckling_client import DucklingHTTPExtractor, DEFAULT_LOCALES

__all__ = [
    "DucklingHTTPExtractor",
    "DEFAULT_LOCALES",
]
