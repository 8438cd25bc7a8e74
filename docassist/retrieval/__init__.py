"""Retrieval package.

Architectural role:
    Gathers reference context (URLs and local files) for context-augmented
    generation. See `context_aggregator` for the ordering and failure contract.
"""

from docassist.retrieval.context_aggregator import (
    AggregatorConfig,
    ContextAggregator,
    ContextBundle,
    ContextEntry,
    FileSource,
    ReferenceSource,
    SourceError,
    UrlSource,
    parse_url_lines,
)

__all__ = [
    "AggregatorConfig",
    "ContextAggregator",
    "ContextBundle",
    "ContextEntry",
    "FileSource",
    "ReferenceSource",
    "SourceError",
    "UrlSource",
    "parse_url_lines",
]
