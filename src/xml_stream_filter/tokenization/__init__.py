"""Tokenization layer for XML stream filtering.

This module provides the forward-only token stream the scan loop pulls
element start and end events from, and the factory used to open it.
"""

from .reader import (
    END_ELEMENT,
    START_ELEMENT,
    XMLEventReader,
    XMLEventReaderFactory,
    local_name,
)

__all__ = [
    "END_ELEMENT",
    "START_ELEMENT",
    "XMLEventReader",
    "XMLEventReaderFactory",
    "local_name",
]
