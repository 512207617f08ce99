"""Shared utilities for XML stream filtering.

This module provides configuration objects, the error taxonomy, result types
and logging helpers used across all layers.
"""

from .config import FilterConfig, FilterSettings
from .errors import (
    ConfigError,
    ConfigValidationError,
    StreamFilterError,
    XMLStreamParseError,
)
from .logging import CorrelationLogger, get_logger
from .result import FilterStatistics

__all__ = [
    "FilterConfig",
    "FilterSettings",
    "ConfigError",
    "ConfigValidationError",
    "StreamFilterError",
    "XMLStreamParseError",
    "CorrelationLogger",
    "get_logger",
    "FilterStatistics",
]
