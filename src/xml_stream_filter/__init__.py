"""XML Stream Filter.

Streams through large XML documents without loading them into memory, selects
the elements with a given local name, tests each of them with a predicate and
writes a transformation of the accepted ones to an output stream: grep and sed
for XML elements.

Progressive API Disclosure:
- Level 1: Simple function - filter_stream()
- Level 2: Reusable engine - XmlStreamFilter.create()
- Level 3: Custom collaborators - XmlStreamFilter(FilterConfig(...))
"""

__version__ = "0.1.0"
__author__ = "XML Stream Filter Team"

from .api import (
    AcceptAllPredicate,
    CallablePredicate,
    CallableTransformer,
    MatchPredicate,
    MatchTransformer,
    SerializingTransformer,
    XmlStreamFilter,
    XPathPredicate,
    XPathTransformer,
    filter_stream,
)
from .shared import (
    ConfigError,
    ConfigValidationError,
    FilterConfig,
    FilterSettings,
    FilterStatistics,
    StreamFilterError,
    XMLStreamParseError,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple filtering function
    "filter_stream",

    # Level 2 and 3: Engine and its configuration
    "XmlStreamFilter",
    "FilterConfig",
    "FilterSettings",
    "FilterStatistics",

    # Capabilities
    "MatchPredicate",
    "AcceptAllPredicate",
    "CallablePredicate",
    "XPathPredicate",
    "MatchTransformer",
    "CallableTransformer",
    "SerializingTransformer",
    "XPathTransformer",

    # Errors
    "StreamFilterError",
    "ConfigError",
    "ConfigValidationError",
    "XMLStreamParseError",
]
