"""Public API of the XML stream filter.

Progressive API disclosure:
- Level 1: ``filter_stream()`` for one-off filtering with defaults
- Level 2: ``XmlStreamFilter.create()`` for a reusable engine
- Level 3: ``XmlStreamFilter(FilterConfig(...))`` with custom collaborators
"""

from .filter import XmlStreamFilter, filter_stream
from .predicates import (
    AcceptAllPredicate,
    CallablePredicate,
    MatchPredicate,
    XPathPredicate,
    compile_xpath,
)
from .transformers import (
    CallableTransformer,
    MatchTransformer,
    SerializingTransformer,
    XPathTransformer,
)

__all__ = [
    "XmlStreamFilter",
    "filter_stream",
    "AcceptAllPredicate",
    "CallablePredicate",
    "MatchPredicate",
    "XPathPredicate",
    "compile_xpath",
    "CallableTransformer",
    "MatchTransformer",
    "SerializingTransformer",
    "XPathTransformer",
]
