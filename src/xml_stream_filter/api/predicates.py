"""Match predicates deciding which selected elements are transformed.

A predicate is evaluated against the standalone sub-document built for one
matched element. Implementations must be pure with respect to that document
and safe to call any number of times.
"""

import math
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from lxml import etree

from xml_stream_filter.shared import ConfigValidationError


class MatchPredicate(ABC):
    """Boolean capability over an addressable sub-document."""

    @abstractmethod
    def test(self, document: etree._ElementTree) -> bool:
        """Decide whether ``document`` should be passed to the transformer."""

    def __call__(self, document: etree._ElementTree) -> bool:
        return self.test(document)


class AcceptAllPredicate(MatchPredicate):
    """Predicate accepting every matched element."""

    def test(self, document: etree._ElementTree) -> bool:
        return True

    def __repr__(self) -> str:
        return "AcceptAllPredicate()"


def callable_name(func: Callable[..., Any]) -> str:
    """Qualified name of a callable, as shown in reprs and log records."""
    return getattr(func, "__qualname__", type(func).__name__)


class CallablePredicate(MatchPredicate):
    """Adapts a plain function ``func(document) -> bool`` to ``MatchPredicate``."""

    def __init__(self, func: Callable[[etree._ElementTree], Any]) -> None:
        if not callable(func):
            raise ConfigValidationError(
                f"Predicate must be callable, got {type(func).__name__}",
                field_name="predicate",
            )
        self.func = func

    def test(self, document: etree._ElementTree) -> bool:
        return bool(self.func(document))

    def __repr__(self) -> str:
        return f"CallablePredicate({callable_name(self.func)})"


def compile_xpath(
    expression: str, namespaces: Optional[Dict[str, str]] = None
) -> etree.XPath:
    """Compile an XPath expression, failing fast on a broken one.

    Args:
        expression: XPath 1.0 expression
        namespaces: Prefix to namespace URI mapping used by the expression

    Returns:
        Compiled, reusable lxml XPath evaluator

    Raises:
        ConfigValidationError: If the expression is empty or does not compile
    """
    if not expression or not expression.strip():
        raise ConfigValidationError(
            "XPath expression must not be empty", field_name="expression"
        )
    try:
        return etree.XPath(expression, namespaces=namespaces)
    except etree.XPathSyntaxError as e:
        raise ConfigValidationError(
            f"Invalid XPath expression {expression!r}: {e}",
            field_name="expression",
        ) from e


class XPathPredicate(MatchPredicate):
    """Predicate that is true when an XPath expression finds something.

    The expression is compiled once at construction. It is true when the
    evaluation yields a non-empty node set, a true boolean, a number other than
    zero and NaN, or a non-empty string.

    Example:
        >>> predicate = XPathPredicate("//book/tags/tag[text() = 'pasta']")
        >>> predicate.test(document)
        True
    """

    def __init__(
        self, expression: str, namespaces: Optional[Dict[str, str]] = None
    ) -> None:
        """Initialize the predicate.

        Args:
            expression: XPath 1.0 expression
            namespaces: Prefix to namespace URI mapping used by the expression

        Raises:
            ConfigValidationError: If the expression is invalid
        """
        self.expression = expression
        self.namespaces = dict(namespaces or {})
        self._xpath = compile_xpath(expression, self.namespaces)

    def test(self, document: etree._ElementTree) -> bool:
        result = self._xpath(document)
        if isinstance(result, list):
            return len(result) > 0
        if isinstance(result, float) and math.isnan(result):
            return False
        return bool(result)

    def __repr__(self) -> str:
        return f"XPathPredicate({self.expression!r})"
