"""Match transformers writing accepted elements to the output sink.

A transformer receives the sub-document of one accepted element and the shared
output sink. It may write any number of bytes, but it never flushes or closes
the sink and never keeps a reference to the document or the sink after
``apply`` returns.
"""

import math
from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Callable, Dict, Iterable, Optional

from lxml import etree

from xml_stream_filter.shared import ConfigValidationError

from .predicates import callable_name, compile_xpath

NEW_LINE = b"\n"
OUTPUT_ENCODING = "utf-8"


class MatchTransformer(ABC):
    """Side-effecting capability over a sub-document and an output sink."""

    @abstractmethod
    def apply(self, document: etree._ElementTree, sink: BinaryIO) -> None:
        """Write the transformation of ``document`` to ``sink``."""

    def __call__(self, document: etree._ElementTree, sink: BinaryIO) -> None:
        self.apply(document, sink)


class CallableTransformer(MatchTransformer):
    """Adapts a plain function ``func(document, sink)`` to ``MatchTransformer``."""

    def __init__(self, func: Callable[[etree._ElementTree, BinaryIO], Any]) -> None:
        if not callable(func):
            raise ConfigValidationError(
                f"Transformer must be callable, got {type(func).__name__}",
                field_name="transformer",
            )
        self.func = func

    def apply(self, document: etree._ElementTree, sink: BinaryIO) -> None:
        self.func(document, sink)

    def __repr__(self) -> str:
        return f"CallableTransformer({callable_name(self.func)})"


class SerializingTransformer(MatchTransformer):
    """Writes the whole matched element as XML, one element per line."""

    def __init__(self, pretty_print: bool = False) -> None:
        self.pretty_print = pretty_print

    def apply(self, document: etree._ElementTree, sink: BinaryIO) -> None:
        data = etree.tostring(
            document.getroot(),
            encoding=OUTPUT_ENCODING,
            xml_declaration=False,
            pretty_print=self.pretty_print,
            with_tail=False,
        )
        sink.write(data)
        if not data.endswith(NEW_LINE):
            sink.write(NEW_LINE)

    def __repr__(self) -> str:
        return f"SerializingTransformer(pretty_print={self.pretty_print})"


def _text_of(value: Any) -> str:
    """Text content of a single XPath result item."""
    if isinstance(value, etree._Element):
        return "".join(value.itertext())
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        # XPath numbers are doubles; integral values print without a fraction
        return str(int(value)) if value.is_integer() else repr(value)
    return str(value)


def _results_of(value: Any) -> Iterable[Any]:
    if isinstance(value, list):
        return value
    return [value]


class XPathTransformer(MatchTransformer):
    """Writes the result of an XPath query, one result item per line.

    Element results are written as their text content, text and attribute
    results as their value, and scalar results (string, number, boolean) as a
    single line.

    Example:
        >>> XPathTransformer("//book/title/text()").apply(document, sink)
        # sink receives b"Everyday Italian\\n"
    """

    def __init__(
        self, expression: str, namespaces: Optional[Dict[str, str]] = None
    ) -> None:
        """Initialize the transformer.

        Args:
            expression: XPath 1.0 expression
            namespaces: Prefix to namespace URI mapping used by the expression

        Raises:
            ConfigValidationError: If the expression is invalid
        """
        self.expression = expression
        self.namespaces = dict(namespaces or {})
        self._xpath = compile_xpath(expression, self.namespaces)

    def apply(self, document: etree._ElementTree, sink: BinaryIO) -> None:
        for item in _results_of(self._xpath(document)):
            sink.write(_text_of(item).encode(OUTPUT_ENCODING))
            sink.write(NEW_LINE)

    def __repr__(self) -> str:
        return f"XPathTransformer({self.expression!r})"
