"""Tests for match transformers."""

import io

import pytest
from lxml import etree

from xml_stream_filter.api import (
    CallableTransformer,
    MatchTransformer,
    SerializingTransformer,
    XPathTransformer,
)
from xml_stream_filter.shared import ConfigValidationError

BOOK_XML = """<book category="COOKING">
  <title lang="en">Everyday Italian</title>
  <author>Giada De Laurentiis</author>
  <year>2005</year>
  <price>30.00</price>
  <tags>
    <tag>italian</tag>
    <tag>food</tag>
    <tag>pasta</tag>
  </tags>
</book>"""


@pytest.fixture
def document():
    return etree.ElementTree(etree.fromstring(BOOK_XML))


def transform(transformer: MatchTransformer, document) -> bytes:
    sink = io.BytesIO()
    transformer.apply(document, sink)
    return sink.getvalue()


class TestXPathTransformer:
    """Test XPath-backed transformers."""

    def test_writes_result_of_xpath_query(self, document):
        """Test writing a text node result followed by a new line."""
        assert transform(XPathTransformer("//book/title/text()"), document) == b"Everyday Italian\n"

    def test_writes_one_line_per_result(self, document):
        """Test that each node of a node set is written on its own line."""
        assert transform(XPathTransformer("//tag/text()"), document) == b"italian\nfood\npasta\n"

    def test_element_results_are_written_as_text_content(self, document):
        """Test that element results are written as their text content."""
        assert transform(XPathTransformer("//tags/tag[2]"), document) == b"food\n"

    def test_attribute_results(self, document):
        """Test that attribute results are written as their value."""
        assert transform(XPathTransformer("/book/@category"), document) == b"COOKING\n"

    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("count(//tag)", b"3\n"),
            ("number(//price)", b"30\n"),
            ("number(//price) div 4", b"7.5\n"),
            ("count(//tag) = 3", b"true\n"),
            ("concat(//author, ' ', //year)", b"Giada De Laurentiis 2005\n"),
            ("number(//author)", b"NaN\n"),
            ("1 div 0", b"Infinity\n"),
            ("-1 div 0", b"-Infinity\n"),
        ],
    )
    def test_scalar_results(self, document, expression, expected):
        """Test number, boolean and string results."""
        assert transform(XPathTransformer(expression), document) == expected

    def test_empty_result_writes_nothing(self, document):
        """Test that an empty node set produces zero bytes."""
        assert transform(XPathTransformer("//isbn/text()"), document) == b""

    def test_non_ascii_output_is_utf8(self):
        """Test that output is encoded as UTF-8."""
        document = etree.ElementTree(etree.fromstring("<book><title>Crème brûlée</title></book>"))

        assert transform(XPathTransformer("//title/text()"), document) == "Crème brûlée\n".encode("utf-8")

    def test_does_not_close_sink(self, document):
        """Test that the sink is left open for further matches."""
        sink = io.BytesIO()
        XPathTransformer("//title/text()").apply(document, sink)

        assert not sink.closed

    def test_invalid_expression_fails_at_construction(self):
        """Test that a broken expression is a configuration error."""
        with pytest.raises(ConfigValidationError):
            XPathTransformer("//book/title/text(")


class TestSerializingTransformer:
    """Test whole-element serialization."""

    def test_writes_element_as_xml_line(self):
        """Test compact serialization without declaration or tail."""
        root = etree.fromstring('<r><book id="1"><title>A</title></book>tail</r>')[0]
        document = etree.ElementTree(etree.fromstring(etree.tostring(root, with_tail=False)))

        assert transform(SerializingTransformer(), document) == b'<book id="1"><title>A</title></book>\n'

    def test_pretty_print(self):
        """Test pretty printed serialization ends with a single new line."""
        document = etree.ElementTree(etree.fromstring("<book><title>A</title></book>"))

        output = transform(SerializingTransformer(pretty_print=True), document)

        assert output == b"<book>\n  <title>A</title>\n</book>\n"


class TestCallableTransformer:
    """Test function-backed transformers."""

    def test_callable_transformer(self, document):
        """Test adapting a plain function."""
        transformer = CallableTransformer(
            lambda doc, sink: sink.write(doc.getroot().get("category").encode())
        )

        assert transform(transformer, document) == b"COOKING"

    def test_repr_uses_function_name(self):
        """Test that a transformer built on its own method can be represented."""
        class CategoryTransformer(CallableTransformer):
            def __init__(self):
                super().__init__(self.write_category)

            def write_category(self, doc, sink):
                sink.write(doc.getroot().get("category").encode())

        text = repr(CategoryTransformer())

        assert text.startswith("CallableTransformer(")
        assert text.endswith("CategoryTransformer.write_category)")

    def test_requires_callable(self):
        """Test that a non-callable is a configuration error."""
        with pytest.raises(ConfigValidationError, match="must be callable"):
            CallableTransformer(None)  # type: ignore[arg-type]
