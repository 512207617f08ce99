"""Sub-document materialization for matched elements.

The materializer consumes the token range of exactly one element and returns a
standalone ``lxml.etree._ElementTree`` rooted at a copy of that element. The
copy has no parent and no link to the live parse tree, so predicates and
transformers can navigate or even mutate it without affecting the scan.
"""

import copy

from lxml import etree

from xml_stream_filter.shared import XMLStreamParseError
from xml_stream_filter.tokenization import XMLEventReader


class SubDocumentMaterializer:
    """Builds an addressable sub-document for the element at the reader's position."""

    def materialize(self, reader: XMLEventReader) -> etree._ElementTree:
        """Consume one element from ``reader`` and return it as its own document.

        Args:
            reader: Token stream positioned at the start event of an element

        Returns:
            ElementTree rooted at an independent copy of the element. Nested
            elements of any name, including the target name, belong to it.

        Raises:
            ValueError: If the reader is not positioned at a start event
            XMLStreamParseError: If the stream ends before the element is
                closed or the tokenizer reports malformed XML

        The reader is left on the element's end event, so the next call to
        ``reader.next()`` returns the event immediately following it.
        """
        if not reader.is_start_element():
            raise ValueError(
                f"Reader must be positioned at a start element, got: {reader.event}"
            )

        target = reader.element
        while reader.has_next():
            reader.next()
            if reader.is_end_element() and reader.element is target:
                root = copy.deepcopy(target)
                root.tail = None
                reader.release(target)
                return etree.ElementTree(root)

        raise XMLStreamParseError(
            f"Element <{target.tag}> is not closed before the end of the input"
        )
