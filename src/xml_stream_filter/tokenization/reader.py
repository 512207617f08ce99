"""Pull-based token stream over an XML byte stream.

``XMLEventReader`` turns lxml's ``iterparse`` into a forward-only cursor with an
explicit current event, so that the scan loop and the materializer can share
one position in the document. Elements that have been completely processed can
be released to keep memory flat on documents of any size.
"""

from typing import BinaryIO, Iterator, Optional, Tuple

from lxml import etree

from xml_stream_filter.shared import (
    FilterSettings,
    XMLStreamParseError,
    get_logger,
)

START_ELEMENT = "start"
END_ELEMENT = "end"

_Event = Tuple[str, etree._Element]


def local_name(tag: str) -> str:
    """Return the local part of a Clark-notation tag (``{uri}name`` -> ``name``)."""
    return tag.rsplit("}", 1)[-1]


class XMLEventReader:
    """Forward-only cursor over element start and end events.

    Attributes:
        event: Kind of the current event (``START_ELEMENT`` or ``END_ELEMENT``)
        element: Element the current event refers to. On a start event only
            its tag and attributes are guaranteed to be populated; on an end
            event the whole subtree is available.
        events_read: Number of events consumed so far
    """

    def __init__(self, stream: BinaryIO, settings: Optional[FilterSettings] = None) -> None:
        """Open a token stream over ``stream``.

        Args:
            stream: Readable byte stream positioned at the start of the document
            settings: Tokenizer settings (encoding, entity and size limits)
        """
        settings = settings or FilterSettings()
        self.encoding = settings.encoding
        self._events: Optional[Iterator[_Event]] = iter(etree.iterparse(
            stream,
            events=(START_ELEMENT, END_ELEMENT),
            encoding=settings.encoding,
            huge_tree=settings.huge_tree,
            resolve_entities=settings.resolve_entities,
            no_network=settings.no_network,
        ))
        self._lookahead: Optional[_Event] = None
        self._exhausted = False
        self.closed = False

        self.event: Optional[str] = None
        self.element: Optional[etree._Element] = None
        self.events_read = 0

    def __enter__(self) -> "XMLEventReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def has_next(self) -> bool:
        """Check whether another event can be read.

        Raises:
            XMLStreamParseError: If the document is not well-formed
        """
        self._ensure_open()
        if self._lookahead is None and not self._exhausted:
            self._lookahead = self._pull()
        return self._lookahead is not None

    def next(self) -> str:
        """Advance to the next event and return its kind.

        Raises:
            XMLStreamParseError: If the document is not well-formed or no
                further event exists
        """
        if not self.has_next():
            raise XMLStreamParseError("Unexpected end of the XML token stream")

        self.event, self.element = self._lookahead  # type: ignore[misc]
        self._lookahead = None
        self.events_read += 1
        return self.event

    def is_start_element(self) -> bool:
        return self.event == START_ELEMENT

    def is_end_element(self) -> bool:
        return self.event == END_ELEMENT

    @property
    def local_name(self) -> Optional[str]:
        """Local name of the current element, or None before the first event."""
        if self.element is None:
            return None
        return local_name(self.element.tag)

    def release(self, element: Optional[etree._Element] = None) -> None:
        """Free a completely processed element and its preceding siblings.

        Must only be called for an element whose end event has been read.
        """
        element = self.element if element is None else element
        if element is None:
            return
        element.clear()
        parent = element.getparent()
        if parent is not None:
            while element.getprevious() is not None:
                del parent[0]

    def close(self) -> None:
        """Close the token stream. The underlying byte stream is left open."""
        if self.closed:
            return
        self.closed = True
        self._events = None
        self._lookahead = None
        self.event = None
        self.element = None

    def _ensure_open(self) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed XMLEventReader")

    def _pull(self) -> Optional[_Event]:
        try:
            return next(self._events)  # type: ignore[arg-type]
        except StopIteration:
            self._exhausted = True
            return None
        except etree.XMLSyntaxError as e:
            self._exhausted = True
            line, column = e.position if e.position else (None, None)
            raise XMLStreamParseError(
                f"Malformed XML: {e.msg}", line=line, column=column
            ) from e


class XMLEventReaderFactory:
    """Factory opening ``XMLEventReader`` instances.

    Passed explicitly into the filter configuration so that tests or callers
    can substitute their own token stream.
    """

    def create(
        self, stream: BinaryIO, settings: Optional[FilterSettings] = None
    ) -> XMLEventReader:
        """Open a token stream over ``stream``.

        Args:
            stream: Readable byte stream
            settings: Tokenizer settings

        Returns:
            A new XMLEventReader positioned before the first event
        """
        settings = settings or FilterSettings()
        get_logger(__name__, settings.correlation_id, "tokenizer").debug(
            "Opening XML token stream", extra={"encoding": settings.encoding}
        )
        return XMLEventReader(stream, settings)
