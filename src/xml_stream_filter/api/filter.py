"""Streaming filter engine.

``XmlStreamFilter`` lets you:

- stream-process arbitrarily large XML documents, while nevertheless
- selecting the elements with a given local name that satisfy a predicate, and
- writing a transformation of each of them to an output stream.

Only the region of a matched element is ever turned into a tree; every other
element is released as soon as its end event has been read.
"""

import logging
import time
from typing import BinaryIO, Optional

from lxml import etree

from xml_stream_filter.shared import (
    CorrelationLogger,
    FilterConfig,
    FilterSettings,
    FilterStatistics,
    get_logger,
)
from xml_stream_filter.streams import (
    CountingWriter,
    auto_decompress,
    buffered_input,
    buffered_output,
)
from xml_stream_filter.tokenization import XMLEventReader, XMLEventReaderFactory
from xml_stream_filter.tree import SubDocumentMaterializer

from .predicates import AcceptAllPredicate, MatchPredicate
from .transformers import MatchTransformer, SerializingTransformer

MS_PER_SECOND = 1000


class XmlStreamFilter:
    """Single-pass element filter over an XML byte stream.

    The engine keeps no per-document state: one instance can run any number of
    ``filter`` calls, as long as calls sharing it do not run concurrently on
    predicates or transformers that hold mutable state.

    Example:
        >>> stream_filter = XmlStreamFilter.create(
        ...     "book",
        ...     predicate=XPathPredicate("//book/tags/tag[text() = 'pasta']"),
        ...     transformer=XPathTransformer("//book/title/text()"),
        ... )
        >>> with open("books.xml.gz", "rb") as src, open("titles.txt", "wb") as dst:
        ...     stats = stream_filter.filter(src, dst)
    """

    def __init__(self, config: FilterConfig) -> None:
        """Initialize the engine.

        Args:
            config: Validated filter configuration
        """
        if not isinstance(config, FilterConfig):
            raise TypeError(
                f"config must be a FilterConfig, got {type(config).__name__}"
            )
        self.config = config

    @classmethod
    def create(
        cls,
        element_local_name: str,
        predicate: Optional[MatchPredicate] = None,
        transformer: Optional[MatchTransformer] = None,
        settings: Optional[FilterSettings] = None,
        reader_factory: Optional[XMLEventReaderFactory] = None,
        materializer: Optional[SubDocumentMaterializer] = None,
    ) -> "XmlStreamFilter":
        """Create an engine, defaulting every collaborator that is not given.

        Args:
            element_local_name: Local name of the elements to select
            predicate: Defaults to accepting every selected element
            transformer: Defaults to writing each element as XML
            settings: Defaults to ``FilterSettings.default()``
            reader_factory: Defaults to the lxml-backed UTF-8 token stream
            materializer: Defaults to ``SubDocumentMaterializer``

        Raises:
            ConfigValidationError: If the element name is missing or empty
        """
        return cls(FilterConfig(
            element_local_name=element_local_name,
            predicate=predicate if predicate is not None else AcceptAllPredicate(),
            transformer=(
                transformer if transformer is not None else SerializingTransformer()
            ),
            reader_factory=(
                reader_factory if reader_factory is not None else XMLEventReaderFactory()
            ),
            materializer=(
                materializer if materializer is not None else SubDocumentMaterializer()
            ),
            settings=settings if settings is not None else FilterSettings.default(),
        ))

    @property
    def element_local_name(self) -> str:
        return self.config.element_local_name

    def filter(self, raw_input: BinaryIO, raw_output: BinaryIO) -> FilterStatistics:
        """Filter ``raw_input`` and write the transformed matches to ``raw_output``.

        The input is buffered and, when its magic bytes say so, decompressed;
        the output is buffered. All wrappers are released on every exit path.
        With ``close_streams`` set the caller's streams are closed as well,
        otherwise they are flushed and left open.

        Args:
            raw_input: Readable byte stream holding the XML document
            raw_output: Writable byte stream receiving the transformer output

        Returns:
            FilterStatistics of the run; the output has been fully flushed

        Raises:
            ValueError: If a stream is None
            XMLStreamParseError: If the input is malformed or truncated
            OSError: If reading the input or writing the output fails
            Exception: Any error raised by the predicate or the transformer
        """
        if raw_input is None:
            raise ValueError("Input stream must not be None")
        if raw_output is None:
            raise ValueError("Output stream must not be None")

        settings = self.config.settings
        logger = get_logger(__name__, settings.correlation_id, "stream_filter")
        start_time = time.time()
        statistics = FilterStatistics()

        logger.info(
            "Starting stream filter",
            extra={
                "element_local_name": self.element_local_name,
                "predicate": repr(self.config.predicate),
                "transformer": repr(self.config.transformer),
            }
        )

        in_buffer = None
        source = None
        out_buffer = None
        sink = None
        reader = None
        try:
            in_buffer = buffered_input(raw_input, settings.buffer_size)
            source = in_buffer
            if settings.auto_decompress:
                source, compression = auto_decompress(in_buffer)
                if compression is not None:
                    statistics.compression = compression.value

            out_buffer = buffered_output(raw_output, settings.buffer_size)
            sink = CountingWriter(out_buffer)

            reader = self.config.reader_factory.create(source, settings)
            self._scan(reader, sink, statistics, logger)

            # Flushing is part of success; a failure here is an I/O error
            sink.flush()
            statistics.bytes_written = sink.bytes_written

        except Exception:
            logger.error(
                "Stream filter failed",
                extra={
                    "elements_matched": statistics.elements_matched,
                    "elements_accepted": statistics.elements_accepted,
                }
            )
            raise

        finally:
            self._release(reader, sink, out_buffer, source, in_buffer, settings, logger)

        statistics.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
        logger.info(
            "Stream filter completed",
            extra={
                "events_read": statistics.events_read,
                "elements_matched": statistics.elements_matched,
                "elements_accepted": statistics.elements_accepted,
                "bytes_written": statistics.bytes_written,
                "compression": statistics.compression,
                "processing_time_ms": statistics.processing_time_ms,
            }
        )
        return statistics

    def _scan(
        self,
        reader: XMLEventReader,
        sink: BinaryIO,
        statistics: FilterStatistics,
        logger: CorrelationLogger,
    ) -> None:
        """Pull events until the token stream is exhausted."""
        try:
            while reader.has_next():
                reader.next()
                # A materializer that leaves the reader on the following event
                # may land directly on the next sibling match
                while self._is_start_of_target_element(reader):
                    self._process_match(reader, sink, statistics, logger)
                if reader.is_end_element():
                    reader.release()
        finally:
            statistics.events_read = reader.events_read

    def _process_match(
        self,
        reader: XMLEventReader,
        sink: BinaryIO,
        statistics: FilterStatistics,
        logger: CorrelationLogger,
    ) -> None:
        document = self.config.materializer.materialize(reader)
        statistics.elements_matched += 1

        accepted = self.config.predicate.test(document)
        if logger.is_enabled_for(logging.DEBUG):
            logger.debug(
                "Element matched",
                extra={
                    "match_number": statistics.elements_matched,
                    "line": _source_line(document),
                    "accepted": accepted,
                }
            )
        if accepted:
            statistics.elements_accepted += 1
            self.config.transformer.apply(document, sink)

    def _is_start_of_target_element(self, reader: XMLEventReader) -> bool:
        return (
            reader.is_start_element()
            and reader.local_name == self.config.element_local_name
        )

    @staticmethod
    def _release(
        reader: Optional[XMLEventReader],
        sink: Optional[CountingWriter],
        out_buffer: Optional[BinaryIO],
        source: Optional[BinaryIO],
        in_buffer: Optional[BinaryIO],
        settings: FilterSettings,
        logger: CorrelationLogger,
    ) -> None:
        """Release every resource independently; close failures are not escalated."""
        if reader is not None:
            _close_quietly("token stream", reader.close, logger)
        if sink is not None:
            _close_quietly("output counter", sink.close, logger)
        if out_buffer is not None:
            if settings.close_streams:
                _close_quietly("output stream", out_buffer.close, logger)
            else:
                _close_quietly("output stream", out_buffer.detach, logger)  # type: ignore[attr-defined]
        if source is not None and source is not in_buffer:
            _close_quietly("decompressor", source.close, logger)
        if in_buffer is not None:
            if settings.close_streams:
                _close_quietly("input stream", in_buffer.close, logger)
            else:
                _close_quietly("input stream", in_buffer.detach, logger)  # type: ignore[attr-defined]


def _close_quietly(resource: str, close, logger: CorrelationLogger) -> None:
    try:
        close()
    except Exception as e:
        logger.debug(
            "Ignoring failure while releasing resource",
            extra={"resource": resource, "error": str(e)}
        )


def _source_line(document: etree._ElementTree) -> Optional[int]:
    return document.getroot().sourceline


def filter_stream(
    element_local_name: str,
    raw_input: BinaryIO,
    raw_output: BinaryIO,
    predicate: Optional[MatchPredicate] = None,
    transformer: Optional[MatchTransformer] = None,
    settings: Optional[FilterSettings] = None,
) -> FilterStatistics:
    """Filter one document with a throwaway engine.

    Args:
        element_local_name: Local name of the elements to select
        raw_input: Readable byte stream holding the XML document
        raw_output: Writable byte stream receiving the transformer output
        predicate: Defaults to accepting every selected element
        transformer: Defaults to writing each element as XML
        settings: Defaults to ``FilterSettings.default()``

    Returns:
        FilterStatistics of the run
    """
    return XmlStreamFilter.create(
        element_local_name,
        predicate=predicate,
        transformer=transformer,
        settings=settings,
    ).filter(raw_input, raw_output)
