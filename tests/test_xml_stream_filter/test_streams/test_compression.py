"""Tests for magic-byte compression sniffing."""

import bz2
import gzip
import io
import lzma

import pytest

from xml_stream_filter.streams import (
    Compression,
    CompressionDetector,
    DecompressedStream,
    auto_decompress,
    detect_compression,
    open_decompressor,
)

XML = b'<?xml version="1.0" encoding="UTF-8"?><library><book>Everyday Italian</book></library>'


class TestCompressionDetector:
    """Test magic number detection."""

    @pytest.mark.parametrize(
        "data, expected",
        [
            (gzip.compress(XML), Compression.GZIP),
            (bz2.compress(XML), Compression.BZIP2),
            (lzma.compress(XML), Compression.XZ),
            (XML, None),
            (b"", None),
        ],
    )
    def test_detect_prefix(self, data, expected):
        """Test detection on the leading bytes of various payloads."""
        assert CompressionDetector().detect_prefix(data[:6]) is expected

    def test_prefix_length_covers_longest_magic(self):
        """Test that enough bytes are peeked for the xz magic number."""
        assert CompressionDetector.PREFIX_LENGTH == 6

    def test_detect_does_not_consume(self):
        """Test that detection leaves the stream position untouched."""
        payload = gzip.compress(XML)
        stream = io.BufferedReader(io.BytesIO(payload))

        assert detect_compression(stream) is Compression.GZIP
        assert stream.read() == payload


class TestAutoDecompress:
    """Test transparent decompression."""

    @pytest.mark.parametrize("compress", [gzip.compress, bz2.compress, lzma.compress])
    def test_compressed_input_is_decompressed(self, compress):
        """Test that every supported format yields the original bytes."""
        stream, compression = auto_decompress(io.BytesIO(compress(XML)))

        assert stream.read() == XML
        assert compression is detect_compression(io.BufferedReader(io.BytesIO(compress(XML))))

    def test_plain_input_passes_through(self):
        """Test that uncompressed input is returned byte for byte."""
        stream, compression = auto_decompress(io.BytesIO(XML))

        assert stream.read() == XML
        assert compression is None

    def test_peekable_stream_is_not_rewrapped(self):
        """Test that a stream supporting peek is returned as is."""
        stream = io.BufferedReader(io.BytesIO(XML))

        assert auto_decompress(stream) == (stream, None)

    def test_closing_decompressor_keeps_source_open(self):
        """Test that the decompressor never closes the underlying stream."""
        source = io.BufferedReader(io.BytesIO(gzip.compress(XML)))
        decompressor = open_decompressor(source, Compression.GZIP)

        assert decompressor.read() == XML
        decompressor.close()
        assert not source.closed


class TestDecompressedStream:
    """Test codec error mapping of decompressed streams."""

    @pytest.mark.parametrize(
        "compress, compression",
        [(gzip.compress, Compression.GZIP), (lzma.compress, Compression.XZ)],
    )
    def test_truncated_input_is_an_os_error(self, compress, compression):
        """Test that a stream ending before its end marker fails as OSError."""
        source = io.BufferedReader(io.BytesIO(compress(XML)[:-12]))
        stream = open_decompressor(source, compression)

        assert isinstance(stream, DecompressedStream)
        with pytest.raises(OSError, match=f"Corrupt {compression.value} input") as exc_info:
            stream.read()
        assert isinstance(exc_info.value.__cause__, EOFError)

    def test_corrupt_deflate_data_is_an_os_error(self):
        """Test that damaged gzip payload bytes fail as OSError."""
        payload = bytearray(gzip.compress(XML * 20))
        payload[12:24] = b"\xff" * 12
        stream = open_decompressor(io.BufferedReader(io.BytesIO(bytes(payload))), Compression.GZIP)

        with pytest.raises(OSError):
            stream.read()

    def test_close_is_idempotent(self):
        """Test that closing twice is harmless."""
        stream = open_decompressor(io.BufferedReader(io.BytesIO(gzip.compress(XML))), Compression.GZIP)

        stream.close()
        stream.close()

        assert stream.closed
