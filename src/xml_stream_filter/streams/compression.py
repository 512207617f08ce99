"""Magic-byte sniffing and transparent decompression of input streams.

The detection looks at the first bytes of a buffered stream without consuming
them, so an uncompressed stream is passed on exactly as it was received.
"""

import bz2
import gzip
import io
import lzma
import zlib
from enum import Enum
from typing import BinaryIO, ClassVar, Dict, Optional, Tuple

from xml_stream_filter.shared import get_logger


class Compression(Enum):
    """Compression formats recognised on the input side."""

    GZIP = "gzip"
    BZIP2 = "bzip2"
    XZ = "xz"


class CompressionDetector:
    """Magic-byte detection for the supported compression formats."""

    MAGIC_NUMBERS: ClassVar[Dict[bytes, Compression]] = {
        b"\x1f\x8b": Compression.GZIP,
        b"BZh": Compression.BZIP2,
        b"\xfd7zXZ\x00": Compression.XZ,
    }

    # Longest magic number determines how much has to be peeked
    PREFIX_LENGTH: ClassVar[int] = max(len(magic) for magic in MAGIC_NUMBERS)

    def detect_prefix(self, prefix: bytes) -> Optional[Compression]:
        """Detect a compression format from the leading bytes of a stream.

        Args:
            prefix: First bytes of the stream

        Returns:
            Detected Compression, or None for uncompressed data
        """
        for magic, compression in sorted(
            self.MAGIC_NUMBERS.items(), key=lambda x: len(x[0]), reverse=True
        ):
            if prefix.startswith(magic):
                return compression
        return None

    def detect(self, stream: BinaryIO) -> Optional[Compression]:
        """Detect a compression format without consuming any byte of ``stream``.

        Args:
            stream: Buffered stream supporting ``peek``

        Returns:
            Detected Compression, or None for uncompressed data
        """
        prefix = stream.peek(self.PREFIX_LENGTH)[:self.PREFIX_LENGTH]  # type: ignore[attr-defined]
        return self.detect_prefix(prefix)


def _ensure_peekable(stream: BinaryIO) -> BinaryIO:
    if hasattr(stream, "peek"):
        return stream
    return io.BufferedReader(stream)  # type: ignore[arg-type]


def detect_compression(stream: BinaryIO) -> Optional[Compression]:
    """Detect the compression format of a buffered stream.

    Args:
        stream: Stream supporting ``peek`` (e.g. ``io.BufferedReader``)

    Returns:
        Detected Compression, or None for uncompressed data
    """
    return CompressionDetector().detect(stream)


class DecompressedStream(io.BufferedIOBase):
    """Readable stream over a decompressor whose codec errors surface as ``OSError``.

    Truncated or corrupt compressed input makes the standard decompressors
    raise ``EOFError``, ``lzma.LZMAError`` or ``zlib.error``. They are
    re-raised as ``OSError`` so that callers only see I/O failures.
    """

    CODEC_ERRORS: ClassVar[Tuple[type, ...]] = (EOFError, lzma.LZMAError, zlib.error)

    def __init__(self, decompressor: BinaryIO, compression: Compression) -> None:
        super().__init__()
        self.decompressor = decompressor
        self.compression = compression

    def readable(self) -> bool:
        return True

    def read(self, size: Optional[int] = -1) -> bytes:
        try:
            return self.decompressor.read(-1 if size is None else size)
        except self.CODEC_ERRORS as e:
            raise OSError(f"Corrupt {self.compression.value} input: {e}") from e

    def read1(self, size: int = -1) -> bytes:
        return self.read(size)

    def close(self) -> None:
        if not self.closed:
            try:
                self.decompressor.close()
            finally:
                super().close()


def open_decompressor(stream: BinaryIO, compression: Compression) -> DecompressedStream:
    """Wrap ``stream`` in a decompressing reader.

    Closing the returned reader does not close ``stream``.
    """
    if compression is Compression.GZIP:
        decompressor = gzip.GzipFile(fileobj=stream, mode="rb")
    elif compression is Compression.BZIP2:
        decompressor = bz2.BZ2File(stream, mode="rb")
    elif compression is Compression.XZ:
        decompressor = lzma.LZMAFile(stream, mode="rb")
    else:
        raise ValueError(f"Unsupported compression: {compression}")
    return DecompressedStream(decompressor, compression)  # type: ignore[arg-type]


def auto_decompress(stream: BinaryIO) -> Tuple[BinaryIO, Optional[Compression]]:
    """Transparently decompress ``stream`` when its magic bytes say so.

    Args:
        stream: Input byte stream; wrapped in a buffered reader if it cannot peek

    Returns:
        Tuple of the stream to read from and the detected compression. For
        uncompressed input the stream is the (buffered) input with no byte
        consumed and the compression is None.
    """
    stream = _ensure_peekable(stream)
    compression = detect_compression(stream)
    if compression is None:
        return stream, None

    get_logger(__name__, component="compression").debug(
        "Compressed input detected", extra={"compression": compression.value}
    )
    return open_decompressor(stream, compression), compression
