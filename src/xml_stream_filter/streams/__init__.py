"""Byte-stream layer for XML stream filtering.

This module provides the adapters applied to the raw input and output streams
before tokenization: magic-byte decompression sniffing and buffering.
"""

from .buffering import CountingWriter, buffered_input, buffered_output
from .compression import (
    Compression,
    CompressionDetector,
    DecompressedStream,
    auto_decompress,
    detect_compression,
    open_decompressor,
)

__all__ = [
    "CountingWriter",
    "buffered_input",
    "buffered_output",
    "Compression",
    "CompressionDetector",
    "DecompressedStream",
    "auto_decompress",
    "detect_compression",
    "open_decompressor",
]
