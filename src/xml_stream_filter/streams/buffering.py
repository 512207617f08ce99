"""Buffering wrappers for the input and output byte streams."""

import io
from typing import BinaryIO

from xml_stream_filter.shared.config import DEFAULT_BUFFER_SIZE


def buffered_input(raw: BinaryIO, buffer_size: int = DEFAULT_BUFFER_SIZE) -> io.BufferedReader:
    """Wrap a readable byte stream in an ``io.BufferedReader``."""
    return io.BufferedReader(raw, buffer_size)  # type: ignore[arg-type]


def buffered_output(raw: BinaryIO, buffer_size: int = DEFAULT_BUFFER_SIZE) -> io.BufferedWriter:
    """Wrap a writable byte stream in an ``io.BufferedWriter``."""
    return io.BufferedWriter(raw, buffer_size)  # type: ignore[arg-type]


class CountingWriter(io.RawIOBase):
    """Writable raw stream counting the bytes forwarded to an inner stream.

    Sits between the output buffering layer and the transformer so that the
    number of bytes produced by the transformers can be reported.
    """

    def __init__(self, target: BinaryIO) -> None:
        super().__init__()
        self.target = target
        self.bytes_written = 0

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:  # type: ignore[override]
        written = self.target.write(data)
        if written is None:
            written = len(data)
        self.bytes_written += written
        return written

    def flush(self) -> None:
        if not self.closed and not self.target.closed:
            self.target.flush()
