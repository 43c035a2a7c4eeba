"""
byte_source.py - Forward-only byte reader with position tracking

Wraps bytes or any binary stream and hands out exactly the number of
bytes asked for, or raises ShortRead.

Usage:
    source = ByteSource(b'\\x01\\x02\\x03')
    source.read(2)      # b'\\x01\\x02'
    source.read_rest()  # b'\\x03'
    source.position     # 3
"""

import io
from typing import Optional, Union

from .errors import ShortRead


BytesLike = Union[bytes, bytearray, memoryview]

# Largest single stream read. Huge lengths fail as ShortRead chunk by chunk.
READ_CHUNK = 1 << 16


class ByteSource:
    """Sequential reader over a byte buffer or a binary stream."""

    def __init__(self, source, offset: int = 0):
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        elif not hasattr(source, 'read'):
            raise TypeError(
                f"ByteSource needs bytes or a readable stream, got {type(source).__name__}"
            )
        self._stream = source
        self._position = offset
        self._eof = False

    @property
    def position(self) -> int:
        """Total bytes consumed so far."""
        return self._position

    @property
    def exhausted(self) -> bool:
        """True once a read has hit end-of-input."""
        return self._eof

    def _read_upto(self, n: int) -> bytes:
        # Streams such as sockets and pipes may return fewer bytes than
        # asked for without being at end-of-input.
        chunks = []
        remaining = n
        while remaining > 0:
            chunk = self._stream.read(min(remaining, READ_CHUNK))
            if not chunk:
                self._eof = True
                break
            chunks.append(bytes(chunk))
            remaining -= len(chunk)
        return b''.join(chunks)

    def read(self, n: int, path: Optional[str] = None) -> bytes:
        """Read exactly n bytes.

        Raises ShortRead carrying the requested count and the offset at
        which the read started when the input ends first.
        """
        if n < 0:
            raise ValueError(f"Cannot read a negative byte count: {n}")
        if n == 0:
            return b''

        start = self._position
        data = self._read_upto(n)
        self._position += len(data)
        if len(data) < n:
            raise ShortRead(n, start, path, available=len(data))
        return data

    def read_rest(self) -> bytes:
        """Read everything up to end-of-input (possibly nothing)."""
        data = self._stream.read()
        data = bytes(data) if data else b''
        self._eof = True
        self._position += len(data)
        return data

    def at_end(self) -> bool:
        """Check for end-of-input without consuming anything.

        Only available for seekable or peekable streams; in-memory
        buffers always qualify.
        """
        if self._eof:
            return True
        stream = self._stream
        if hasattr(stream, 'peek'):
            return not stream.peek(1)
        if hasattr(stream, 'seekable') and stream.seekable():
            here = stream.tell()
            more = stream.read(1)
            stream.seek(here)
            return not more
        raise TypeError(
            f"Cannot test end-of-input on a {type(stream).__name__}; "
            "wrap it in io.BufferedReader"
        )
