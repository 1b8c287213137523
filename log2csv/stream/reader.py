from __future__ import annotations

from collections.abc import Iterator
from typing import BinaryIO

from log2csv.models.pattern import LineEndingStyle
from log2csv.models.settings import ReaderSettings

"""Line reader.

Turns a raw byte stream into a lazy sequence of text lines:

1. Peek up to ``peek_size`` bytes (without consuming them) and detect the
   line-ending style from the first terminator found.
2. Split the stream on LF, dropping a trailing CR from every line, so mixed
   LF / CRLF input still splits correctly.
3. Bound memory: a line longer than ``max_line_size`` is a fatal ReadError,
   and pending bytes never exceed ``max_buffer_size`` plus one CRLF terminator.
"""

__all__ = [
    "ReadError",
    "PeekableStream",
    "detect_line_ending",
    "iter_lines",
    "open_lines",
]

LF = b"\n"
CR = b"\r"

# max_buffer_size は行本体の上限。CRLF 終端ぶんはこれに上乗せして許容する
TERMINATOR_ALLOWANCE = len(b"\r\n")


class ReadError(Exception):
    """Raised on an I/O failure or an oversized line while reading input."""


class PeekableStream:
    """Buffering adapter giving non-destructive look-ahead over a byte stream.

    The look-ahead window is buffered once and replayed ahead of the
    remaining raw bytes, so nothing is lost or read twice.
    """

    def __init__(self, raw: BinaryIO) -> None:
        self._raw = raw
        self._pending = b""
        self._eof = False

    def _read_raw(self, size: int) -> bytes:
        if self._eof:
            return b""
        try:
            data = self._raw.read(size)
        except OSError as e:
            raise ReadError(f"read failed: {e}") from e
        if not data:
            self._eof = True
            return b""
        return data

    def peek(self, size: int) -> bytes:
        """Return up to ``size`` bytes without consuming them (short only at EOF)."""
        while len(self._pending) < size:
            data = self._read_raw(size - len(self._pending))
            if not data:
                break
            self._pending += data
        return self._pending[:size]

    def read(self, size: int) -> bytes:
        if self._pending:
            data, self._pending = self._pending[:size], self._pending[size:]
            return data
        return self._read_raw(size)


def detect_line_ending(sample: bytes) -> LineEndingStyle:
    """CRLF when the first LF in ``sample`` is preceded by CR, else LF."""
    idx = sample.find(LF)
    if idx > 0 and sample[idx - 1:idx] == CR:
        return LineEndingStyle.CRLF
    return LineEndingStyle.LF


def _finish_line(raw: bytes, settings: ReaderSettings) -> str:
    if raw.endswith(CR):
        raw = raw[:-1]
    if len(raw) > settings.max_line_size:
        raise ReadError(f"line exceeds maximum size of {settings.max_line_size} bytes")
    return raw.decode(settings.encoding, errors="surrogateescape")


def _pending_size(buf: bytearray) -> int:
    # 末尾の CR は次チャンク先頭の LF と対になる可能性があるので数えない
    return len(buf) - 1 if buf.endswith(CR) else len(buf)


def iter_lines(stream: PeekableStream, settings: ReaderSettings) -> Iterator[str]:
    """Yield lines from ``stream`` with terminators stripped.

    A final unterminated line is yielded if non-empty. Raises ReadError when a
    line exceeds ``max_line_size`` or the pending buffer would exceed
    ``max_buffer_size`` plus room for a CRLF terminator.
    """
    buf = bytearray()
    while True:
        room = settings.max_buffer_size + TERMINATOR_ALLOWANCE - len(buf)
        if room <= 0:
            raise ReadError(f"buffer exceeds maximum size of {settings.max_buffer_size} bytes")
        chunk = stream.read(min(settings.chunk_size, room))
        if not chunk:
            break
        buf += chunk
        start = 0
        while True:
            idx = buf.find(LF, start)
            if idx < 0:
                break
            line = bytes(buf[start:idx])
            start = idx + 1
            yield _finish_line(line, settings)
        del buf[:start]
        if _pending_size(buf) > settings.max_line_size:
            raise ReadError(f"line exceeds maximum size of {settings.max_line_size} bytes")
    if buf:
        yield _finish_line(bytes(buf), settings)


def open_lines(raw: BinaryIO, settings: ReaderSettings) -> tuple[Iterator[str], LineEndingStyle]:
    """Detect the line-ending style, then return a lazy line iterator.

    The look-ahead happens eagerly so a read failure there surfaces before
    any row is written; later failures surface from the iterator.
    """
    stream = PeekableStream(raw)
    style = detect_line_ending(stream.peek(settings.peek_size))
    return iter_lines(stream, settings), style
