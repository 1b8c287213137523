from __future__ import annotations
import io
import pytest
from log2csv.models.pattern import LineEndingStyle
from log2csv.models.settings import ReaderSettings
from log2csv.stream.reader import (
    PeekableStream,
    ReadError,
    detect_line_ending,
    iter_lines,
    open_lines,
)


class TrickleStream:
    """Returns at most one byte per read() call."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0
        self.calls = 0

    def read(self, size: int = -1) -> bytes:
        self.calls += 1
        chunk = self._data[self._pos:self._pos + 1]
        self._pos += len(chunk)
        return chunk


class FailingStream:
    """Serves ``head`` and then raises OSError on the next read."""

    def __init__(self, head: bytes) -> None:
        self._head = head

    def read(self, size: int = -1) -> bytes:
        if self._head:
            data, self._head = self._head[:size], self._head[size:]
            return data
        raise OSError("device unavailable")


def _lines(data: bytes, **kw) -> tuple[list[str], LineEndingStyle]:
    lines, style = open_lines(io.BytesIO(data), ReaderSettings(**kw))
    return list(lines), style


@pytest.mark.parametrize(
    "sample, expected",
    [
        (b"a\r\nb\n", LineEndingStyle.CRLF),
        (b"a\nb\r\n", LineEndingStyle.LF),
        (b"no terminator", LineEndingStyle.LF),
        (b"\nabc", LineEndingStyle.LF),
        (b"", LineEndingStyle.LF),
        (b"a\rb\n", LineEndingStyle.LF),
    ],
)
def test_detect_line_ending(sample, expected):
    assert detect_line_ending(sample) is expected


def test_lf_lines():
    lines, style = _lines(b"one\ntwo\nthree\n")
    assert lines == ["one", "two", "three"]
    assert style is LineEndingStyle.LF


def test_crlf_lines_stripped():
    lines, style = _lines(b"one\r\ntwo\r\n")
    assert lines == ["one", "two"]
    assert style is LineEndingStyle.CRLF


def test_mixed_endings_split_correctly():
    lines, style = _lines(b"a\r\nb\nc\r\nd")
    assert lines == ["a", "b", "c", "d"]
    assert style is LineEndingStyle.CRLF


def test_final_line_without_terminator():
    assert _lines(b"a\nb")[0] == ["a", "b"]
    assert _lines(b"a\n")[0] == ["a"]
    assert _lines(b"")[0] == []


def test_empty_lines_preserved():
    assert _lines(b"\n\na\n")[0] == ["", "", "a"]


def test_lone_cr_inside_line_kept():
    assert _lines(b"a\rb\n")[0] == ["a\rb"]


def test_peek_does_not_lose_or_duplicate_bytes():
    data = b"line1\r\nline2\nline3\r\nline4"
    lines, style = _lines(data, peek_size=4, chunk_size=3)
    assert lines == ["line1", "line2", "line3", "line4"]
    # 先読み 4 バイトに改行なし -> LF 既定
    assert style is LineEndingStyle.LF


def test_peek_window_larger_than_input():
    lines, style = _lines(b"x\r\ny\r\n", peek_size=1 << 20)
    assert lines == ["x", "y"]
    assert style is LineEndingStyle.CRLF


def test_peek_fills_window_across_short_reads():
    stream = TrickleStream(b"abc\r\ndef\r\n")
    lines, style = open_lines(stream, ReaderSettings(peek_size=16, chunk_size=2))
    assert style is LineEndingStyle.CRLF
    assert list(lines) == ["abc", "def"]


def test_peekable_stream_replays_window():
    ps = PeekableStream(io.BytesIO(b"abcdef"))
    assert ps.peek(3) == b"abc"
    assert ps.peek(3) == b"abc"
    assert ps.read(2) == b"ab"
    assert ps.read(10) == b"c"
    assert ps.read(10) == b"def"
    assert ps.read(10) == b""


def test_line_at_max_size_accepted():
    settings = ReaderSettings(max_line_size=8, chunk_size=3)
    lines, _ = open_lines(io.BytesIO(b"x" * 8 + b"\r\n" + b"y" * 8), settings)
    assert list(lines) == ["x" * 8, "y" * 8]


def test_oversized_line_is_fatal():
    settings = ReaderSettings(max_line_size=8)
    lines, _ = open_lines(io.BytesIO(b"short\n" + b"x" * 20 + b"\nafter\n"), settings)
    assert next(lines) == "short"
    with pytest.raises(ReadError) as e:
        next(lines)
    assert "maximum size of 8 bytes" in str(e.value)


def test_oversized_line_detected_before_terminator_arrives():
    settings = ReaderSettings(max_line_size=4, chunk_size=2)
    lines, _ = open_lines(io.BytesIO(b"abcdefghij"), settings)
    with pytest.raises(ReadError):
        list(lines)


def test_oversized_final_line_without_terminator():
    settings = ReaderSettings(max_line_size=4)
    lines, _ = open_lines(io.BytesIO(b"ok\n12345"), settings)
    with pytest.raises(ReadError):
        list(lines)


def test_buffer_cap_does_not_break_normal_lines():
    settings = ReaderSettings(max_line_size=4, max_buffer_size=4, chunk_size=16)
    lines, _ = open_lines(io.BytesIO(b"ab\ncd\nef\n"), settings)
    assert list(lines) == ["ab", "cd", "ef"]


def test_line_of_exact_size_fits_equal_buffer_lf():
    settings = ReaderSettings(max_line_size=4, max_buffer_size=4, chunk_size=16)
    lines, _ = open_lines(io.BytesIO(b"abcd\n"), settings)
    assert list(lines) == ["abcd"]


@pytest.mark.parametrize("chunk_size", [3, 16, 64 * 1024])
def test_line_of_exact_size_fits_equal_buffer_crlf(chunk_size):
    settings = ReaderSettings(max_line_size=8, max_buffer_size=8, chunk_size=chunk_size)
    lines, style = open_lines(io.BytesIO(b"12345678\r\nok\r\n"), settings)
    assert style is LineEndingStyle.CRLF
    assert list(lines) == ["12345678", "ok"]


def test_buffer_cap_is_hard_ceiling():
    # max_buffer_size < max_line_size は設定ファイル経由では作れない
    settings = ReaderSettings(max_line_size=8, max_buffer_size=2, chunk_size=16)
    lines, _ = open_lines(io.BytesIO(b"abcdef\n"), settings)
    with pytest.raises(ReadError) as e:
        list(lines)
    assert "buffer exceeds maximum size" in str(e.value)


def test_read_error_during_look_ahead():
    with pytest.raises(ReadError) as e:
        open_lines(FailingStream(b""), ReaderSettings())
    assert "device unavailable" in str(e.value)
    assert isinstance(e.value.__cause__, OSError)


def test_read_error_after_some_lines():
    lines, _ = open_lines(FailingStream(b"a\n"), ReaderSettings(peek_size=2))
    assert next(lines) == "a"
    with pytest.raises(ReadError):
        next(lines)


def test_undecodable_bytes_survive_as_surrogates():
    lines, _ = _lines(b"caf\xe9\n")
    assert lines == ["caf\udce9"]
    assert lines[0].encode("utf-8", errors="surrogateescape") == b"caf\xe9"


def test_iter_lines_is_lazy():
    stream = TrickleStream(b"a\nb\nc\n")
    it = iter_lines(PeekableStream(stream), ReaderSettings(chunk_size=1))
    assert next(it) == "a"
    assert stream.calls == 2
