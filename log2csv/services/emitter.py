from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import BinaryIO

from log2csv.models.pattern import LineEndingStyle, Pattern
from log2csv.models.run_result import EmitStats
from log2csv.models.settings import EmitterSettings

"""Row emitter: matches lines and writes delimited rows.

Per line:
1. search the pattern; no match -> skip silently
2. collect named captures (anonymous groups ignored)
3. suppress the row when every capture is absent or empty
4. before the first data row, write the header row (group names)
5. write the data row, absent -> ""

Rows are written through one at a time; nothing is retained.
"""

__all__ = [
    "WriteError",
    "RowEmitter",
    "is_suppressed",
]


class WriteError(Exception):
    """Raised when writing or flushing the output stream fails."""


def is_suppressed(values: Sequence[str | None]) -> bool:
    """True when no capture carries a non-empty value."""
    return all(not v for v in values)


class RowEmitter:
    """Serialize header/data rows onto a binary output stream.

    The line ending is fixed at construction (detected from the input) and
    applied to every row regardless of the terminator each input line had.
    """

    def __init__(
        self,
        output: BinaryIO,
        line_ending: LineEndingStyle,
        settings: EmitterSettings | None = None,
    ) -> None:
        self._output = output
        self._line_ending = line_ending
        self._settings = settings or EmitterSettings()
        s = self._settings
        self._specials = (s.separator, s.quote_char, "\r", "\n")
        self._doubled_quote = s.quote_char * 2
        self.stats = EmitStats()

    @property
    def line_ending(self) -> LineEndingStyle:
        return self._line_ending

    def format_cell(self, cell: str) -> str:
        if not any(ch in cell for ch in self._specials):
            return cell
        q = self._settings.quote_char
        return q + cell.replace(q, self._doubled_quote) + q

    def format_row(self, cells: Iterable[str]) -> str:
        body = self._settings.separator.join(self.format_cell(c) for c in cells)
        return body + self._line_ending.terminator

    def write_row(self, cells: Iterable[str]) -> None:
        data = self.format_row(cells)
        try:
            self._output.write(data.encode(self._settings.encoding, errors="surrogateescape"))
            if self._settings.flush_each_row:
                self._output.flush()
        except UnicodeEncodeError as e:
            raise WriteError(f"cannot encode row as {self._settings.encoding}: {e}") from e
        except OSError as e:
            raise WriteError(f"write failed: {e}") from e

    def flush(self) -> None:
        try:
            self._output.flush()
        except OSError as e:
            raise WriteError(f"flush failed: {e}") from e

    def emit_line(self, line: str, pattern: Pattern) -> bool:
        """Process one line; return True when a data row was written."""
        self.stats.lines_read += 1
        values = pattern.captures(line)
        if values is None:
            return False
        self.stats.lines_matched += 1
        if is_suppressed(values):
            self.stats.rows_suppressed += 1
            return False
        if not self.stats.header_written:
            self.write_row(pattern.group_names)
            self.stats.header_written = True
        self.write_row(v if v is not None else "" for v in values)
        self.stats.rows_written += 1
        return True

    def emit(self, lines: Iterable[str], pattern: Pattern) -> EmitStats:
        """Stream ``lines`` through the pattern, writing rows as they match.

        A ReadError raised by ``lines`` or a WriteError aborts immediately;
        rows already written stay written.
        """
        for line in lines:
            self.emit_line(line, pattern)
        return self.stats
