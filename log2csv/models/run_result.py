from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .pattern import LineEndingStyle

"""Run result models.

EmitStats is the mutable counter set the emitter updates while streaming;
RunResult is the frozen aggregate handed to the summary renderer once the
run is over.
"""


@dataclass
class EmitStats:
    """Counters accumulated by the row emitter (in-memory only)."""
    lines_read: int = 0
    lines_matched: int = 0
    rows_written: int = 0  # ヘッダ行は含まない
    rows_suppressed: int = 0
    header_written: bool = False

    @property
    def lines_skipped(self) -> int:
        return self.lines_read - self.lines_matched


@dataclass(frozen=True)
class RunResult:
    """Aggregated results of a single run, used for the SUMMARY line."""
    lines_read: int
    lines_matched: int
    rows_written: int
    rows_suppressed: int
    header_written: bool
    line_ending: LineEndingStyle
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_lines_per_sec: float  # lines_read / elapsed

    @property
    def lines_skipped(self) -> int:
        return self.lines_read - self.lines_matched

    @staticmethod
    def from_stats(
        stats: EmitStats,
        line_ending: LineEndingStyle,
        start_time: datetime,
        end_time: datetime,
    ) -> RunResult:
        elapsed = (end_time - start_time).total_seconds()
        throughput = stats.lines_read / elapsed if elapsed > 0 else 0.0
        return RunResult(
            lines_read=stats.lines_read,
            lines_matched=stats.lines_matched,
            rows_written=stats.rows_written,
            rows_suppressed=stats.rows_suppressed,
            header_written=stats.header_written,
            line_ending=line_ending,
            start_time=start_time,
            end_time=end_time,
            elapsed_seconds=elapsed,
            throughput_lines_per_sec=throughput,
        )
