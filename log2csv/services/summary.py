from __future__ import annotations

from ..models.run_result import RunResult

"""SUMMARY line rendering.

Format:
SUMMARY lines={read} matched={matched} rows={rows} suppressed={suppressed}
skipped={skipped} line_ending={LF|CRLF} elapsed_sec={elapsed} throughput_lps={lps}
"""


def _format_number(value: float) -> str:
    # 整数値は小数点なし、極小値は指数表記を避ける
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 6))


def render_summary_line(result: RunResult) -> str:
    """Render the SUMMARY line for a finished run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from log2csv.models.pattern import LineEndingStyle
        >>> start = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 0, 0, 2, tzinfo=timezone.utc)
        >>> result = RunResult(
        ...     lines_read=10, lines_matched=8, rows_written=7, rows_suppressed=1,
        ...     header_written=True, line_ending=LineEndingStyle.LF,
        ...     start_time=start, end_time=end,
        ...     elapsed_seconds=2.0, throughput_lines_per_sec=5.0,
        ... )
        >>> render_summary_line(result)
        'SUMMARY lines=10 matched=8 rows=7 suppressed=1 skipped=2 line_ending=LF elapsed_sec=2 throughput_lps=5'
    """
    return (
        f"SUMMARY lines={result.lines_read} "
        f"matched={result.lines_matched} "
        f"rows={result.rows_written} "
        f"suppressed={result.rows_suppressed} "
        f"skipped={result.lines_skipped} "
        f"line_ending={result.line_ending.name} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"throughput_lps={_format_number(result.throughput_lines_per_sec)}"
    )
