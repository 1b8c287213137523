from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import BinaryIO

from ..models.pattern import Pattern
from ..models.run_result import RunResult
from ..models.settings import ToolConfig
from ..pattern.compiler import compile_pattern
from ..stream.reader import ReadError, open_lines
from .emitter import RowEmitter, WriteError

"""Run orchestration: compile -> open lines -> emit -> flush.

The pattern is compiled before any input is read, so pattern errors never
produce output. Output is flushed on every exit path; a failure while
flushing after another error is not allowed to mask that error.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "open_streams",
    "run",
]


@contextmanager
def open_streams(
    input_path: Path | None = None, output_path: Path | None = None
) -> Iterator[tuple[BinaryIO, BinaryIO]]:
    """Yield (input, output) binary streams.

    None selects the process's stdin / stdout. Files opened here are closed on
    every exit path; the standard streams are flushed but left open. A failure
    closing the output file is a WriteError unless another error is already
    propagating.
    """
    src: BinaryIO | None = None
    dst: BinaryIO | None = None
    failed = True
    try:
        if input_path is None:
            src = sys.stdin.buffer
        else:
            try:
                src = input_path.open("rb")
            except OSError as e:
                raise ReadError(f"cannot open input {input_path}: {e}") from e
        if output_path is None:
            dst = sys.stdout.buffer
        else:
            try:
                dst = output_path.open("wb")
            except OSError as e:
                raise WriteError(f"cannot open output {output_path}: {e}") from e
        yield src, dst
        failed = False
    finally:
        try:
            if dst is not None:
                if output_path is None:
                    try:
                        dst.flush()
                    except OSError as e:  # pragma: no cover
                        logger.debug(f"stdout flush failed: {e}")
                else:
                    try:
                        dst.close()
                    except OSError as e:
                        # 処理中の例外を close 失敗で上書きしない
                        if failed:
                            logger.debug(f"closing output after failure also failed: {e}")
                        else:
                            raise WriteError(f"cannot close output {output_path}: {e}") from e
        finally:
            if src is not None and input_path is not None:
                src.close()


def run(
    pattern: Pattern | str,
    input_stream: BinaryIO,
    output_stream: BinaryIO,
    config: ToolConfig | None = None,
) -> RunResult:
    """Convert log lines from ``input_stream`` into CSV on ``output_stream``.

    ``pattern`` may be pattern text (compiled here) or an already compiled
    Pattern.

    Raises:
        PatternError: before anything is read
        ReadError: I/O failure or oversized line (rows written so far stay)
        WriteError: I/O failure while writing or flushing
    """
    config = config or ToolConfig()
    if isinstance(pattern, str):
        pattern = compile_pattern(pattern)
    logger.debug(f"pattern compiled: groups={list(pattern.group_names)} total_groups={pattern.group_count}")

    start = datetime.now(UTC)
    lines, line_ending = open_lines(input_stream, config.reader)
    logger.debug(f"line ending detected: {line_ending.name}")

    emitter = RowEmitter(output_stream, line_ending, config.emitter)
    try:
        stats = emitter.emit(lines, pattern)
    except Exception:
        try:
            emitter.flush()
        except WriteError as flush_err:
            logger.debug(f"flush after failure also failed: {flush_err}")
        raise
    emitter.flush()

    end = datetime.now(UTC)
    return RunResult.from_stats(stats, line_ending, start, end)
