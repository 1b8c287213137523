from __future__ import annotations

from dataclasses import dataclass, field

"""Settings dataclasses for the line reader and row emitter.

These replace process-wide constants: every limit is passed to the component
at construction so tests can use small values (e.g. a tiny max_line_size to
exercise the oversized-line failure path).
"""

KIB = 1024
MIB = 1024 * KIB

DEFAULT_MAX_LINE_SIZE = 64 * KIB
DEFAULT_MAX_BUFFER_SIZE = 10 * MIB
DEFAULT_PEEK_SIZE = 64 * KIB
DEFAULT_CHUNK_SIZE = 64 * KIB


@dataclass(frozen=True)
class ReaderSettings:
    """Limits for the line reader.

    max_line_size bounds a single logical line (terminator excluded);
    max_buffer_size is the hard ceiling on pending, not-yet-split bytes.
    """
    max_line_size: int = DEFAULT_MAX_LINE_SIZE
    max_buffer_size: int = DEFAULT_MAX_BUFFER_SIZE
    peek_size: int = DEFAULT_PEEK_SIZE  # 改行スタイル判定用の先読み上限
    chunk_size: int = DEFAULT_CHUNK_SIZE
    encoding: str = "utf-8"


@dataclass(frozen=True)
class EmitterSettings:
    """Delimited-text serialization options."""
    separator: str = ","
    quote_char: str = '"'
    flush_each_row: bool = True
    encoding: str = "utf-8"


@dataclass(frozen=True)
class ToolConfig:
    """Root configuration object (all defaults when no config file is given)."""
    reader: ReaderSettings = field(default_factory=ReaderSettings)
    emitter: EmitterSettings = field(default_factory=EmitterSettings)
