"""Domain models for the log -> CSV extraction tool.

This package contains the model classes shared by the compiler, reader,
emitter and CLI layers.
"""

from .pattern import LineEndingStyle, Pattern
from .run_result import EmitStats, RunResult
from .settings import EmitterSettings, ReaderSettings, ToolConfig

__all__ = [
    # Pattern / stream models
    "LineEndingStyle",
    "Pattern",
    # Configuration models
    "EmitterSettings",
    "ReaderSettings",
    "ToolConfig",
    # Result models
    "EmitStats",
    "RunResult",
]
