from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

"""Pattern and LineEndingStyle domain models.

A Pattern is compiled once at startup and never mutated afterwards; the
LineEndingStyle is detected once from the head of the input stream and reused
for every row written.
"""

__all__ = [
    "LineEndingStyle",
    "Pattern",
]


class LineEndingStyle(Enum):
    """Line terminator convention detected from the input.

    - LF: "\\n" (default when no terminator is found in the look-ahead window)
    - CRLF: "\\r\\n"
    """
    LF = "\n"
    CRLF = "\r\n"

    @property
    def terminator(self) -> str:
        return self.value


@dataclass(frozen=True)
class Pattern:
    """Compiled user pattern plus its output schema.

    group_names holds only the named groups, in textual order; group_count
    also counts anonymous groups (same as ``regex.groups``).
    """
    regex: re.Pattern[str]
    group_names: tuple[str, ...]  # 宣言順 (左から右)
    group_count: int

    @property
    def text(self) -> str:
        return self.regex.pattern

    def captures(self, line: str) -> list[str | None] | None:
        """Return the named captures for ``line`` or None when it does not match.

        Unmatched optional groups come back as None, kept distinct from "".
        """
        m = self.regex.search(line)
        if m is None:
            return None
        return [m.group(name) for name in self.group_names]
