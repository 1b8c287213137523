from __future__ import annotations

import re

from log2csv.models.pattern import Pattern

"""Pattern compiler.

Turns the user-supplied pattern text into a Pattern. The output schema (the
header row) comes entirely from the named groups, so a pattern that compiles
but declares none is rejected as well.
"""

__all__ = [
    "PatternError",
    "EmptyPatternError",
    "InvalidPatternError",
    "NoNamedGroupsError",
    "compile_pattern",
    "extract_group_names",
]


class PatternError(Exception):
    """Base class for errors raised before any input is read."""


class EmptyPatternError(PatternError):
    """Raised when the pattern text is empty or whitespace only."""


class InvalidPatternError(PatternError):
    """Raised when the regular expression engine rejects the pattern."""


class NoNamedGroupsError(PatternError):
    """Raised when the pattern declares zero named capture groups."""


def extract_group_names(regex: re.Pattern[str]) -> tuple[str, ...]:
    """Return named groups ordered by group index (= textual order).

    ``groupindex`` maps name -> index and skips anonymous groups.
    """
    return tuple(name for name, _ in sorted(regex.groupindex.items(), key=lambda kv: kv[1]))


def compile_pattern(pattern_text: str) -> Pattern:
    """Compile ``pattern_text`` into a Pattern.

    Raises:
        EmptyPatternError: text is empty or whitespace only
        InvalidPatternError: syntax error (checked before named groups)
        NoNamedGroupsError: valid pattern without any (?P<name>...) group
    """
    if not pattern_text or not pattern_text.strip():
        raise EmptyPatternError("flag -regexp is required")
    try:
        regex = re.compile(pattern_text)
    except re.error as e:
        raise InvalidPatternError(f"invalid regular expression syntax: {e}") from e

    names = extract_group_names(regex)
    if not names:
        raise NoNamedGroupsError(
            "the regular expression must contain at least one named capture group"
        )
    return Pattern(regex=regex, group_names=names, group_count=regex.groups)
