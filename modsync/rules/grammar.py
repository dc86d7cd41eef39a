#!/usr/bin/env python3
"""Tokenizer for the ``.modsync`` rule file grammar.

A rule file is line oriented. Blocks are separated by blank lines, lines
starting with ``#`` are comments and every other line is ``key = value``:

    # private helpers, sorted
    pattern = utils, helpers
    visibility = private
    sort = alpha

    cfg = feature="x", all(unix, target_pointer_width = "64")

Both the rule engine and the linter consume the tokens produced here, so
they always agree on what a line means.

Example:
    >>> tokenize_line("sort = alpha", 1)
    ConfigLine(kind=<LineKind.SETTING: 'setting'>, line_number=1, raw='sort = alpha', key='sort', value='alpha')
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class LineKind(Enum):
    """Kind of a rule file line."""

    BLANK = "blank"
    COMMENT = "comment"
    SETTING = "setting"  # key = value
    INVALID = "invalid"  # no separator or no key


@dataclass(frozen=True)
class ConfigLine:
    """A single tokenized rule file line (line numbers are 1-based)."""

    kind: LineKind
    line_number: int
    raw: str
    key: Optional[str] = None
    value: Optional[str] = None


def tokenize_line(line: str, line_number: int) -> ConfigLine:
    """Classify one line of a rule file.

    Args:
        line: Raw line without its line terminator
        line_number: 1-based line number

    Returns:
        Tokenized line
    """
    stripped = line.strip()
    if not stripped:
        return ConfigLine(LineKind.BLANK, line_number, line)
    if stripped.startswith("#"):
        return ConfigLine(LineKind.COMMENT, line_number, line)

    key, separator, value = stripped.partition("=")
    key = key.strip()
    if not separator or not key:
        return ConfigLine(LineKind.INVALID, line_number, line)

    return ConfigLine(LineKind.SETTING, line_number, line, key=key, value=value.strip())


def tokenize(text: str) -> List[ConfigLine]:
    """Tokenize a whole rule file."""
    return [tokenize_line(line, number) for number, line in enumerate(text.splitlines(), 1)]


def split_blocks(text: str) -> List[List[ConfigLine]]:
    """Split a rule file into blocks of non-blank lines.

    Every block becomes a rule, including one holding only comments: it
    carries no pattern, so it is a fallback with the default settings.
    """
    blocks: List[List[ConfigLine]] = []
    current: List[ConfigLine] = []

    for token in tokenize(text):
        if token.kind == LineKind.BLANK:
            if current:
                blocks.append(current)
            current = []
        else:
            current.append(token)
    if current:
        blocks.append(current)

    return blocks


def split_top_level(value: str) -> List[str]:
    """Split on commas that are not nested inside parentheses.

    Segments are stripped but empty segments are kept, so callers can
    report them.

    Example:
        >>> split_top_level('feature="x",all(unix, width="64")')
        ['feature="x"', 'all(unix, width="64")']
    """
    parts: List[str] = []
    current: List[str] = []
    depth = 0

    for char in value:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1

        if char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    parts.append("".join(current).strip())

    return parts


def paren_balance(value: str) -> int:
    """Return the final parenthesis depth of ``value`` (0 when balanced)."""
    depth = 0
    for char in value:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                return depth
    return depth


def split_cfg(value: str) -> List[str]:
    """Split a ``cfg`` value into conditions, dropping empty segments."""
    return [part for part in split_top_level(value) if part]


def split_patterns(value: str) -> List[str]:
    """Split a ``pattern`` value on every comma, dropping empty segments."""
    return [part.strip() for part in value.split(",") if part.strip()]
