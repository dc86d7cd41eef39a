#!/usr/bin/env python3
"""Diagnostics for ``.modsync`` rule files.

The rule engine accepts anything and silently keeps defaults; this module
reports what the engine would ignore, line by line. It is read-only and
shares the tokenizer with the engine.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Type

from modsync.core.constants import FmtMode, SortMode, Visibility
from modsync.rules.grammar import (
    ConfigLine,
    LineKind,
    paren_balance,
    split_blocks,
    split_top_level,
    tokenize,
)


class Severity(Enum):
    """Diagnostic severity."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """A problem found on one line (1-based)."""

    line_number: int
    message: str
    severity: Severity = Severity.ERROR

    def __str__(self) -> str:
        return f"{self.line_number}: {self.severity.value}: {self.message}"


_CHOICES = {
    "visibility": Visibility,
    "sort": SortMode,
    "fmt": FmtMode,
}


def _choice_message(key: str, enum_type: Type) -> str:
    values = " or ".join(f"'{member.value}'" for member in enum_type)
    return f"{key} accepts only {values}"


def lint_line(token: ConfigLine) -> List[Diagnostic]:
    """Check a single tokenized line."""
    if token.kind in (LineKind.BLANK, LineKind.COMMENT):
        return []
    if token.kind == LineKind.INVALID:
        return [Diagnostic(token.line_number, "invalid line, expected 'key = value'")]

    key, value = token.key, token.value

    if key in _CHOICES:
        enum_type = _CHOICES[key]
        if value not in {member.value for member in enum_type}:
            return [Diagnostic(token.line_number, _choice_message(key, enum_type))]
        return []

    if key == "pattern":
        if any(part.strip() == "" for part in value.split(",")):
            return [Diagnostic(token.line_number, "pattern values cannot be empty")]
        return []

    if key == "cfg":
        diagnostics = []
        if paren_balance(value) != 0:
            diagnostics.append(Diagnostic(token.line_number, "cfg has unbalanced parentheses"))
        if any(part == "" for part in split_top_level(value)):
            diagnostics.append(Diagnostic(token.line_number, "cfg values cannot be empty"))
        return diagnostics

    return [Diagnostic(token.line_number, f"unknown setting '{key}'", Severity.WARNING)]


def lint_block(block: List[ConfigLine]) -> List[Diagnostic]:
    """Warn about a comment-only block; it still acts as a default fallback rule."""
    if any(token.kind != LineKind.COMMENT for token in block):
        return []
    return [
        Diagnostic(
            block[0].line_number,
            "block has no settings and applies the defaults as a fallback rule",
            Severity.WARNING,
        )
    ]


def lint_rules(text: str) -> List[Diagnostic]:
    """Return every diagnostic for rule file content, in line order."""
    diagnostics: List[Diagnostic] = []
    for token in tokenize(text):
        diagnostics.extend(lint_line(token))
    for block in split_blocks(text):
        diagnostics.extend(lint_block(block))
    return sorted(diagnostics, key=lambda diagnostic: diagnostic.line_number)
