#!/usr/bin/env python3
r"""Line tokenizer for Rust index files (lib.rs, main.rs, mod.rs).

Index files are scanned line by line; only the shapes that matter for
module bookkeeping are recognized:
- ``mod name;`` declarations with optional ``pub`` / ``pub(crate)``
- inline modules (``mod name { ... }``), which are never file references
- outer attributes (``#[cfg(...)]``) that travel with a declaration
- inner attributes and doc comments forming the file header
- ``use`` statements, including multi-line grouped imports

Example:
    >>> classify_line("pub mod utils; // helpers").kind
    <LineKind.DECLARATION: 'declaration'>
    >>> extract_name("pub(crate) mod net;")
    'net'
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

_VISIBILITY = r"pub(?:\s*\([^)]*\))?"
_IDENT = r"(?:r#)?(?P<name>[A-Za-z_][A-Za-z0-9_]*)"

_DECLARATION_RE = re.compile(rf"^(?:(?P<vis>{_VISIBILITY})\s+)?mod\s+{_IDENT}\s*;$")
_INLINE_MODULE_RE = re.compile(rf"^(?:{_VISIBILITY}\s+)?mod\s+{_IDENT}\s*\{{")
_NAME_RE = re.compile(rf"(?:{_VISIBILITY}\s+)?\bmod\s+{_IDENT}")
_IMPORT_RE = re.compile(rf"^(?:{_VISIBILITY}\s+)?use\s")


class LineKind(Enum):
    """Kind of an index file line."""

    BLANK = "blank"
    LINE_COMMENT = "line_comment"  # //, ///, //!
    BLOCK_COMMENT = "block_comment"  # line opening with /*
    OUTER_ATTRIBUTE = "outer_attribute"  # #[...]
    INNER_ATTRIBUTE = "inner_attribute"  # #![...]
    IMPORT = "import"  # first line of a use statement
    DECLARATION = "declaration"  # mod name;
    INLINE_MODULE = "inline_module"  # mod name { ... }
    CODE = "code"


@dataclass(frozen=True)
class SourceLine:
    """A classified line; ``name`` and ``visibility`` are set for declarations."""

    kind: LineKind
    text: str
    name: Optional[str] = None
    visibility: Optional[str] = None


def strip_line_comment(text: str) -> str:
    """Drop a trailing ``//`` comment and surrounding whitespace."""
    return text.split("//", 1)[0].strip()


def classify_line(line: str) -> SourceLine:
    """Classify a single index file line."""
    stripped = line.strip()

    if not stripped:
        return SourceLine(LineKind.BLANK, line)
    if stripped.startswith("//"):
        return SourceLine(LineKind.LINE_COMMENT, line)
    if stripped.startswith("/*"):
        return SourceLine(LineKind.BLOCK_COMMENT, line)
    if stripped.startswith("#!"):
        return SourceLine(LineKind.INNER_ATTRIBUTE, line)
    if stripped.startswith("#["):
        return SourceLine(LineKind.OUTER_ATTRIBUTE, line)

    instruction = strip_line_comment(stripped)
    if _INLINE_MODULE_RE.match(instruction):
        return SourceLine(LineKind.INLINE_MODULE, line)

    match = _DECLARATION_RE.match(instruction)
    if match:
        visibility = re.sub(r"\s+", "", match.group("vis") or "")
        return SourceLine(LineKind.DECLARATION, line, match.group("name"), visibility)

    if _IMPORT_RE.match(instruction):
        return SourceLine(LineKind.IMPORT, line)

    return SourceLine(LineKind.CODE, line)


def extract_name(declaration_line: str) -> str:
    """Return the module identifier of a declaration line, or "" if there is none.

    Example:
        >>> extract_name("    pub mod utils;")
        'utils'
    """
    match = _NAME_RE.search(declaration_line)
    return match.group("name") if match else ""


@dataclass
class ModuleDeclaration:
    """One declaration block of an index file.

    The block spans ``start_index``..``end_index`` (inclusive): the attribute
    lines collected above the declaration, anything between them, and the
    declaration line itself.
    """

    name: str
    visibility: str  # "", "pub" or "pub(...)"
    line: str
    start_index: int
    end_index: int
    attribute_lines: List[str] = field(default_factory=list)
    full_block_lines: List[str] = field(default_factory=list)

    @property
    def attributes(self) -> List[str]:
        """Stripped attribute lines, used to tell cfg-gated duplicates apart."""
        return [attribute.strip() for attribute in self.attribute_lines]


# Lines that may sit between a declaration and its attributes
_BACKWARD_ELIGIBLE = (LineKind.BLANK, LineKind.LINE_COMMENT, LineKind.OUTER_ATTRIBUTE)


def parse_declarations(lines: List[str]) -> List[ModuleDeclaration]:
    """Find every external module declaration, in file order.

    For each ``mod name;`` line the scan walks backward over blank lines,
    line comments and outer attributes. Attributes are collected and the
    earliest one marks the start of the block.

    Args:
        lines: Index file lines without line terminators

    Returns:
        Declarations in file order
    """
    classified = [classify_line(line) for line in lines]
    declarations: List[ModuleDeclaration] = []

    for index, source_line in enumerate(classified):
        if source_line.kind != LineKind.DECLARATION:
            continue

        attribute_lines: List[str] = []
        start_index = index
        cursor = index - 1
        while cursor >= 0 and classified[cursor].kind in _BACKWARD_ELIGIBLE:
            if classified[cursor].kind == LineKind.OUTER_ATTRIBUTE:
                attribute_lines.insert(0, lines[cursor])
                start_index = cursor
            cursor -= 1

        declarations.append(
            ModuleDeclaration(
                name=source_line.name or "",
                visibility=source_line.visibility or "",
                line=lines[index],
                start_index=start_index,
                end_index=index,
                attribute_lines=attribute_lines,
                full_block_lines=list(lines[start_index : index + 1]),
            )
        )

    return declarations
