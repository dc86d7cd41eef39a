#!/usr/bin/env python3
"""Text transforms over Rust index files.

Every operation takes the file content (or its lines) and returns the edited
content; nothing here touches the filesystem. Lines outside the edited
blocks are kept byte for byte, including the file's line ending style and
whether it ends with a newline.

Operations:
- build_declaration_lines: declaration lines for a module and its Rule
- find_insertion_point: where a first declaration goes in a file
- insert: add a declaration block unless the name is already declared
- remove: drop every block declaring a name (cfg-gated duplicates included)
- rename: rewrite a declared name in place
- sort: regroup all blocks alphabetically at the first block's position

Example:
    >>> content = "use std::io;\\n\\nfn main() {}\\n"
    >>> insert(content, ["mod cli;"], "cli")
    'use std::io;\\n\\nmod cli;\\nfn main() {}\\n'
"""

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Set, Tuple

from modsync.core.constants import Visibility
from modsync.declarations.lexer import (
    LineKind,
    classify_line,
    extract_name,
    parse_declarations,
)

if TYPE_CHECKING:
    from modsync.rules.engine import Rule


@dataclass
class TextDocument:
    """Index file content split into lines, remembering how to join them back.

    ``endings`` holds each line's own terminator so mixed line endings
    survive an edit. An empty ending (a line added by an edit, or the last
    line of a file without a trailing newline) is rendered with ``newline``,
    the file's dominant terminator.
    """

    lines: List[str]
    newline: str = "\n"
    trailing_newline: bool = False
    endings: List[str] = field(default_factory=list)

    def __post_init__(self):
        if len(self.endings) < len(self.lines):
            self.endings.extend([""] * (len(self.lines) - len(self.endings)))

    @classmethod
    def parse(cls, content: str) -> "TextDocument":
        parts = re.split(r"(\r?\n)", content)
        lines, endings = parts[0::2], parts[1::2]
        trailing_newline = content.endswith("\n")
        if trailing_newline:
            lines.pop()
        newline = "\r\n" if endings.count("\r\n") > endings.count("\n") else "\n"
        return cls(lines, newline, trailing_newline, endings)

    def render(self) -> str:
        if not self.lines:
            return self.newline if self.trailing_newline else ""
        parts = []
        last = len(self.lines) - 1
        for index, (line, ending) in enumerate(zip(self.lines, self.endings)):
            if index == last and not self.trailing_newline:
                ending = ""
            else:
                ending = ending or self.newline
            parts.append(line + ending)
        return "".join(parts)

    def is_blank(self) -> bool:
        return not any(line.strip() for line in self.lines)

    def insert_lines(self, index: int, new_lines: List[str]) -> None:
        self.lines[index:index] = new_lines
        self.endings[index:index] = [""] * len(new_lines)

    def delete_lines(self, start: int, stop: int) -> None:
        del self.lines[start:stop]
        del self.endings[start:stop]

    def reorder(self, order: List[int]) -> None:
        """Rearrange lines (with their endings) into ``order``, a permutation of indices."""
        self.lines = [self.lines[index] for index in order]
        self.endings = [self.endings[index] for index in order]


def build_declaration_lines(name: str, rule: "Rule") -> List[str]:
    """Build the declaration lines for module ``name``.

    Without cfg conditions this is a single ``mod`` line. Each cfg condition
    yields its own ``#[cfg(...)]`` + ``mod`` pair, in condition order.

    Example:
        >>> build_declaration_lines("net", Rule(cfg=["unix", "windows"]))
        ['#[cfg(unix)]', 'pub mod net;', '#[cfg(windows)]', 'pub mod net;']
    """
    keyword = "mod" if rule.visibility == Visibility.PRIVATE else "pub mod"
    declaration = f"{keyword} {name};"

    if not rule.cfg:
        return [declaration]

    lines: List[str] = []
    for condition in rule.cfg:
        lines.extend([f"#[cfg({condition})]", declaration])
    return lines


def _skip_header(lines: List[str]) -> int:
    """Return the index after leading doc comments, inner attributes and blanks."""
    index = 0
    while index < len(lines):
        stripped = lines[index].strip()
        if stripped.startswith("/*!"):
            # Block doc comment, possibly spanning several lines
            while index < len(lines) and "*/" not in lines[index]:
                index += 1
            index += 1
        elif stripped == "" or stripped.startswith("//!") or stripped.startswith("#!"):
            index += 1
        else:
            break
    return min(index, len(lines))


def _brace_delta(text: str) -> int:
    return text.count("{") - text.count("}")


def scan_imports(lines: List[str], start: int = 0) -> Tuple[int, Set[int]]:
    """Find the leading block of ``use`` statements.

    Grouped imports spanning several lines are tracked by brace depth and
    count as one statement.

    Args:
        lines: File lines
        start: Index the scan starts from (after the header)

    Returns:
        (index of the last import line or -1, indices of all import lines)
    """
    block_end = -1
    import_lines: Set[int] = set()
    in_statement = False
    depth = 0

    for index in range(start, len(lines)):
        stripped = lines[index].strip()
        kind = classify_line(lines[index]).kind

        if kind == LineKind.IMPORT:
            in_statement = True
            depth = 0

        if in_statement:
            import_lines.add(index)
            depth += _brace_delta(stripped)
            if stripped.endswith(";") and depth == 0:
                block_end = index
                in_statement = False
        elif kind not in (LineKind.BLANK, LineKind.LINE_COMMENT, LineKind.BLOCK_COMMENT):
            break

    return block_end, import_lines


def find_insertion_point(lines: List[str]) -> Tuple[int, Set[int]]:
    """Compute where the first declaration of a file goes.

    After the leading import block (skipping the blank lines that follow
    it) if there is one, else after the file header.

    Returns:
        (insertion index, indices of import lines)
    """
    header_end = _skip_header(lines)
    block_end, import_lines = scan_imports(lines, header_end)

    if block_end < 0:
        return header_end, import_lines

    index = block_end + 1
    while index < len(lines) and lines[index].strip() == "":
        index += 1
    return index, import_lines


def has_declaration(content: str, name: str) -> bool:
    """Check whether ``content`` declares module ``name``."""
    return any(d.name == name for d in parse_declarations(TextDocument.parse(content).lines))


def insert(content: str, new_lines: List[str], name: str) -> str:
    """Insert a declaration block for ``name``.

    Returns ``content`` unchanged when ``name`` is already declared. The
    block goes right after the last existing declaration, or at
    ``find_insertion_point`` when there is none. A blank separator line is
    added when the line before the block is neither blank nor part of an
    import, so a block appended after another declaration is separated too.

    Args:
        content: Index file content
        new_lines: Lines from build_declaration_lines
        name: Module name the lines declare

    Returns:
        Updated content
    """
    document = TextDocument.parse(content)

    if document.is_blank():
        return TextDocument(list(new_lines), document.newline, True).render()

    lines = document.lines
    declarations = parse_declarations(lines)
    if any(declaration.name == name for declaration in declarations):
        return content

    index, import_lines = find_insertion_point(lines)
    if declarations:
        index = declarations[-1].end_index + 1

    needs_separator = (
        index > 0 and lines[index - 1].strip() != "" and (index - 1) not in import_lines
    )

    if needs_separator:
        new_lines = [""] + list(new_lines)

    document.insert_lines(index, new_lines)
    return document.render()


def remove(content: str, name: str) -> str:
    """Remove every declaration block named ``name``, attributes included.

    Returns ``content`` unchanged when nothing is declared under that name.
    """
    document = TextDocument.parse(content)
    targets = [d for d in parse_declarations(document.lines) if d.name == name]
    if not targets:
        return content

    # Reverse order keeps earlier indices valid
    for declaration in sorted(targets, key=lambda d: d.start_index, reverse=True):
        document.delete_lines(declaration.start_index, declaration.end_index + 1)
    return document.render()


def rename(content: str, old_name: str, new_name: str) -> str:
    """Rewrite declarations of ``old_name`` to ``new_name`` in place.

    Attributes and positions are kept. No-op when ``old_name`` is not
    declared or ``new_name`` already is.
    """
    document = TextDocument.parse(content)
    declarations = parse_declarations(document.lines)
    names = {declaration.name for declaration in declarations}
    if old_name not in names or new_name in names:
        return content

    pattern = re.compile(r"(\bmod\s+(?:r#)?)" + re.escape(old_name) + r"\b")
    for declaration in declarations:
        if declaration.name == old_name:
            document.lines[declaration.end_index] = pattern.sub(
                lambda match: match.group(1) + new_name, declaration.line, count=1
            )
    return document.render()


def _sort_order(lines: List[str]) -> Optional[List[int]]:
    """Line order with every block regrouped alphabetically at the first block's start."""
    declarations = parse_declarations(lines)
    if len(declarations) < 2:
        return None

    anchor = declarations[0].start_index
    ordered = sorted(declarations, key=lambda d: extract_name(d.line))

    in_blocks: Set[int] = set()
    for declaration in declarations:
        in_blocks.update(range(declaration.start_index, declaration.end_index + 1))
    rest = [index for index in range(len(lines)) if index not in in_blocks]

    block = [
        index
        for declaration in ordered
        for index in range(declaration.start_index, declaration.end_index + 1)
    ]
    # Nothing before the anchor belongs to a block
    return rest[:anchor] + block + rest[anchor:]


def sort(lines: List[str]) -> None:
    """Regroup all declaration blocks alphabetically, in place.

    The sorted blocks are re-inserted where the first block started, so the
    group keeps its place among the surrounding code. Blocks with the same
    name keep their relative order.
    """
    order = _sort_order(lines)
    if order is not None:
        lines[:] = [lines[index] for index in order]


def sort_content(content: str) -> str:
    """Apply ``sort`` to file content; returns ``content`` itself when already sorted."""
    document = TextDocument.parse(content)
    order = _sort_order(document.lines)
    if order is None:
        return content
    document.reorder(order)
    rendered = document.render()
    return content if rendered == content else rendered
