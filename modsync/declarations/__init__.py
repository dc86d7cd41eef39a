"""ModSync Declarations.

Text-level handling of Rust index files:
- lexer: line classification and ModuleDeclaration parsing
- store: insert, remove, rename and sort declaration blocks
"""

from .lexer import LineKind, ModuleDeclaration, classify_line, extract_name, parse_declarations
from .store import (
    TextDocument,
    build_declaration_lines,
    find_insertion_point,
    has_declaration,
    insert,
    remove,
    rename,
    sort,
    sort_content,
)

__all__ = [
    # Lexer
    "LineKind",
    "ModuleDeclaration",
    "classify_line",
    "extract_name",
    "parse_declarations",
    # Store
    "TextDocument",
    "build_declaration_lines",
    "find_insertion_point",
    "has_declaration",
    "insert",
    "remove",
    "rename",
    "sort",
    "sort_content",
]
