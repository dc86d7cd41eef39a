"""Tests for index file line classification and declaration parsing."""
import pytest

from modsync.declarations.lexer import (
    LineKind,
    classify_line,
    extract_name,
    parse_declarations,
    strip_line_comment,
)


class TestClassifyLine:
    """Test classify_line."""

    @pytest.mark.parametrize(
        "line,name,visibility",
        [
            ("mod net;", "net", ""),
            ("pub mod net;", "net", "pub"),
            ("  pub(crate) mod net ;", "net", "pub(crate)"),
            ("pub( super ) mod net;", "net", "pub(super)"),
            ("pub mod r#type;", "type", "pub"),
            ("pub mod utils; // helpers", "utils", "pub"),
        ],
    )
    def test_declarations(self, line, name, visibility):
        source_line = classify_line(line)
        assert source_line.kind == LineKind.DECLARATION
        assert source_line.name == name
        assert source_line.visibility == visibility

    @pytest.mark.parametrize(
        "line,kind",
        [
            ("", LineKind.BLANK),
            ("   ", LineKind.BLANK),
            ("// comment", LineKind.LINE_COMMENT),
            ("//! crate docs", LineKind.LINE_COMMENT),
            ("/* block */", LineKind.BLOCK_COMMENT),
            ("#[cfg(test)]", LineKind.OUTER_ATTRIBUTE),
            ("#![allow(dead_code)]", LineKind.INNER_ATTRIBUTE),
            ("use std::io;", LineKind.IMPORT),
            ("pub use crate::net::Client;", LineKind.IMPORT),
            ("mod tests {", LineKind.INLINE_MODULE),
            ("pub mod inline { fn f() {} }", LineKind.INLINE_MODULE),
            ("fn main() {}", LineKind.CODE),
            ("let module = 1;", LineKind.CODE),
            ("mod;", LineKind.CODE),
        ],
    )
    def test_other_kinds(self, line, kind):
        assert classify_line(line).kind == kind

    def test_strip_line_comment(self):
        assert strip_line_comment("  mod a; // note ") == "mod a;"


class TestExtractName:
    """Test extract_name."""

    def test_names(self):
        assert extract_name("    pub mod utils;") == "utils"
        assert extract_name("pub(crate) mod net;") == "net"
        assert extract_name("mod r#match;") == "match"

    def test_no_name(self):
        assert extract_name("fn main() {}") == ""


class TestParseDeclarations:
    """Test parse_declarations."""

    def test_simple(self):
        lines = ["//! docs", "", "pub mod a;", "mod b;"]
        declarations = parse_declarations(lines)

        assert [d.name for d in declarations] == ["a", "b"]
        assert declarations[0].start_index == declarations[0].end_index == 2
        assert declarations[1].visibility == ""
        assert declarations[0].full_block_lines == ["pub mod a;"]

    def test_attributes_attach(self):
        lines = ["use x;", "#[cfg(unix)]", "#[doc(hidden)]", "pub mod sys;"]
        (declaration,) = parse_declarations(lines)

        assert declaration.start_index == 1
        assert declaration.end_index == 3
        assert declaration.attributes == ["#[cfg(unix)]", "#[doc(hidden)]"]
        assert declaration.full_block_lines == lines[1:]

    def test_comments_between_attribute_and_declaration(self):
        lines = ["#[cfg(unix)]", "// unix only", "", "pub mod sys;"]
        (declaration,) = parse_declarations(lines)

        assert declaration.start_index == 0
        assert declaration.full_block_lines == lines

    def test_scan_stops_at_code(self):
        lines = ["#[cfg(unix)]", "fn f() {}", "pub mod sys;"]
        (declaration,) = parse_declarations(lines)

        assert declaration.start_index == 2
        assert declaration.attribute_lines == []

    def test_inner_attributes_not_attached(self):
        lines = ["#![allow(unused)]", "pub mod a;"]
        (declaration,) = parse_declarations(lines)
        assert declaration.start_index == 1

    def test_previous_declaration_ends_scan(self):
        lines = ["#[cfg(unix)]", "pub mod a;", "pub mod b;"]
        declarations = parse_declarations(lines)
        assert declarations[1].start_index == 2

    def test_cfg_duplicates(self):
        lines = ["#[cfg(unix)]", "pub mod sys;", "#[cfg(windows)]", "pub mod sys;"]
        declarations = parse_declarations(lines)

        assert [d.name for d in declarations] == ["sys", "sys"]
        assert [d.attributes for d in declarations] == [["#[cfg(unix)]"], ["#[cfg(windows)]"]]

    def test_inline_modules_ignored(self):
        lines = ["pub mod a;", "#[cfg(test)]", "mod tests {", "}"]
        assert [d.name for d in parse_declarations(lines)] == ["a"]
