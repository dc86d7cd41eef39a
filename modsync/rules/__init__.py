"""ModSync Rules System.

This module resolves which settings apply to a generated declaration:
- grammar: tokenizer for ``.modsync`` rule files
- ConfigResolver: cascading rule lookup with process-wide defaults
- lint: read-only diagnostics for rule files
"""

from .engine import ConfigResolver, Rule, find_rule_for_path, parse_rules
from .grammar import ConfigLine, LineKind, split_cfg, split_patterns, tokenize
from .lint import Diagnostic, Severity, lint_rules

__all__ = [
    # Grammar
    "LineKind",
    "ConfigLine",
    "tokenize",
    "split_cfg",
    "split_patterns",
    # Rule engine
    "Rule",
    "parse_rules",
    "find_rule_for_path",
    "ConfigResolver",
    # Lint
    "Severity",
    "Diagnostic",
    "lint_rules",
]
