#!/usr/bin/env python3
"""Rule resolution for generated module declarations.

This module answers "which rule applies to this path?":
- Lenient parsing of ``.modsync`` rule files (never raises)
- Substring / file-name pattern matching, first match wins
- Pattern-less rule as the per-file fallback
- Cascading lookup through ancestor directories
- Process-wide defaults (ConfigManager) when no rule file applies

Rule files are re-read on every resolution; nothing is cached.

Example:
    >>> rules = parse_rules("pattern = utils\\n\\nvisibility = private")
    >>> find_rule_for_path(rules, "/src/random.rs").visibility
    <Visibility.PRIVATE: 'private'>
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

from modsync.core.config import ConfigManager, get_config_manager
from modsync.core.constants import RULE_FILENAME, ConfigKey, FmtMode, SortMode, Visibility
from modsync.core.logging import Logger, get_logger
from modsync.rules.grammar import LineKind, split_blocks, split_cfg, split_patterns


@dataclass
class Rule:
    """Settings applied to the declarations generated for a path.

    ``pattern`` is None for a fallback rule. An explicitly empty pattern list
    never matches and is not a fallback either.
    """

    visibility: Visibility = Visibility.PUB
    sort: SortMode = SortMode.NONE
    fmt: FmtMode = FmtMode.DISABLED
    pattern: Optional[List[str]] = None
    cfg: Optional[List[str]] = None
    source: Optional[str] = field(default=None, compare=False)  # Rule file it came from

    @property
    def is_fallback(self) -> bool:
        """True when the rule has no ``pattern`` setting."""
        return self.pattern is None

    def matches(self, path: str) -> bool:
        """Check whether any pattern is a substring of ``path`` or equals its file name."""
        if not self.pattern:
            return False
        file_name = os.path.basename(path)
        return any(pattern in path or pattern == file_name for pattern in self.pattern)


def _enum_value(enum_type, raw: str, current):
    try:
        return enum_type(raw)
    except ValueError:
        return current


def parse_rules(text: str, source: Optional[str] = None) -> List[Rule]:
    """Parse rule file content into an ordered list of rules.

    Every block starts from the default rule. Unknown keys are ignored and a
    malformed value leaves its field untouched.

    Args:
        text: Rule file content
        source: Optional origin recorded on each rule

    Returns:
        Rules in file order
    """
    rules: List[Rule] = []

    for block in split_blocks(text):
        rule = Rule(source=source)
        for token in block:
            if token.kind != LineKind.SETTING:
                continue

            if token.key == "visibility":
                rule.visibility = _enum_value(Visibility, token.value, rule.visibility)
            elif token.key == "sort":
                rule.sort = _enum_value(SortMode, token.value, rule.sort)
            elif token.key == "fmt":
                rule.fmt = _enum_value(FmtMode, token.value, rule.fmt)
            elif token.key == "pattern":
                rule.pattern = split_patterns(token.value)
            elif token.key == "cfg":
                rule.cfg = split_cfg(token.value)
        rules.append(rule)

    return rules


def find_rule_for_path(rules: Sequence[Rule], path: str) -> Optional[Rule]:
    """Pick the rule for ``path``: first matching pattern rule, else first fallback.

    Args:
        rules: Rules in file order
        path: Full path of the file being declared

    Returns:
        Matching rule, or None when the rules have nothing for this path
    """
    for rule in rules:
        if rule.matches(path):
            return rule

    for rule in rules:
        if rule.is_fallback:
            return rule

    return None


class ConfigResolver:
    """Resolves the applicable Rule for a path.

    Walks from the path's directory up to the filesystem root. Each ancestor
    holding a rule file is consulted in turn; the first one that yields a
    rule wins. With no applicable rule anywhere the process-wide defaults are
    used.
    """

    def __init__(
        self,
        config: Optional[ConfigManager] = None,
        logger: Optional[Logger] = None,
        rule_filename: str = RULE_FILENAME,
    ):
        """Initialize resolver.

        Args:
            config: Process-wide configuration holding the defaults
            logger: Logger instance
            rule_filename: Name of per-directory rule files
        """
        self._config = config
        self._logger = logger or get_logger()
        self.rule_filename = rule_filename

    @property
    def config(self) -> ConfigManager:
        if self._config is None:
            self._config = get_config_manager()
        return self._config

    def iter_rule_files(self, path: Union[str, Path]):
        """Yield existing rule files from the nearest ancestor upward."""
        directory = os.path.dirname(os.path.abspath(str(path)))

        while True:
            candidate = os.path.join(directory, self.rule_filename)
            if os.path.isfile(candidate):
                yield candidate

            parent = os.path.dirname(directory)
            if parent == directory:
                break
            directory = parent

    def resolve_for_path(self, path: Union[str, Path]) -> Rule:
        """Resolve the rule that applies to ``path``.

        Args:
            path: File (or index file) the declaration is generated for

        Returns:
            Applicable rule, never None
        """
        full_path = os.path.abspath(str(path))

        for rule_file in self.iter_rule_files(full_path):
            try:
                with open(rule_file, "r", encoding="utf-8") as f:
                    text = f.read()
            except (OSError, UnicodeDecodeError) as e:
                self._logger.warning("Cannot read rule file", path=rule_file, error=str(e))
                continue

            rule = find_rule_for_path(parse_rules(text, source=rule_file), full_path)
            if rule is not None:
                self._logger.debug("Resolved rule", path=full_path, source=rule_file)
                return rule

        return self.default_rule()

    def default_rule(self) -> Rule:
        """Build the fallback rule from the process-wide configuration."""
        return Rule(
            visibility=self._configured(ConfigKey.DEFAULT_VISIBILITY, Visibility, Visibility.PUB),
            sort=self._configured(ConfigKey.DEFAULT_SORT, SortMode, SortMode.NONE),
            fmt=self._configured(ConfigKey.DEFAULT_FMT, FmtMode, FmtMode.DISABLED),
        )

    def _configured(self, key: str, enum_type, documented_default):
        raw = self.config.get(key)
        if raw is None:
            return documented_default
        try:
            return enum_type(raw)
        except ValueError:
            self._logger.warning("Ignoring invalid default", key=key, value=raw)
            return documented_default
