"""Tests for constants and type definitions."""
import pytest

from modsync.core.constants import (
    DEFAULT_CONFIG,
    MODSYNC_VERSION,
    RULE_FILENAME,
    ConfigKey,
    ErrorCode,
    FmtMode,
    RustFiles,
    SortMode,
    Timing,
    Visibility,
)


class TestErrorCodes:
    """Test error code definitions."""

    def test_error_codes_unique(self):
        """All error codes must have unique values."""
        codes = [e.value for e in ErrorCode]
        assert len(codes) == len(set(codes))

    def test_success_is_zero(self):
        """SUCCESS code must be 0."""
        assert ErrorCode.SUCCESS == 0

    def test_error_code_values(self):
        """Test specific error code values."""
        assert ErrorCode.INVALID_INPUT == 1
        assert ErrorCode.NOT_FOUND == 2
        assert ErrorCode.PERMISSION_DENIED == 3
        assert ErrorCode.INTERNAL_ERROR == 6
        assert ErrorCode.TIMEOUT == 7


class TestRuleEnums:
    """Test rule value enums."""

    def test_visibility_values(self):
        """Rule file spellings map to members."""
        assert Visibility("pub") == Visibility.PUB
        assert Visibility("private") == Visibility.PRIVATE

    def test_sort_values(self):
        assert SortMode("alpha") == SortMode.ALPHA
        assert SortMode("none") == SortMode.NONE

    def test_fmt_values(self):
        assert FmtMode("enabled") == FmtMode.ENABLED
        assert FmtMode("disabled") == FmtMode.DISABLED

    def test_unknown_value_rejected(self):
        """Values are case sensitive."""
        with pytest.raises(ValueError):
            Visibility("PUB")


class TestRustFiles:
    """Test Rust file name constants."""

    def test_index_files(self):
        assert RustFiles.CRATE_ROOT == "lib.rs"
        assert RustFiles.PROGRAM_ENTRY == "main.rs"
        assert RustFiles.DIRECTORY_INDEX == "mod.rs"

    def test_reserved_stems(self):
        """Index files and build scripts never get declarations."""
        assert RustFiles.RESERVED_STEMS == {"mod", "lib", "main", "build"}

    def test_rule_filename(self):
        assert RULE_FILENAME == ".modsync"


class TestDefaults:
    """Test default configuration values."""

    def test_version_format(self):
        assert len(MODSYNC_VERSION.split(".")) == 3

    def test_default_timings(self):
        assert Timing.DEBOUNCE_DELAY == 0.5
        assert Timing.RENAME_DETECTION_WINDOW == 0.3
        assert Timing.RENAME_SETTLE_DELAY == 0.2

    def test_default_config_matches_timing(self):
        timing = DEFAULT_CONFIG["modsync"]["timing"]
        assert timing["debounce_delay"] == Timing.DEBOUNCE_DELAY
        assert timing["rename_detection_window"] == Timing.RENAME_DETECTION_WINDOW
        assert timing["rename_settle_delay"] == Timing.RENAME_SETTLE_DELAY

    def test_default_rule_values(self):
        defaults = DEFAULT_CONFIG["modsync"]["defaults"]
        assert defaults == {"visibility": "pub", "sort": "none", "fmt": "disabled"}

    def test_config_keys_under_root(self):
        """Every dotted key starts at the modsync root."""
        keys = [v for k, v in vars(ConfigKey).items() if k.isupper() and k != "ROOT"]
        assert keys
        assert all(key.startswith(ConfigKey.ROOT + ".") for key in keys)
