"""ModSync - keeps Rust module index files in step with the source tree."""

from modsync.core.constants import MODSYNC_VERSION

__version__ = MODSYNC_VERSION
