"""Configuration module - exports Settings, load_config and the SKIP_* switch reader."""

from hu5events.config.loader import DEFAULT_SOURCES_PATH, load_config
from hu5events.config.settings import Settings, is_source_skipped

__all__ = ["DEFAULT_SOURCES_PATH", "Settings", "is_source_skipped", "load_config"]
