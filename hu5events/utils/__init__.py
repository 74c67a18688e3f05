"""Utility modules for hu5events.

Available utility modules (all re-exported here for convenience):

- **errors** -- Exception hierarchy rooted at HU5EventsError; each stage
  raises its own subclass so callers can decide what is fatal and what is
  merely logged and skipped.
- **concurrency** -- asyncio semaphore throttling, settle-all fan-out and
  the bounded-retry combinator used by the fetch stage.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production, always on
  stderr.
- **text_normalizer** -- Whitespace, price and URL helpers, sold-out / free
  entry wording, event-type tags and fuzzy spreadsheet header matching.
"""

# -- Domain exception hierarchy --------------------------------------------
from hu5events.utils.errors import (
    ConfigurationError,
    ExtractionError,
    FetchError,
    HU5EventsError,
    NotFoundError,
    OutputError,
    SnapshotError,
)

# -- Async concurrency helpers ---------------------------------------------
from hu5events.utils.concurrency import gather_settled, throttled_gather, with_retry

# -- Structured logging setup ----------------------------------------------
from hu5events.utils.logging import configure_logging, get_logger

# -- Text normalization ----------------------------------------------------
from hu5events.utils.text_normalizer import find_column, fuzzy_match, normalize_whitespace

__all__ = [
    "ConfigurationError",
    "ExtractionError",
    "FetchError",
    "HU5EventsError",
    "NotFoundError",
    "OutputError",
    "SnapshotError",
    "configure_logging",
    "find_column",
    "fuzzy_match",
    "gather_settled",
    "get_logger",
    "normalize_whitespace",
    "throttled_gather",
    "with_retry",
]
