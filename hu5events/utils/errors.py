"""Custom exception hierarchy for hu5events.

All application exceptions inherit from :class:`HU5EventsError`, which
carries an optional ``source_name`` so error handlers can identify which
event source (e.g. "Polar Bear Music Club", "Newland Tap") caused the
failure.

The hierarchy is organized by pipeline stage:

    HU5EventsError  (base -- catch-all for any hu5events error)
    +-- FetchError           (network / transport, after retries)
    |   +-- NotFoundError    (HTTP 404 -- never retried)
    +-- ExtractionError      (malformed page, row or structured metadata)
    +-- SnapshotError        (cache file unreadable or unwritable)
    +-- OutputError          (final JSON could not be serialized -- fatal)
    +-- ConfigurationError   (startup / invalid sources table)

Only ``OutputError`` and ``ConfigurationError`` terminate a run.  Everything
upstream of serialization degrades to an empty contribution or an undated
record.
"""


class HU5EventsError(Exception):
    """Base exception for all hu5events errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``source_name`` identifying which event source triggered the error.
    The ``__str__`` method prefixes the source name in brackets for
    structured log output, e.g. ``[Polar Bear Music Club] HTTP 503``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        source_name: str | None = None,
    ) -> None:
        self._message = message
        self._source_name = source_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def source_name(self) -> str | None:
        return self._source_name

    def __str__(self) -> str:
        if self._source_name:
            return f"[{self._source_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Fetch errors
# ---------------------------------------------------------------------------

class FetchError(HU5EventsError):
    """Raised when a request still fails after the retry budget is spent."""

    def __init__(
        self,
        message: str = "Fetch failed",
        source_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)
        self._status_code = status_code

    @property
    def status_code(self) -> int | None:
        return self._status_code


class NotFoundError(FetchError):
    """Raised on HTTP 404.  Not retryable: the page is gone, not flaky."""

    def __init__(
        self,
        message: str = "Resource not found",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name, status_code=404)


# ---------------------------------------------------------------------------
# Extraction / persistence errors
# ---------------------------------------------------------------------------

class ExtractionError(HU5EventsError):
    """Raised when a page, row or JSON-LD block cannot be turned into a candidate."""

    def __init__(
        self,
        message: str = "Candidate extraction failed",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)


class SnapshotError(HU5EventsError):
    """Raised when the persisted event snapshot cannot be written."""

    def __init__(
        self,
        message: str = "Snapshot I/O failed",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)


class OutputError(HU5EventsError):
    """Raised when the final event list cannot be serialized.  Fatal."""

    def __init__(
        self,
        message: str = "Failed to serialize output",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)


class ConfigurationError(HU5EventsError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)
