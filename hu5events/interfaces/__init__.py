"""Public interface definitions for the pluggable parts of the scraper.

Sources are reached only through the abstract base classes below.
Concrete adapters live in ``hu5events/providers/`` and are selected from
the sources table at run time, so adding a venue never touches the core.

CONCRETE PROVIDER MAP:
    Interface      →  Concrete implementations (in hu5events/providers/)
    ─────────────────────────────────────────────────────────────────────
    IExtractor     →  TabularExtractor, JsonLdHtmlExtractor,
                      WeeklyScheduleExtractor
    IPageFetcher   →  HttpFetcher
"""

from hu5events.interfaces.extractor import IExtractor
from hu5events.interfaces.fetcher import IPageFetcher

__all__ = ["IExtractor", "IPageFetcher"]
