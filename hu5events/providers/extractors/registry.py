"""Build the run's extractor list from the sources table.

Each configured source maps to exactly one extractor by its ``kind``.
Sources whose ``SKIP_<TOGGLE>`` environment switch is truthy are left out
and logged, so an operator can silence a broken site without editing YAML.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import structlog

from hu5events.config.settings import Settings, is_source_skipped
from hu5events.interfaces.extractor import IExtractor
from hu5events.models.source import (
    JsonLdSourceConfig,
    SourceConfig,
    TabularSourceConfig,
    WeeklySourceConfig,
)
from hu5events.providers.extractors.jsonld import JsonLdHtmlExtractor
from hu5events.providers.extractors.tabular import TabularExtractor
from hu5events.providers.extractors.weekly import WeeklyScheduleExtractor
from hu5events.services.cutoff import compute_cutoff
from hu5events.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


def build_extractors(
    sources: Iterable[SourceConfig],
    settings: Settings,
    environ: Mapping[str, str] | None = None,
    cutoff: datetime | None = None,
) -> list[IExtractor]:
    """Instantiate one extractor per enabled source, in table order.

    Parameters
    ----------
    sources:
        Validated source entries from the sources table.
    settings:
        Supplies the timezone and detail-page concurrency.
    environ:
        Environment to read ``SKIP_*`` switches from (``os.environ``
        when omitted).
    cutoff:
        Start of today for weekly slots; computed from the wall clock when
        omitted.
    """
    tz = ZoneInfo(settings.timezone)
    if cutoff is None:
        cutoff = compute_cutoff(datetime.now(timezone.utc), tz)

    extractors: list[IExtractor] = []
    for source in sources:
        if is_source_skipped(source.toggle, environ):
            logger.info("source_skipped", source=source.name, toggle=f"SKIP_{source.toggle}")
            continue

        if isinstance(source, TabularSourceConfig):
            extractors.append(TabularExtractor(source))
        elif isinstance(source, JsonLdSourceConfig):
            extractors.append(
                JsonLdHtmlExtractor(source, detail_concurrency=settings.detail_concurrency)
            )
        elif isinstance(source, WeeklySourceConfig):
            extractors.append(WeeklyScheduleExtractor(source, cutoff=cutoff, tz=tz))
        else:
            raise ConfigurationError(
                message=f"Unsupported source kind: {type(source).__name__}",
                source_name=getattr(source, "name", None),
            )

    return extractors
