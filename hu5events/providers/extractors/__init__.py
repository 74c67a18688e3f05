"""Source extractors and the registry that builds them from configuration."""

from hu5events.providers.extractors.jsonld import JsonLdHtmlExtractor
from hu5events.providers.extractors.registry import build_extractors
from hu5events.providers.extractors.tabular import TabularExtractor
from hu5events.providers.extractors.weekly import WeeklyScheduleExtractor

__all__ = [
    "JsonLdHtmlExtractor",
    "TabularExtractor",
    "WeeklyScheduleExtractor",
    "build_extractors",
]
