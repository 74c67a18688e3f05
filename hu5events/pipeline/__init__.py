"""Pipeline orchestration components for the hu5events scraper."""

from hu5events.pipeline.event_pipeline import EventPipeline
from hu5events.pipeline.orchestrator import FetchOrchestrator

__all__ = [
    "EventPipeline",
    "FetchOrchestrator",
]
