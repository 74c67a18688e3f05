"""hu5events: one JSON feed of upcoming events for the venues around Hull's HU5."""

__version__ = "0.1.0"
