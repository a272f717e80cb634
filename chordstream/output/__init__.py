"""Output layer - Hand chord events to consumers.

This layer presents pipeline output:
- Scrolling chord history (ticker)
- JSON export and chord timelines
"""

from .history import ChordHistory, HistoryEntry
from .export import EventExporter, event_to_dict, chord_timeline

__all__ = [
    "ChordHistory",
    "HistoryEntry",
    "EventExporter",
    "event_to_dict",
    "chord_timeline",
]
