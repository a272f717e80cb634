"""Scrolling chord history (ticker)."""

from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

from ..pipeline import ChordEvent


@dataclass(frozen=True)
class HistoryEntry:
    """One ticker slot: a chord name, or None for 'no change / no chord'."""

    chord: Optional[str]
    timestamp: float  # ms


class ChordHistory:
    """Fixed-length ticker of sampled ticks.

    A chord name is added only when it differs from the previous one;
    repeated or missing chords add an empty placeholder so the ticker keeps
    scrolling in time.
    """

    def __init__(self, max_items: int = 15):
        self.max_items = max_items
        self._items: Deque[HistoryEntry] = deque(maxlen=max_items)
        self._last_chord: Optional[str] = None

    def record(self, event: Optional[ChordEvent], timestamp: float) -> HistoryEntry:
        """Add one sampled tick to the ticker."""
        if event is not None and event.name != self._last_chord:
            entry = HistoryEntry(chord=event.name, timestamp=timestamp)
            self._last_chord = event.name
        else:
            entry = HistoryEntry(chord=None, timestamp=timestamp)
            if event is None:
                self._last_chord = None
        self._items.append(entry)
        return entry

    @property
    def items(self) -> List[HistoryEntry]:
        return list(self._items)

    @property
    def chords(self) -> List[str]:
        """Chord names in order, placeholders dropped."""
        return [item.chord for item in self._items if item.chord]

    def render(self, placeholder: str = "•") -> str:
        """Ticker as one line of text."""
        return " ".join(item.chord or placeholder for item in self._items)

    def clear(self) -> None:
        self._items.clear()
        self._last_chord = None
