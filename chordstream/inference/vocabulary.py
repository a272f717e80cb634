"""Chord vocabulary - the one table every matching strategy is built from.

Each quality is a root-relative interval pattern with a suffix and its
confidence constants. Exact pitch-class-set lookups and the per-root entry
list are generated from it.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..core import PITCH_NAMES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChordQuality:
    """A chord quality defined by its intervals from the root."""

    name: str  # e.g. "major", "dominant7"
    suffix: str  # Symbol suffix, e.g. "", "m", "7"
    intervals: Tuple[int, ...]  # Semitones from root
    pattern_confidence: float  # Base confidence of an interval-pattern match
    exact_confidence: float  # Confidence of an exact set match
    exact: bool = True  # Whether the quality takes part in exact-set lookups

    @property
    def size(self) -> int:
        return len(self.intervals)


# Ordered by matching priority (triads before sevenths, sus last)
CHORD_QUALITIES: Tuple[ChordQuality, ...] = (
    ChordQuality("major", "", (0, 4, 7), 0.9, 0.9),
    ChordQuality("minor", "m", (0, 3, 7), 0.9, 0.8),
    ChordQuality("major7", "maj7", (0, 4, 7, 11), 0.8, 0.8),
    ChordQuality("minor7", "m7", (0, 3, 7, 10), 0.8, 0.8),
    ChordQuality("dominant7", "7", (0, 4, 7, 10), 0.8, 0.8),
    # Sus sets collide across roots (Csus2 == Gsus4), so pattern-only
    ChordQuality("sus2", "sus2", (0, 2, 7), 0.7, 0.7, exact=False),
    ChordQuality("sus4", "sus4", (0, 5, 7), 0.7, 0.7, exact=False),
)


@dataclass(frozen=True)
class VocabularyEntry:
    """One concrete chord: a root plus a quality."""

    root: int  # Pitch class of the root (0-11)
    quality: ChordQuality

    @property
    def name(self) -> str:
        """Chord symbol (e.g. 'C', 'D#m', 'G7')."""
        return f"{PITCH_NAMES[self.root]}{self.quality.suffix}"

    @property
    def pitch_classes(self) -> FrozenSet[int]:
        return frozenset((self.root + i) % 12 for i in self.quality.intervals)

    @property
    def note_names(self) -> List[str]:
        """Chord tones in root-position order."""
        return [PITCH_NAMES[(self.root + i) % 12] for i in self.quality.intervals]


class ChordVocabulary:
    """Read-only chord table with exact-set and pattern views."""

    def __init__(self, qualities: Iterable[ChordQuality] = CHORD_QUALITIES):
        self.qualities: Tuple[ChordQuality, ...] = tuple(qualities)
        if not self.qualities:
            raise ValueError("A chord vocabulary needs at least one quality")

        # Root-major order: all qualities of C, then C#, ...
        self.entries: Tuple[VocabularyEntry, ...] = tuple(
            VocabularyEntry(root, quality)
            for root in range(12)
            for quality in self.qualities
        )

        exact: Dict[FrozenSet[int], VocabularyEntry] = {}
        for entry in self.entries:
            if not entry.quality.exact:
                continue
            key = entry.pitch_classes
            if key in exact:
                logger.debug(
                    "Exact set of %s already taken by %s", entry.name, exact[key].name
                )
                continue
            exact[key] = entry
        self._exact = exact
        self._by_name = {entry.name: entry for entry in self.entries}

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def lookup_exact(self, pitch_classes: Iterable[int]) -> Optional[VocabularyEntry]:
        """Entry whose pitch-class set equals the given set, if any."""
        return self._exact.get(frozenset(pitch_classes))

    def get(self, name: str) -> Optional[VocabularyEntry]:
        """Entry by chord symbol."""
        return self._by_name.get(name)

    @property
    def exact_entries(self) -> List[VocabularyEntry]:
        return list(self._exact.values())


DEFAULT_VOCABULARY = ChordVocabulary()
