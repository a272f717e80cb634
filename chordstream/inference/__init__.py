"""Inference layer - Musical understanding of pitch evidence.

This layer turns pitch classes and chroma vectors into chords:
- Canonical chord vocabulary
- Chord matching (exact, interval pattern, partial, chroma similarity)
- Multi-band matching
- Temporal stabilization (vote window + hysteresis)

Pipeline: PitchEvidence -> ChordMatcher -> ChordStabilizer -> confirmed chord
"""

from .vocabulary import (
    ChordQuality,
    ChordVocabulary,
    VocabularyEntry,
    CHORD_QUALITIES,
    DEFAULT_VOCABULARY,
)
from .chords import (
    ChordCandidate,
    ChordMatcher,
    MatcherConfig,
    MatchResult,
    MultiBandMatcher,
    MultiBandResult,
    DEFAULT_BANDS,
)
from .stabilizer import (
    ChordStabilizer,
    StabilizerConfig,
    StableChordState,
    StabilityPhase,
    ChordVoteWindow,
    ChromaChangeGate,
)

__all__ = [
    # Vocabulary
    "ChordQuality",
    "ChordVocabulary",
    "VocabularyEntry",
    "CHORD_QUALITIES",
    "DEFAULT_VOCABULARY",
    # Matching
    "ChordCandidate",
    "ChordMatcher",
    "MatcherConfig",
    "MatchResult",
    "MultiBandMatcher",
    "MultiBandResult",
    "DEFAULT_BANDS",
    # Stabilization
    "ChordStabilizer",
    "StabilizerConfig",
    "StableChordState",
    "StabilityPhase",
    "ChordVoteWindow",
    "ChromaChangeGate",
]
