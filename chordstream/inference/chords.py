"""Chord matching - name the chord behind a set of pitch classes.

Strategies, tried in priority order (first success wins):
- Exact pitch-class set lookup
- Interval pattern against every present pitch class as root
- Chroma cosine similarity (chroma front end only)
- Partial set overlap (2 of 3, 3 of 4)
- Fallback to the strongest note, so ambiguous audio still degrades gracefully
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..core import PITCH_NAMES, SpectralFrame, pitch_class_index
from ..analysis.chroma import cosine_similarity, dominant_pitch_classes, strongest_pitch_class
from ..analysis.peaks import PeakConfig, PeakExtractor
from ..analysis.pitch import PitchClassifier
from .vocabulary import ChordVocabulary, DEFAULT_VOCABULARY, VocabularyEntry

logger = logging.getLogger(__name__)

PitchClassLike = Union[str, int]

# Frequency sub-bands for multi-band matching (Hz)
DEFAULT_BANDS: Dict[str, Tuple[float, float]] = {
    "bass": (40.0, 250.0),
    "mid": (250.0, 1000.0),
    "treble": (1000.0, 4000.0),
}


@dataclass(frozen=True)
class ChordCandidate:
    """A chord label with its confidence and supporting evidence."""

    name: str
    confidence: float
    notes: Tuple[str, ...] = ()  # Detected pitch classes
    chord_tones: Tuple[str, ...] = ()  # Pitch classes of the labelled chord
    strategy: str = "exact"  # exact / interval / partial / chroma / fallback
    band: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.strategy == "fallback"


@dataclass
class MatchResult:
    """Best candidate plus everything that was scored on the way."""

    best: Optional[ChordCandidate] = None
    ranked: List[ChordCandidate] = field(default_factory=list)


@dataclass
class MatcherConfig:
    """Configuration for chord matching.

    Attributes:
        min_notes: Distinct pitch classes needed to attempt a match (default: 2)
        interval_match_ratio: Fraction of a pattern's intervals that must be
            present for an interval-pattern match (default: 0.75)
        enable_partial_match: Allow 2-of-3 / 3-of-4 set matches (default: True)
        partial_match_scale: Confidence multiplier for partial matches (default: 0.7)
        chroma_weight: Weight of cosine similarity in chroma scoring (default: 0.7)
        note_weight: Weight of note overlap in chroma scoring (default: 0.3)
        chroma_confidence_cap: Upper bound of a chroma score (default: 0.95)
        min_chroma_confidence: Gate for chroma matches (default: 0.75)
        fallback_confidence: Confidence of a bare strongest-note label (default: 0.3)
    """

    min_notes: int = 2
    interval_match_ratio: float = 0.75
    enable_partial_match: bool = True
    partial_match_scale: float = 0.7
    chroma_weight: float = 0.7
    note_weight: float = 0.3
    chroma_confidence_cap: float = 0.95
    min_chroma_confidence: float = 0.75
    fallback_confidence: float = 0.3

    def __post_init__(self):
        if self.min_notes < 1:
            raise ValueError("min_notes must be at least 1")
        if not 0 < self.interval_match_ratio <= 1:
            raise ValueError("interval_match_ratio must be in (0, 1]")
        for name in ("partial_match_scale", "chroma_confidence_cap",
                     "min_chroma_confidence", "fallback_confidence"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise ValueError(f"{name} must be in [0, 1], got {value}")


class ChordMatcher:
    """Match pitch-class sets or chroma vectors against the chord vocabulary."""

    def __init__(
        self,
        config: MatcherConfig = None,
        vocabulary: ChordVocabulary = DEFAULT_VOCABULARY,
    ):
        self.config = config or MatcherConfig()
        self.vocabulary = vocabulary

    def match(
        self,
        pitch_classes: Sequence[PitchClassLike],
        strongest: Optional[PitchClassLike] = None,
    ) -> MatchResult:
        """
        Match a set of detected pitch classes.

        Args:
            pitch_classes: Detected pitch classes (names or 0-11), in the
                order roots should be tried for interval matching
            strongest: Loudest pitch class, used by the fallback
                (defaults to the first one supplied)

        Returns:
            MatchResult; ``best`` is None when fewer than min_notes classes
        """
        classes = _unique_indices(pitch_classes)
        if len(classes) < self.config.min_notes:
            return MatchResult()

        ranked: List[ChordCandidate] = []
        best = (
            self._match_exact(classes, ranked)
            or self._match_intervals(classes, ranked)
            or self._match_partial(classes, ranked)
        )
        if best is None:
            best = self._fallback(classes, strongest)
            ranked.append(best)

        logger.debug("Matched %s -> %s (%.2f, %s)",
                     _names(classes), best.name, best.confidence, best.strategy)
        return MatchResult(best=best, ranked=ranked)

    def match_chroma(
        self,
        chroma: np.ndarray,
        dominant: Optional[Sequence[PitchClassLike]] = None,
    ) -> MatchResult:
        """
        Match a normalized chroma vector.

        Args:
            chroma: 12-element chroma vector (index = pitch class)
            dominant: Dominant pitch classes; derived from the vector if omitted

        Returns:
            MatchResult; ``best`` is None for silence or too few dominant notes
        """
        chroma = np.asarray(chroma, dtype=np.float64)
        if dominant is None:
            dominant = dominant_pitch_classes(chroma)
        classes = _unique_indices(dominant)
        if len(classes) < self.config.min_notes or not np.any(chroma > 0):
            return MatchResult()

        ranked: List[ChordCandidate] = []
        best = (
            self._match_exact(classes, ranked)
            or self._match_intervals(classes, ranked)
            or self._match_cosine(classes, chroma, ranked)
            or self._match_partial(classes, ranked)
        )
        if best is None:
            best = self._fallback(classes, strongest_pitch_class(chroma))
            ranked.append(best)

        logger.debug("Chroma match %s -> %s (%.2f, %s)",
                     _names(classes), best.name, best.confidence, best.strategy)
        return MatchResult(best=best, ranked=ranked)

    def _candidate(
        self,
        entry: VocabularyEntry,
        confidence: float,
        classes: List[int],
        strategy: str,
    ) -> ChordCandidate:
        return ChordCandidate(
            name=entry.name,
            confidence=float(confidence),
            notes=_names(classes),
            chord_tones=tuple(entry.note_names),
            strategy=strategy,
        )

    def _match_exact(self, classes, ranked) -> Optional[ChordCandidate]:
        entry = self.vocabulary.lookup_exact(classes)
        if entry is None:
            return None
        candidate = self._candidate(entry, entry.quality.exact_confidence, classes, "exact")
        ranked.append(candidate)
        return candidate

    def _match_intervals(self, classes, ranked) -> Optional[ChordCandidate]:
        """First root (in supplied order) and quality whose pattern is mostly present."""
        best = None
        for root in classes:
            intervals = {(pc - root) % 12 for pc in classes}
            for quality in self.vocabulary.qualities:
                present = sum(1 for i in quality.intervals if i in intervals)
                ratio = present / quality.size
                if ratio < self.config.interval_match_ratio:
                    continue
                entry = VocabularyEntry(root, quality)
                candidate = self._candidate(
                    entry, quality.pattern_confidence * ratio, classes, "interval"
                )
                ranked.append(candidate)
                if best is None:
                    best = candidate
        return best

    def _match_partial(self, classes, ranked) -> Optional[ChordCandidate]:
        """Highest-confidence table entry sharing enough notes; ties keep table order."""
        if not self.config.enable_partial_match:
            return None

        detected = set(classes)
        best = None
        for entry in self.vocabulary.exact_entries:
            tones = entry.pitch_classes
            overlap = len(detected & tones)
            required = 3 if len(tones) >= 4 else 2
            if overlap < required:
                continue
            confidence = (
                entry.quality.exact_confidence
                * self.config.partial_match_scale
                * overlap / len(tones)
            )
            candidate = self._candidate(entry, confidence, classes, "partial")
            ranked.append(candidate)
            if best is None or candidate.confidence > best.confidence:
                best = candidate
        return best

    def _match_cosine(self, classes, chroma, ranked) -> Optional[ChordCandidate]:
        """Score every chord's ideal chroma against the observed one."""
        cfg = self.config
        detected = set(classes)
        scored = []
        for entry in self.vocabulary:
            ideal = np.zeros(12)
            ideal[list(entry.pitch_classes)] = 1.0
            chroma_match = max(0.0, cosine_similarity(chroma, ideal))
            overlap = len(detected & entry.pitch_classes)
            note_match = overlap / max(len(entry.pitch_classes), len(detected))
            confidence = min(
                cfg.chroma_weight * chroma_match + cfg.note_weight * note_match,
                cfg.chroma_confidence_cap,
            )
            scored.append(self._candidate(entry, confidence, classes, "chroma"))

        scored.sort(key=lambda c: c.confidence, reverse=True)
        ranked.extend(scored)
        if scored and scored[0].confidence >= cfg.min_chroma_confidence:
            return scored[0]
        return None

    def _fallback(self, classes, strongest) -> ChordCandidate:
        root = pitch_class_index(strongest) if isinstance(strongest, str) else strongest
        if root is None:
            root = classes[0]
        name = PITCH_NAMES[root % 12]
        return ChordCandidate(
            name=name,
            confidence=self.config.fallback_confidence,
            notes=_names(classes),
            chord_tones=(name,),
            strategy="fallback",
        )


@dataclass
class MultiBandResult:
    """Per-band chord candidates of one frame."""

    per_band: Dict[str, ChordCandidate] = field(default_factory=dict)

    @property
    def best(self) -> Optional[ChordCandidate]:
        if not self.per_band:
            return None
        return max(self.per_band.values(), key=lambda c: c.confidence)

    @property
    def confidence(self) -> float:
        """Max confidence across bands (bands are not merged)."""
        best = self.best
        return best.confidence if best else 0.0

    @property
    def is_composite(self) -> bool:
        return len(self.per_band) > 1


class MultiBandMatcher:
    """Run peak extraction and matching separately on disjoint frequency bands."""

    def __init__(
        self,
        bands: Dict[str, Tuple[float, float]] = None,
        peak_config: PeakConfig = None,
        matcher: ChordMatcher = None,
    ):
        self.bands = dict(bands or DEFAULT_BANDS)
        self.matcher = matcher or ChordMatcher()
        self.classifier = PitchClassifier()
        base = peak_config or PeakConfig()
        self.extractors = {
            name: PeakExtractor(replace(base, min_frequency=low, max_frequency=high))
            for name, (low, high) in self.bands.items()
        }

    def match(self, frame: SpectralFrame) -> MultiBandResult:
        """Match every band of one frame."""
        result = MultiBandResult()
        for name, extractor in self.extractors.items():
            notes = self.classifier.classify_peaks(extractor.extract(frame))
            if not notes:
                continue
            strongest = max(notes, key=lambda n: n.amplitude).pitch_class
            match = self.matcher.match([n.pitch_class for n in notes], strongest)
            if match.best is not None:
                result.per_band[name] = replace(match.best, band=name)
        return result


def _unique_indices(pitch_classes: Sequence[PitchClassLike]) -> List[int]:
    """Pitch classes as unique 0-11 ints, keeping first-seen order."""
    seen: List[int] = []
    for pc in pitch_classes:
        index = pitch_class_index(pc) if isinstance(pc, str) else int(pc) % 12
        if index not in seen:
            seen.append(index)
    return seen


def _names(classes: Sequence[int]) -> Tuple[str, ...]:
    return tuple(PITCH_NAMES[pc] for pc in classes)
