"""Chord recognition pipeline - one synchronous call per spectral frame.

    frame -> SamplingGate -> front end (peaks | chroma) -> ChordMatcher
          -> ChordStabilizer -> ChordEvent

All state (vote window, onset/beat history, change gate) lives on the
pipeline instance. It must be driven from one thread at a time, with frames
in timestamp order.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Iterator, Optional, Tuple

import numpy as np

from .core import SpectralFrame
from .analysis import (
    ChromaConfig,
    FrontEnd,
    GateConfig,
    PeakConfig,
    PitchEvidence,
    SamplingGate,
    create_front_end,
)
from .inference import (
    ChordCandidate,
    ChordMatcher,
    ChordStabilizer,
    ChromaChangeGate,
    MatcherConfig,
    MultiBandMatcher,
    StabilityPhase,
    StabilizerConfig,
    DEFAULT_BANDS,
)

logger = logging.getLogger(__name__)


# Peak-picking / onset presets by input quality
SENSITIVITY_PRESETS: Dict[str, Dict[str, float]] = {
    "low": {"amplitude_threshold": 32.0, "min_prominence": 12.0, "onset_threshold": 1.0},
    "medium": {"amplitude_threshold": 16.0, "min_prominence": 8.0, "onset_threshold": 0.5},
    "high": {"amplitude_threshold": 8.0, "min_prominence": 4.0, "onset_threshold": 0.3},
    "studio": {"amplitude_threshold": 5.0, "min_prominence": 2.0, "onset_threshold": 0.2},
}


@dataclass
class PipelineConfig:
    """Configuration for the whole chord pipeline.

    Attributes:
        front_end: Pitch front end, peak picking or chroma (default: peak)
        peaks: Peak extraction settings
        chroma: Chroma aggregation settings
        matcher: Chord matching settings
        stabilizer: Temporal stabilization settings
        gate: Sampling policy settings
        stabilize: Report only stabilized chords (default: True); when
            False every match is reported immediately
        use_change_gate: Skip matching while the chroma is not changing
            (chroma front end only, default: False)
        change_threshold: Cosine distance counted as a change (default: 0.15)
        change_min_consecutive: Changed ticks needed to re-match (default: 3)
        multi_band: Match bass/mid/treble bands separately (default: False)
        bands: Band edges for multi-band matching
    """

    front_end: FrontEnd = FrontEnd.PEAK
    peaks: PeakConfig = field(default_factory=PeakConfig)
    chroma: ChromaConfig = field(default_factory=ChromaConfig)
    matcher: MatcherConfig = field(default_factory=MatcherConfig)
    stabilizer: StabilizerConfig = field(default_factory=StabilizerConfig)
    gate: GateConfig = field(default_factory=GateConfig)
    stabilize: bool = True
    use_change_gate: bool = False
    change_threshold: float = 0.15
    change_min_consecutive: int = 3
    multi_band: bool = False
    bands: Dict[str, Tuple[float, float]] = field(default_factory=lambda: dict(DEFAULT_BANDS))

    def __post_init__(self):
        self.front_end = FrontEnd(self.front_end)

    @classmethod
    def from_sensitivity(cls, sensitivity: str = "medium", **kwargs) -> "PipelineConfig":
        """
        Build a config from a named sensitivity preset.

        Raises:
            ValueError: If the preset is unknown
        """
        preset = SENSITIVITY_PRESETS.get(sensitivity.lower())
        if preset is None:
            raise ValueError(
                f"Unknown sensitivity: {sensitivity}. "
                f"Supported: {sorted(SENSITIVITY_PRESETS)}"
            )
        config = cls(**kwargs)
        config.peaks = replace(
            config.peaks,
            amplitude_threshold=preset["amplitude_threshold"],
            min_prominence=preset["min_prominence"],
        )
        config.gate = replace(config.gate, onset_threshold=preset["onset_threshold"])
        return config


@dataclass(frozen=True)
class ChordEvent:
    """A chord reported to the presentation layer."""

    name: str
    confidence: float
    pitch_classes: Tuple[str, ...]
    timestamp: float  # ms, frame time of the tick that produced it
    changed: bool = True  # Differs from the previously reported chord
    chord_tones: Tuple[str, ...] = ()
    strategy: str = "exact"
    per_band: Optional[Dict[str, ChordCandidate]] = None


class ChordPipeline:
    """Stateful chord detector over a stream of spectral frames."""

    def __init__(self, config: PipelineConfig = None):
        self.config = config or PipelineConfig()
        self.gate = SamplingGate(self.config.gate)
        self.matcher = ChordMatcher(self.config.matcher)
        self.stabilizer = ChordStabilizer(self.config.stabilizer)
        self.change_gate = ChromaChangeGate(
            threshold=self.config.change_threshold,
            min_consecutive=self.config.change_min_consecutive,
        )
        self.multi_band = MultiBandMatcher(
            bands=self.config.bands,
            peak_config=self.config.peaks,
            matcher=self.matcher,
        )
        self.last_evidence: Optional[PitchEvidence] = None
        self.last_sampled = False
        self._build_front_end()
        self._last_reported: Optional[str] = None
        self._last_match: Optional[ChordCandidate] = None

    @property
    def front_end(self) -> FrontEnd:
        return self.config.front_end

    def _build_front_end(self) -> None:
        self._front_end = create_front_end(
            self.config.front_end,
            peak_config=self.config.peaks,
            chroma_config=self.config.chroma,
        )

    def set_front_end(self, front_end: FrontEnd) -> None:
        """Switch front end; all temporal state is reset."""
        self.config.front_end = FrontEnd(front_end)
        self._build_front_end()
        self.reset()

    def reset(self) -> None:
        """Forget all temporal state (stream start/stop)."""
        self.gate.reset()
        self.stabilizer.reset()
        self.change_gate.reset()
        self.last_evidence = None
        self.last_sampled = False
        self._last_reported = None
        self._last_match = None

    def process(self, frame: SpectralFrame) -> Optional[ChordEvent]:
        """
        Run one tick.

        Args:
            frame: Spectral frame of this tick

        Returns:
            ChordEvent, or None when there is nothing to report (silence,
            skipped tick, chord not yet confirmed, malformed frame)
        """
        self.last_sampled = False
        if not frame.is_valid:
            logger.debug("Skipping invalid frame at %.0f ms", frame.frame_time)
            return None

        try:
            with np.errstate(all="ignore"):
                return self._process(frame)
        except (ValueError, FloatingPointError) as e:
            logger.warning("Frame at %.0f ms skipped: %s", frame.frame_time, e)
            return None

    def run(self, frames: Iterable[SpectralFrame]) -> Iterator[ChordEvent]:
        """Process a stream of frames, yielding every reported event."""
        for frame in frames:
            event = self.process(frame)
            if event is not None:
                yield event

    def _process(self, frame: SpectralFrame) -> Optional[ChordEvent]:
        if not self.gate.should_sample(frame):
            return None
        self.last_sampled = True

        per_band = None
        if self.config.multi_band:
            result = self.multi_band.match(frame)
            candidate = result.best
            per_band = dict(result.per_band) if result.per_band else None
        else:
            evidence = self._front_end.extract(frame)
            self.last_evidence = evidence

            if evidence.chroma is not None:
                if self._suppressed_by_change_gate(evidence.chroma):
                    candidate = self._last_match
                else:
                    candidate = self.matcher.match_chroma(evidence.chroma, evidence.dominant).best
                    self._last_match = candidate
                    self.change_gate.accept(evidence.chroma)
            else:
                candidate = self.matcher.match(evidence.pitch_classes, evidence.strongest).best

        if self.config.stabilize:
            reported = self.stabilizer.update(candidate, frame.frame_time)
        else:
            reported = candidate

        return self._report(reported, frame.frame_time, per_band)

    def _suppressed_by_change_gate(self, chroma: np.ndarray) -> bool:
        """Whether the last match can be re-voted because the spectrum is steady."""
        if not self.config.use_change_gate:
            return False
        changing = self.change_gate.update(chroma)
        return not changing and self.stabilizer.phase is StabilityPhase.STABLE

    def _report(
        self,
        candidate: Optional[ChordCandidate],
        timestamp: float,
        per_band: Optional[Dict[str, ChordCandidate]] = None,
    ) -> Optional[ChordEvent]:
        if candidate is None:
            self._last_reported = None
            return None

        changed = candidate.name != self._last_reported
        self._last_reported = candidate.name
        return ChordEvent(
            name=candidate.name,
            confidence=candidate.confidence,
            pitch_classes=candidate.notes,
            timestamp=timestamp,
            changed=changed,
            chord_tones=candidate.chord_tones,
            strategy=candidate.strategy,
            per_band=per_band,
        )
