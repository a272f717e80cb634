"""Pitch front ends - interchangeable strategies feeding the chord matcher.

The peak front end yields discrete notes; the chroma front end yields a
folded pitch-class energy vector plus the notes dominating it. Which one
runs is fixed at configuration time.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np

from ..core import PitchedNote, SpectralFrame
from .chroma import ChromaAggregator, ChromaConfig, strongest_pitch_class
from .peaks import PeakConfig, PeakExtractor
from .pitch import PitchClassifier


class FrontEnd(str, Enum):
    """Available pitch front ends."""

    PEAK = "peak"
    CHROMA = "chroma"


@dataclass
class PitchEvidence:
    """What a front end extracted from one frame."""

    notes: List[PitchedNote] = field(default_factory=list)
    chroma: Optional[np.ndarray] = None
    dominant: List[str] = field(default_factory=list)

    @property
    def pitch_classes(self) -> List[str]:
        """Unique pitch classes in encounter order."""
        if self.chroma is not None:
            return list(self.dominant)
        seen = []
        for note in self.notes:
            if note.pitch_class not in seen:
                seen.append(note.pitch_class)
        return seen

    @property
    def strongest(self) -> Optional[str]:
        """Pitch class of the loudest evidence."""
        if self.chroma is not None:
            return strongest_pitch_class(self.chroma)
        if not self.notes:
            return None
        return max(self.notes, key=lambda n: n.amplitude).pitch_class

    @property
    def is_empty(self) -> bool:
        return not self.pitch_classes


class PitchFrontEnd(ABC):
    """Abstract base class for pitch information extraction."""

    kind: FrontEnd

    @abstractmethod
    def extract(self, frame: SpectralFrame) -> PitchEvidence:
        """
        Extract pitch information from one frame.

        Args:
            frame: Spectral frame

        Returns:
            PitchEvidence (empty for silence or invalid frames)
        """
        pass


class PeakFrontEnd(PitchFrontEnd):
    """Peak picking + harmonic rejection + pitch classification."""

    kind = FrontEnd.PEAK

    def __init__(self, config: PeakConfig = None):
        self.extractor = PeakExtractor(config)
        self.classifier = PitchClassifier()

    def extract(self, frame: SpectralFrame) -> PitchEvidence:
        peaks = self.extractor.extract(frame)
        return PitchEvidence(notes=self.classifier.classify_peaks(peaks))


class ChromaFrontEnd(PitchFrontEnd):
    """Whole-spectrum chroma folding."""

    kind = FrontEnd.CHROMA

    def __init__(self, config: ChromaConfig = None):
        self.aggregator = ChromaAggregator(config)

    def extract(self, frame: SpectralFrame) -> PitchEvidence:
        chroma = self.aggregator.aggregate(frame)
        return PitchEvidence(
            chroma=chroma,
            dominant=self.aggregator.dominant_pitch_classes(chroma),
        )


def create_front_end(
    kind: FrontEnd,
    peak_config: PeakConfig = None,
    chroma_config: ChromaConfig = None,
) -> PitchFrontEnd:
    """Instantiate the front end selected by configuration."""
    kind = FrontEnd(kind)
    if kind is FrontEnd.CHROMA:
        return ChromaFrontEnd(chroma_config)
    return PeakFrontEnd(peak_config)
