"""Analysis layer - Low-level spectral analysis.

This layer turns spectral frames into pitch information:
- Peak picking and harmonic rejection
- Pitch classification (frequency -> note)
- Chroma aggregation
- Onset detection and beat tracking (sampling policy)
"""

from .peaks import PeakExtractor, PeakConfig, FREQUENCY_BANDS
from .pitch import PitchClassifier
from .chroma import (
    ChromaAggregator,
    ChromaConfig,
    normalize_chroma,
    cosine_similarity,
    chroma_distance,
    dominant_pitch_classes,
)
from .frontend import (
    FrontEnd,
    PitchEvidence,
    PitchFrontEnd,
    PeakFrontEnd,
    ChromaFrontEnd,
    create_front_end,
)
from .onset import OnsetDetector
from .tempo import BeatTracker, bpm_from_beats
from .gate import SamplingGate, SamplingMode, GateConfig

__all__ = [
    # Peaks
    "PeakExtractor",
    "PeakConfig",
    "FREQUENCY_BANDS",
    # Pitch
    "PitchClassifier",
    # Chroma
    "ChromaAggregator",
    "ChromaConfig",
    "normalize_chroma",
    "cosine_similarity",
    "chroma_distance",
    "dominant_pitch_classes",
    # Front ends
    "FrontEnd",
    "PitchEvidence",
    "PitchFrontEnd",
    "PeakFrontEnd",
    "ChromaFrontEnd",
    "create_front_end",
    # Sampling
    "OnsetDetector",
    "BeatTracker",
    "bpm_from_beats",
    "SamplingGate",
    "SamplingMode",
    "GateConfig",
]
