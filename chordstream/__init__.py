"""chordstream - Real-time chord recognition from spectral frames.

Architecture Layers:
    1. core/      - Frame, peak and note types, pitch maths
    2. input/     - Audio loading and spectral frame generation
    3. analysis/  - Peak picking, pitch classes, chroma, onsets and tempo
    4. inference/ - Chord vocabulary, matching and temporal stabilization
    5. pipeline   - One synchronous call per frame
    6. output/    - Chord history and JSON export
"""

__version__ = "0.1.0"

# Core types
from .core import SpectralFrame, SpectralPeak, PitchedNote, classify_frequency

# Input layer
from .input import AudioLoader, SpectrumFramer

# Analysis layer
from .analysis import (
    PeakExtractor,
    PitchClassifier,
    ChromaAggregator,
    FrontEnd,
    OnsetDetector,
    BeatTracker,
    SamplingGate,
    SamplingMode,
)

# Inference layer
from .inference import (
    ChordMatcher,
    ChordCandidate,
    ChordStabilizer,
    MultiBandMatcher,
    ChordVocabulary,
)

# Pipeline
from .pipeline import ChordPipeline, PipelineConfig, ChordEvent

# Output layer
from .output import ChordHistory, EventExporter

__all__ = [
    # Core
    "SpectralFrame",
    "SpectralPeak",
    "PitchedNote",
    "classify_frequency",
    # Input
    "AudioLoader",
    "SpectrumFramer",
    # Analysis
    "PeakExtractor",
    "PitchClassifier",
    "ChromaAggregator",
    "FrontEnd",
    "OnsetDetector",
    "BeatTracker",
    "SamplingGate",
    "SamplingMode",
    # Inference
    "ChordMatcher",
    "ChordCandidate",
    "ChordStabilizer",
    "MultiBandMatcher",
    "ChordVocabulary",
    # Pipeline
    "ChordPipeline",
    "PipelineConfig",
    "ChordEvent",
    # Output
    "ChordHistory",
    "EventExporter",
]
