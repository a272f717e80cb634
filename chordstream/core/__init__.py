"""Core types and constants for chordstream."""

from .frame import SpectralFrame, SpectralPeak
from .note import (
    PitchedNote,
    classify_frequency,
    note_number,
    note_to_frequency,
    pitch_class_index,
)
from .constants import (
    PITCH_NAMES,
    DEFAULT_SR,
    DEFAULT_N_FFT,
    DEFAULT_BPM,
)

__all__ = [
    "SpectralFrame",
    "SpectralPeak",
    "PitchedNote",
    "classify_frequency",
    "note_number",
    "note_to_frequency",
    "pitch_class_index",
    "PITCH_NAMES",
    "DEFAULT_SR",
    "DEFAULT_N_FFT",
    "DEFAULT_BPM",
]
