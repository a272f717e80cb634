"""Chroma aggregation - fold a spectrum into 12 pitch-class energies.

A coarser alternative to peak picking: every bin inside the musical band
adds its energy to the pitch class of its frequency. Robust to dense and
inharmonic spectra, at the cost of per-note octave and amplitude detail.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import librosa

from ..core import SpectralFrame, PITCH_NAMES
from ..core.constants import MAX_BYTE_AMPLITUDE

logger = logging.getLogger(__name__)


@dataclass
class ChromaConfig:
    """Configuration for chroma aggregation.

    Attributes:
        min_frequency: Lowest bin frequency folded in, Hz (default: 65, ~C2)
        max_frequency: Highest bin frequency folded in, Hz (default: 1000)
        amplitude_scale: Divisor that maps bin amplitudes to [0, 1]
            (default: 255 for analyser bytes, use 1.0 for linear input)
        dominant_floor: Minimum normalized energy of a dominant note (default: 0.25)
        dominant_reference_ratio: Fraction of the third strongest class a
            note must reach to count as dominant (default: 0.8)
        max_dominant_notes: Cap on dominant notes (default: 6)
    """

    min_frequency: float = 65.0
    max_frequency: float = 1000.0
    amplitude_scale: float = MAX_BYTE_AMPLITUDE
    dominant_floor: float = 0.25
    dominant_reference_ratio: float = 0.8
    max_dominant_notes: int = 6

    def __post_init__(self):
        if self.min_frequency <= 0 or self.min_frequency >= self.max_frequency:
            raise ValueError(
                f"Invalid chroma band: {self.min_frequency}-{self.max_frequency} Hz"
            )
        if self.amplitude_scale <= 0:
            raise ValueError("amplitude_scale must be positive")


class ChromaAggregator:
    """Build normalized chroma vectors from spectral frames."""

    def __init__(self, config: ChromaConfig = None):
        self.config = config or ChromaConfig()

    def aggregate(self, frame: SpectralFrame) -> np.ndarray:
        """
        Fold one frame into a 12-bin chroma vector.

        Returns:
            Chroma vector normalized to max 1 (all zeros for silence)
        """
        chroma = np.zeros(12)
        if not frame.is_valid:
            return chroma

        freqs = frame.frequencies
        in_band = (freqs > self.config.min_frequency) & (freqs < self.config.max_frequency)
        if not np.any(in_band):
            return chroma

        midi = np.round(librosa.hz_to_midi(freqs[in_band])).astype(int)
        energy = frame.clean_bins()[in_band] / self.config.amplitude_scale
        np.add.at(chroma, midi % 12, energy)

        return normalize_chroma(chroma)

    def dominant_pitch_classes(self, chroma: np.ndarray) -> List[str]:
        """Pitch classes standing out from a normalized chroma vector."""
        return dominant_pitch_classes(
            chroma,
            floor=self.config.dominant_floor,
            reference_ratio=self.config.dominant_reference_ratio,
            max_notes=self.config.max_dominant_notes,
        )


def normalize_chroma(chroma: np.ndarray) -> np.ndarray:
    """Scale a chroma vector so its max is 1; silence stays all zeros."""
    chroma = np.asarray(chroma, dtype=np.float64)
    peak = chroma.max() if len(chroma) else 0.0
    if peak > 0:
        return chroma / peak
    return np.zeros_like(chroma)


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity of two vectors, 0 if either is silent."""
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


def chroma_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine distance between two chroma vectors."""
    return 1.0 - cosine_similarity(a, b)


def dominant_pitch_classes(
    chroma: np.ndarray,
    floor: float = 0.25,
    reference_ratio: float = 0.8,
    max_notes: int = 6,
) -> List[str]:
    """
    Pick the pitch classes that dominate a chroma vector.

    The threshold adapts to the third strongest class so a clean triad
    keeps exactly its three notes while a flat, noisy vector keeps many.

    Returns:
        Pitch-class names, strongest first (ties in pitch-class order)
    """
    chroma = normalize_chroma(chroma)
    if not np.any(chroma):
        return []

    ranked = np.sort(chroma)[::-1]
    threshold = max(floor, ranked[2] * reference_ratio)
    indices = [i for i in range(12) if chroma[i] >= threshold]
    indices = sorted(indices, key=lambda i: (-chroma[i], i))[:max_notes]

    return [PITCH_NAMES[i] for i in indices]


def strongest_pitch_class(chroma: np.ndarray) -> Optional[str]:
    """Name of the strongest pitch class, None for silence."""
    chroma = np.asarray(chroma)
    if not np.any(chroma > 0):
        return None
    return PITCH_NAMES[int(np.argmax(chroma))]
