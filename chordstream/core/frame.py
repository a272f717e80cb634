"""Spectral frame types - what the capture layer hands to the pipeline."""

from dataclasses import dataclass
from typing import Optional
import numpy as np


@dataclass(frozen=True, eq=False)
class SpectralFrame:
    """One analysis tick worth of magnitude spectrum.

    Bins are analyser bytes (0-255) by default, or linear magnitudes when
    the consumer is configured for them. ``frame_time`` is a monotonic
    timestamp in milliseconds.
    """

    bins: np.ndarray
    sample_rate: float
    frame_time: float = 0.0
    time_data: Optional[np.ndarray] = None  # Time-domain samples of the same tick

    def __post_init__(self):
        bins = np.array(self.bins, dtype=np.float64)
        bins.setflags(write=False)
        object.__setattr__(self, "bins", bins)
        if self.time_data is not None:
            time_data = np.array(self.time_data, dtype=np.float64)
            time_data.setflags(write=False)
            object.__setattr__(self, "time_data", time_data)

    @property
    def bin_count(self) -> int:
        return len(self.bins)

    @property
    def is_valid(self) -> bool:
        """Whether the frame can be analyzed at all."""
        return (
            self.bin_count > 0
            and np.isfinite(self.sample_rate)
            and self.sample_rate > 0
        )

    @property
    def frequencies(self) -> np.ndarray:
        """Center frequency (Hz) of every bin."""
        if not self.is_valid:
            return np.zeros(self.bin_count)
        return np.arange(self.bin_count) * self.sample_rate / (2 * self.bin_count)

    def bin_to_frequency(self, index: int) -> float:
        """Convert a bin index to frequency in Hz."""
        return index * self.sample_rate / (2 * self.bin_count)

    def clean_bins(self) -> np.ndarray:
        """Bins with non-finite and negative values replaced by silence."""
        bins = np.where(np.isfinite(self.bins), self.bins, 0.0)
        return np.maximum(bins, 0.0)

    @property
    def rms(self) -> Optional[float]:
        """RMS of the time-domain samples, if the frame carries them."""
        if self.time_data is None or len(self.time_data) == 0:
            return None
        samples = np.where(np.isfinite(self.time_data), self.time_data, 0.0)
        return float(np.sqrt(np.mean(samples ** 2)))


@dataclass(frozen=True)
class SpectralPeak:
    """A local maximum of one spectral frame."""

    frequency: float  # Hz
    amplitude: float
    bin_index: int
    prominence: float = 0.0
