"""Peak/fundamental extraction from a magnitude spectrum.

Finds local maxima, filters them by amplitude, band and prominence, then
greedily rejects harmonics so that a small set of candidate fundamentals
remains. This is a heuristic stage: dense spectra are only as good as the
harmonic-rejection rule.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np

from ..core import SpectralFrame, SpectralPeak

logger = logging.getLogger(__name__)


# Musical bands (Hz) used by the different capture setups
FREQUENCY_BANDS: Dict[str, Tuple[float, float]] = {
    "guitar": (20.0, 3000.0),
    "studio": (50.0, 1500.0),
    "wide": (65.0, 4000.0),
}


@dataclass
class PeakConfig:
    """Configuration for peak picking and harmonic rejection.

    Attributes:
        amplitude_threshold: Minimum bin amplitude for a peak (default: 16)
        min_prominence: Minimum prominence over the neighbouring minima (default: 8)
        neighbor_span: Bins on each side a peak must exceed (default: 2)
        min_frequency: Lower edge of the accepted band in Hz (default: 50)
        max_frequency: Upper edge of the accepted band in Hz (default: 1500)
        harmonic_tolerance: Max distance of a frequency ratio from an integer
            for two peaks to count as harmonically related (default: 0.1)
        max_fundamentals: Stop after this many fundamentals (default: 8)
    """

    amplitude_threshold: float = 16.0
    min_prominence: float = 8.0
    neighbor_span: int = 2
    min_frequency: float = 50.0
    max_frequency: float = 1500.0
    harmonic_tolerance: float = 0.1
    max_fundamentals: int = 8

    def __post_init__(self):
        if self.neighbor_span < 1:
            raise ValueError("neighbor_span must be at least 1")
        if self.min_frequency >= self.max_frequency:
            raise ValueError(
                f"Empty frequency band: {self.min_frequency}-{self.max_frequency} Hz"
            )
        if not 0 < self.harmonic_tolerance < 0.5:
            raise ValueError("harmonic_tolerance must be in (0, 0.5)")
        if self.max_fundamentals < 1:
            raise ValueError("max_fundamentals must be at least 1")

    @classmethod
    def for_band(cls, band: str, **kwargs) -> "PeakConfig":
        """Build a config restricted to one of FREQUENCY_BANDS."""
        if band not in FREQUENCY_BANDS:
            raise ValueError(
                f"Unknown band: {band}. Supported: {sorted(FREQUENCY_BANDS)}"
            )
        fmin, fmax = FREQUENCY_BANDS[band]
        return cls(min_frequency=fmin, max_frequency=fmax, **kwargs)


class PeakExtractor:
    """Extract candidate fundamental frequencies from one spectral frame."""

    def __init__(self, config: PeakConfig = None):
        self.config = config or PeakConfig()

    def find_peaks(self, frame: SpectralFrame) -> List[SpectralPeak]:
        """
        Find prominent local maxima inside the configured band.

        Args:
            frame: Spectral frame to scan

        Returns:
            Peaks sorted by amplitude, strongest first
        """
        cfg = self.config
        span = cfg.neighbor_span
        if not frame.is_valid or frame.bin_count < 2 * span + 1:
            return []

        data = frame.clean_bins()
        n = len(data)
        center = data[span:n - span]

        # Strictly above every neighbour within the span
        is_peak = center > cfg.amplitude_threshold
        left_min = np.full(len(center), np.inf)
        right_min = np.full(len(center), np.inf)
        for offset in range(1, span + 1):
            left = data[span - offset:n - span - offset]
            right = data[span + offset:n - span + offset]
            is_peak &= (center > left) & (center > right)
            left_min = np.minimum(left_min, left)
            right_min = np.minimum(right_min, right)

        indices = np.nonzero(is_peak)[0]
        if len(indices) == 0:
            return []

        peaks = []
        for idx in indices:
            bin_index = int(idx + span)
            frequency = frame.bin_to_frequency(bin_index)
            if not cfg.min_frequency < frequency < cfg.max_frequency:
                continue

            amplitude = float(center[idx])
            prominence = amplitude - max(left_min[idx], right_min[idx])
            if prominence <= cfg.min_prominence:
                continue

            peaks.append(SpectralPeak(
                frequency=frequency,
                amplitude=amplitude,
                bin_index=bin_index,
                prominence=float(prominence),
            ))

        peaks.sort(key=lambda p: p.amplitude, reverse=True)
        return peaks

    def extract(self, frame: SpectralFrame) -> List[SpectralPeak]:
        """
        Extract fundamentals, rejecting harmonics of stronger peaks.

        Returns:
            Fundamental peaks sorted by frequency (ascending)
        """
        peaks = self.find_peaks(frame)
        fundamentals = self._reject_harmonics(peaks)
        fundamentals.sort(key=lambda p: p.frequency)

        if fundamentals:
            logger.debug(
                "Fundamentals at %s Hz (from %d peaks)",
                ", ".join(f"{p.frequency:.1f}" for p in fundamentals),
                len(peaks),
            )
        return fundamentals

    def fundamentals(self, frame: SpectralFrame) -> List[float]:
        """Fundamental frequencies (Hz) of a frame, ascending."""
        return [p.frequency for p in self.extract(frame)]

    def _reject_harmonics(self, peaks: List[SpectralPeak]) -> List[SpectralPeak]:
        """Greedy harmonic rejection over peaks sorted by amplitude."""
        tolerance = self.config.harmonic_tolerance
        fundamentals: List[SpectralPeak] = []

        for peak in peaks:
            if len(fundamentals) >= self.config.max_fundamentals:
                break

            is_harmonic = False
            for i, fundamental in enumerate(fundamentals):
                # Candidate is an overtone (or duplicate) of an accepted fundamental
                if _near_integer(peak.frequency / fundamental.frequency, tolerance):
                    is_harmonic = True
                    break

                # Accepted fundamental is an overtone of the candidate: prefer the lower one
                if _near_integer(fundamental.frequency / peak.frequency, tolerance):
                    fundamentals[i] = peak
                    is_harmonic = True
                    break

            if not is_harmonic:
                fundamentals.append(peak)

        return fundamentals


def _near_integer(ratio: float, tolerance: float) -> bool:
    nearest = round(ratio)
    return nearest >= 1 and abs(ratio - nearest) < tolerance
