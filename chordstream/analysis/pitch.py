"""Pitch classification - map fundamentals to equal-tempered notes."""

import logging
import math
from typing import Iterable, List

from ..core import PitchedNote, SpectralPeak, classify_frequency

logger = logging.getLogger(__name__)


class PitchClassifier:
    """Map frequencies to pitch classes and octaves (A4 = 440 Hz)."""

    def classify(self, freq: float, amplitude: float = 0.0) -> PitchedNote:
        """
        Classify a single frequency.

        Raises:
            ValueError: If freq is not positive and finite
        """
        return classify_frequency(freq, amplitude)

    def classify_peaks(self, peaks: Iterable[SpectralPeak]) -> List[PitchedNote]:
        """
        Classify peaks, skipping any with an unusable frequency.

        Args:
            peaks: Peaks from the extractor

        Returns:
            Notes in the same order as the peaks
        """
        notes = []
        for peak in peaks:
            if not math.isfinite(peak.frequency) or peak.frequency <= 0:
                logger.debug("Skipping peak with invalid frequency %r", peak.frequency)
                continue
            notes.append(classify_frequency(peak.frequency, peak.amplitude))
        return notes

    def classify_frequencies(self, freqs: Iterable[float]) -> List[PitchedNote]:
        """Classify raw frequencies, skipping invalid ones."""
        return self.classify_peaks(
            SpectralPeak(frequency=f, amplitude=0.0, bin_index=-1) for f in freqs
        )
