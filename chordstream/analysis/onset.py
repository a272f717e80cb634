"""Spectral-flux onset detection."""

import logging
from collections import deque
from typing import Optional

import numpy as np

from ..core import SpectralFrame

logger = logging.getLogger(__name__)


class OnsetDetector:
    """Fire on sudden positive spectral change, with a cooldown."""

    def __init__(
        self,
        threshold: float = 0.5,
        cooldown_ms: float = 50.0,
        history_size: int = 10,
    ):
        """
        Initialize OnsetDetector.

        Args:
            threshold: Normalized flux above which an onset fires
            cooldown_ms: Minimum time between two onsets
            history_size: Number of recent flux values kept for inspection
        """
        self.threshold = threshold
        self.cooldown_ms = cooldown_ms
        self.flux_history = deque(maxlen=history_size)
        self._previous: Optional[np.ndarray] = None
        self._last_onset: Optional[float] = None

    def spectral_flux(self, bins: np.ndarray) -> float:
        """Positive-only bin increase versus the previous frame, per bin."""
        if self._previous is None or len(self._previous) != len(bins) or len(bins) == 0:
            return 0.0
        diff = bins - self._previous
        return float(np.sum(diff[diff > 0]) / len(bins))

    def detect(self, frame: SpectralFrame) -> bool:
        """
        Check one frame for an onset.

        The first frame (or the first after a bin-count change) only primes
        the detector and never fires.
        """
        bins = frame.clean_bins()
        primed = self._previous is not None and len(self._previous) == len(bins)
        flux = self.spectral_flux(bins)
        self._previous = bins.copy()

        if not primed:
            return False

        self.flux_history.append(flux)
        now = frame.frame_time
        cooled = self._last_onset is None or now - self._last_onset > self.cooldown_ms

        if flux > self.threshold and cooled:
            self._last_onset = now
            logger.debug("Onset at %.0f ms (flux=%.4f)", now, flux)
            return True
        return False

    def reset(self) -> None:
        self.flux_history.clear()
        self._previous = None
        self._last_onset = None
