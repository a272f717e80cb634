"""Tempo and beat tracking over a live energy stream."""

import logging
from typing import List, Optional, Sequence

import numpy as np

from ..core.constants import DEFAULT_BPM, MIN_BPM, MAX_BPM

logger = logging.getLogger(__name__)


def bpm_from_beats(
    beat_times: Sequence[float],
    min_bpm: float = MIN_BPM,
    max_bpm: float = MAX_BPM,
) -> Optional[float]:
    """
    Estimate tempo from beat timestamps.

    Uses the median inter-beat interval, so one missed or spurious beat
    does not skew the estimate.

    Args:
        beat_times: Beat timestamps in milliseconds (any order)
        min_bpm: Lower clamp
        max_bpm: Upper clamp

    Returns:
        Tempo in BPM, or None if fewer than two distinct beats
    """
    times = np.sort(np.asarray(beat_times, dtype=np.float64))
    intervals = np.diff(times)
    intervals = intervals[intervals > 0]
    if len(intervals) == 0:
        return None

    median_interval = float(np.median(intervals))
    bpm = 60000.0 / median_interval
    return float(np.clip(round(bpm), min_bpm, max_bpm))


class BeatTracker:
    """Track beats from RMS threshold crossings and derive a sampling interval."""

    def __init__(
        self,
        rms_floor: float = 0.005,
        refractory_ms: float = 80.0,
        history_ms: float = 4000.0,
        reset_after_ms: float = 2000.0,
        default_bpm: float = DEFAULT_BPM,
        min_bpm: float = MIN_BPM,
        max_bpm: float = MAX_BPM,
    ):
        """
        Initialize BeatTracker.

        Args:
            rms_floor: RMS level that counts as a beat
            refractory_ms: Minimum spacing between two beats
            history_ms: Trailing window of beats used for the estimate
            reset_after_ms: Fall back to default tempo after this long without a beat
            default_bpm: Tempo reported when nothing is detected
            min_bpm: Lower clamp for estimates
            max_bpm: Upper clamp for estimates
        """
        self.rms_floor = rms_floor
        self.refractory_ms = refractory_ms
        self.history_ms = history_ms
        self.reset_after_ms = reset_after_ms
        self.default_bpm = default_bpm
        self.min_bpm = min_bpm
        self.max_bpm = max_bpm

        self.bpm = default_bpm
        self.beat_times: List[float] = []
        self._detected = False
        self._last_beat: Optional[float] = None

    @property
    def sample_interval_ms(self) -> float:
        """Beat period in ms, 0 while no tempo has been detected."""
        if not self._detected:
            return 0.0
        return 60000.0 / self.bpm

    def update(self, rms: float, timestamp: float) -> float:
        """
        Feed one energy reading.

        Args:
            rms: RMS level of the current tick
            timestamp: Tick time in milliseconds

        Returns:
            Current tempo estimate in BPM
        """
        refractory_over = (
            self._last_beat is None or timestamp - self._last_beat > self.refractory_ms
        )
        if rms > self.rms_floor and refractory_over:
            self._last_beat = timestamp
            self.beat_times.append(timestamp)
            self.beat_times = [
                t for t in self.beat_times if t > timestamp - self.history_ms
            ]

            bpm = bpm_from_beats(self.beat_times, self.min_bpm, self.max_bpm)
            if bpm is not None:
                if not self._detected or bpm != self.bpm:
                    logger.debug("Tempo %.0f BPM from %d beats", bpm, len(self.beat_times))
                self.bpm = bpm
                self._detected = True

        if (
            self.beat_times
            and self._last_beat is not None
            and timestamp - self._last_beat > self.reset_after_ms
        ):
            logger.debug("No beat for %.0f ms, tempo reset", timestamp - self._last_beat)
            self.reset()

        return self.bpm

    def reset(self) -> None:
        self.bpm = self.default_bpm
        self.beat_times = []
        self._detected = False
        self._last_beat = None
