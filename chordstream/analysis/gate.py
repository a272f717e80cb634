"""Sampling policy - decide on which ticks the chord matcher runs."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core import SpectralFrame
from ..core.constants import DEFAULT_SAMPLE_INTERVAL_MS
from .onset import OnsetDetector
from .tempo import BeatTracker

logger = logging.getLogger(__name__)


class SamplingMode(str, Enum):
    """When the matcher is invoked."""

    EVERY_FRAME = "every-frame"
    FIXED_INTERVAL = "fixed"
    ONSET_OR_BEAT = "onset"


@dataclass
class GateConfig:
    """Configuration for the sampling gate.

    Attributes:
        mode: Sampling mode (default: every frame)
        fixed_interval_ms: Polling interval when no tempo is known (default: 500)
        onset_threshold: Spectral-flux onset threshold (default: 0.5)
        onset_cooldown_ms: Minimum spacing between onsets (default: 50)
        rms_floor: RMS level counted as a beat (default: 0.005)
        beat_refractory_ms: Minimum spacing between beats (default: 80)
        beat_history_ms: Trailing beat window (default: 4000)
        beat_reset_ms: Silence after which the tempo resets (default: 2000)
    """

    mode: SamplingMode = SamplingMode.EVERY_FRAME
    fixed_interval_ms: float = DEFAULT_SAMPLE_INTERVAL_MS
    onset_threshold: float = 0.5
    onset_cooldown_ms: float = 50.0
    rms_floor: float = 0.005
    beat_refractory_ms: float = 80.0
    beat_history_ms: float = 4000.0
    beat_reset_ms: float = 2000.0

    def __post_init__(self):
        self.mode = SamplingMode(self.mode)
        if self.fixed_interval_ms <= 0:
            raise ValueError("fixed_interval_ms must be positive")


class SamplingGate:
    """Combine onset detection, beat tracking and fixed polling."""

    def __init__(self, config: GateConfig = None):
        self.config = config or GateConfig()
        self.onsets = OnsetDetector(
            threshold=self.config.onset_threshold,
            cooldown_ms=self.config.onset_cooldown_ms,
        )
        self.beats = BeatTracker(
            rms_floor=self.config.rms_floor,
            refractory_ms=self.config.beat_refractory_ms,
            history_ms=self.config.beat_history_ms,
            reset_after_ms=self.config.beat_reset_ms,
        )
        self._last_sample: Optional[float] = None

    @property
    def bpm(self) -> float:
        return self.beats.bpm

    @property
    def interval_ms(self) -> float:
        """Current sampling interval: beat period if known, else the fixed interval."""
        if self.config.mode is SamplingMode.ONSET_OR_BEAT:
            beat_interval = self.beats.sample_interval_ms
            if beat_interval > 0:
                return beat_interval
        return self.config.fixed_interval_ms

    def should_sample(self, frame: SpectralFrame) -> bool:
        """
        Decide whether the matcher runs on this frame.

        Onset and beat state are updated on every call, sampled or not.
        """
        mode = self.config.mode
        if mode is SamplingMode.EVERY_FRAME:
            self._last_sample = frame.frame_time
            return True

        onset = False
        if mode is SamplingMode.ONSET_OR_BEAT:
            onset = self.onsets.detect(frame)
            rms = frame.rms
            if rms is not None:
                self.beats.update(rms, frame.frame_time)

        now = frame.frame_time
        elapsed = self._last_sample is None or now - self._last_sample > self.interval_ms

        if onset or elapsed:
            if onset and not elapsed:
                logger.debug("Early sample at %.0f ms on onset", now)
            self._last_sample = now
            return True
        return False

    def reset(self) -> None:
        self.onsets.reset()
        self.beats.reset()
        self._last_sample = None
