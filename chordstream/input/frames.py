"""Turn audio into a stream of analyser-style spectral frames.

Mirrors what a live capture layer delivers: a windowed FFT of the most
recent samples, smoothed over time, converted to decibels and mapped onto
bytes (0-255), at a steady frame rate independent of the FFT size.
"""

from typing import Iterator

import numpy as np
import librosa

from ..core import SpectralFrame
from ..core.constants import DEFAULT_N_FFT, DEFAULT_FRAME_RATE, MAX_BYTE_AMPLITUDE


class SpectrumFramer:
    """Slice audio into SpectralFrames."""

    def __init__(
        self,
        n_fft: int = DEFAULT_N_FFT,
        frame_rate: float = DEFAULT_FRAME_RATE,
        smoothing: float = 0.8,
        min_db: float = -100.0,
        max_db: float = -10.0,
    ):
        """
        Initialize SpectrumFramer.

        Args:
            n_fft: FFT window size (bins per frame = n_fft / 2)
            frame_rate: Frames per second
            smoothing: Time smoothing constant in [0, 1)
            min_db: Level mapped to byte 0
            max_db: Level mapped to byte 255
        """
        if n_fft < 4 or n_fft % 2:
            raise ValueError("n_fft must be an even number >= 4")
        if not 0 <= smoothing < 1:
            raise ValueError("smoothing must be in [0, 1)")
        if min_db >= max_db:
            raise ValueError("min_db must be below max_db")
        self.n_fft = n_fft
        self.frame_rate = frame_rate
        self.smoothing = smoothing
        self.min_db = min_db
        self.max_db = max_db
        self._window = np.blackman(n_fft)

    def hop_length(self, sr: int) -> int:
        return max(1, int(round(sr / self.frame_rate)))

    def frames(self, audio: np.ndarray, sr: int) -> Iterator[SpectralFrame]:
        """
        Yield one SpectralFrame per hop.

        Args:
            audio: Mono audio array
            sr: Sample rate

        Yields:
            Frames with byte amplitudes, frame_time in milliseconds
        """
        audio = np.asarray(audio, dtype=np.float64)
        if len(audio) < self.n_fft:
            audio = np.pad(audio, (0, self.n_fft - len(audio)))

        hop = self.hop_length(sr)
        blocks = librosa.util.frame(audio, frame_length=self.n_fft, hop_length=hop, axis=0)
        smoothed = np.zeros(self.n_fft // 2)

        for i, block in enumerate(blocks):
            spectrum = np.abs(np.fft.rfft(block * self._window))[: self.n_fft // 2] / self.n_fft
            smoothed = self.smoothing * smoothed + (1 - self.smoothing) * spectrum
            end = i * hop + self.n_fft
            yield SpectralFrame(
                bins=self.to_bytes(smoothed),
                sample_rate=sr,
                frame_time=1000.0 * end / sr,
                time_data=block,
            )

    def to_bytes(self, magnitude: np.ndarray) -> np.ndarray:
        """Map linear magnitudes onto 0-255 through the dB range."""
        with np.errstate(divide="ignore"):
            db = 20 * np.log10(magnitude)
        scaled = (db - self.min_db) / (self.max_db - self.min_db) * MAX_BYTE_AMPLITUDE
        return np.clip(np.nan_to_num(scaled, neginf=0.0), 0, MAX_BYTE_AMPLITUDE)
