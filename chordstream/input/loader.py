"""Audio file source - decode a file and hand it to the framer."""

import logging
from pathlib import Path
from typing import Iterator, Optional, Tuple

import numpy as np
import librosa

from ..core import SpectralFrame
from ..core.constants import DEFAULT_SR
from .frames import SpectrumFramer

logger = logging.getLogger(__name__)


class AudioLoader:
    """Decode audio files to mono sample arrays at a fixed rate."""

    SUPPORTED_FORMATS = {".wav", ".mp3", ".flac", ".ogg", ".m4a"}

    def __init__(self, sample_rate: int = DEFAULT_SR, normalize: bool = False):
        """
        Initialize AudioLoader.

        Args:
            sample_rate: Rate every file is resampled to
            normalize: Peak-normalize to [-1, 1] after decoding
        """
        self.sample_rate = sample_rate
        self.normalize = normalize

    def load(
        self,
        path: str,
        offset: float = 0.0,
        duration: Optional[float] = None,
    ) -> Tuple[np.ndarray, int]:
        """
        Decode a file, or an excerpt of it.

        Args:
            path: Path to audio file
            offset: Start of the excerpt in seconds
            duration: Length of the excerpt in seconds (None = to the end)

        Returns:
            Tuple of (mono audio array, sample rate)

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the format is not supported or the excerpt is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        if path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {sorted(self.SUPPORTED_FORMATS)}"
            )
        if offset < 0 or (duration is not None and duration <= 0):
            raise ValueError("offset must be >= 0 and duration > 0")

        audio, sr = librosa.load(
            str(path), sr=self.sample_rate, mono=True, offset=offset, duration=duration
        )
        logger.debug("Decoded %s: %.2fs at %d Hz", path.name, len(audio) / sr, sr)

        if self.normalize:
            peak = np.abs(audio).max() if len(audio) else 0.0
            if peak > 0:
                audio = audio / peak
        return audio, sr

    def frames(
        self,
        path: str,
        framer: Optional[SpectrumFramer] = None,
        **load_kwargs,
    ) -> Iterator[SpectralFrame]:
        """Decode a file and yield its spectral frames."""
        audio, sr = self.load(path, **load_kwargs)
        yield from (framer or SpectrumFramer()).frames(audio, sr)

    @staticmethod
    def duration(audio: np.ndarray, sr: int) -> float:
        """Length of decoded audio in seconds."""
        return len(audio) / sr if sr else 0.0
