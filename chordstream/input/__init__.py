"""Input layer - audio loading and spectral frame generation."""

from .loader import AudioLoader
from .frames import SpectrumFramer

__all__ = [
    "AudioLoader",
    "SpectrumFramer",
]
