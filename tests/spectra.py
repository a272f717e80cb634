"""Synthetic spectral frames for tests."""

from typing import Dict, Iterable, Optional

import numpy as np

from chordstream.core import SpectralFrame, note_to_frequency

SR = 44100
N_BINS = 4096  # 5.38 Hz per bin at 44.1 kHz

# Root-position triads around octave 4
CHORD_NOTES = {
    "C": [("C", 4), ("E", 4), ("G", 4)],
    "G": [("G", 4), ("B", 4), ("D", 5)],
    "Am": [("A", 3), ("C", 4), ("E", 4)],
    "F": [("F", 3), ("A", 3), ("C", 4)],
}


def frequency_bin(freq: float, sr: int = SR, n_bins: int = N_BINS) -> int:
    return int(round(freq * 2 * n_bins / sr))


def make_spectrum(
    peaks: Dict[float, float],
    n_bins: int = N_BINS,
    sr: int = SR,
    floor: float = 0.0,
) -> np.ndarray:
    """Spectrum with a triangular peak (amp, amp/2, amp/4) at each frequency."""
    bins = np.full(n_bins, floor, dtype=np.float64)
    for freq, amp in peaks.items():
        b = frequency_bin(freq, sr, n_bins)
        for offset, scale in ((0, 1.0), (1, 0.5), (2, 0.25)):
            for idx in {b - offset, b + offset}:
                if 0 <= idx < n_bins:
                    bins[idx] = max(bins[idx], amp * scale)
    return bins


def make_frame(
    peaks: Dict[float, float],
    frame_time: float = 0.0,
    time_data: Optional[np.ndarray] = None,
    **kwargs,
) -> SpectralFrame:
    return SpectralFrame(
        bins=make_spectrum(peaks, **kwargs),
        sample_rate=kwargs.get("sr", SR),
        frame_time=frame_time,
        time_data=time_data,
    )


def chord_peaks(chord: str, amplitude: float = 200.0, harmonics: int = 1) -> Dict[float, float]:
    """Peaks of a triad from CHORD_NOTES, optionally with decaying overtones."""
    peaks = {}
    for name, octave in CHORD_NOTES[chord]:
        f0 = note_to_frequency(name, octave)
        for h in range(1, harmonics + 1):
            peaks[f0 * h] = max(peaks.get(f0 * h, 0.0), amplitude / h)
    return peaks


def chord_frames(
    chord: str,
    count: int,
    start_ms: float = 0.0,
    step_ms: float = 1000.0 / 60,
    **kwargs,
) -> Iterable[SpectralFrame]:
    """A run of identical chord frames at a steady frame rate."""
    bins_peaks = chord_peaks(chord, **kwargs)
    for i in range(count):
        yield make_frame(bins_peaks, frame_time=start_ms + i * step_ms)


def silent_frame(frame_time: float = 0.0, n_bins: int = N_BINS) -> SpectralFrame:
    return SpectralFrame(bins=np.zeros(n_bins), sample_rate=SR, frame_time=frame_time)
