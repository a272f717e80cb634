"""PitchedNote data class and equal-tempered pitch maths."""

from dataclasses import dataclass
import math

from .constants import PITCH_NAMES, FLAT_ALIASES, A4_FREQ, A_PITCH_CLASS


@dataclass(frozen=True)
class PitchedNote:
    """A detected note: pitch class, octave and the frequency it came from."""

    pitch_class: str  # One of PITCH_NAMES
    octave: int
    frequency: float  # Hz
    amplitude: float = 0.0

    @property
    def name(self) -> str:
        """Get note name (e.g., 'C4', 'A#3')."""
        return f"{self.pitch_class}{self.octave}"

    @property
    def pitch_class_index(self) -> int:
        """Get pitch class (0-11, where 0=C)."""
        return PITCH_NAMES.index(self.pitch_class)


def note_number(freq: float) -> float:
    """Semitones from A4 (may be fractional)."""
    return 12 * math.log2(freq / A4_FREQ)


def classify_frequency(freq: float, amplitude: float = 0.0) -> PitchedNote:
    """
    Map a frequency to the nearest equal-tempered note.

    Args:
        freq: Frequency in Hz, must be positive and finite
        amplitude: Amplitude carried along for the matcher's fallback

    Returns:
        PitchedNote with a pitch class from PITCH_NAMES

    Raises:
        ValueError: If freq is not a positive finite number
    """
    if not math.isfinite(freq) or freq <= 0:
        raise ValueError(f"Frequency must be positive and finite, got {freq}")

    semitone = round(note_number(freq))
    # Offset by A's pitch class so octaves roll over at C
    index = semitone + A_PITCH_CLASS
    return PitchedNote(
        pitch_class=PITCH_NAMES[index % 12],
        octave=index // 12 + 4,
        frequency=freq,
        amplitude=amplitude,
    )


def pitch_class_index(name: str) -> int:
    """
    Parse a pitch-class name (sharps or flats) to 0-11.

    Raises:
        ValueError: If the name is not a pitch class
    """
    canonical = FLAT_ALIASES.get(name, name)
    if canonical not in PITCH_NAMES:
        raise ValueError(f"Unknown pitch class: {name!r}")
    return PITCH_NAMES.index(canonical)


def note_to_frequency(name: str, octave: int = 4) -> float:
    """Convert a note name and octave to frequency (Hz)."""
    midi = (octave + 1) * 12 + pitch_class_index(name)
    return A4_FREQ * (2 ** ((midi - 69) / 12.0))
