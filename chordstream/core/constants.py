"""Global constants for chordstream."""

# Pitch names (sharps spelling, index = pitch class, C = 0)
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Enharmonic spellings accepted when parsing note names
FLAT_ALIASES = {
    "Db": "C#",
    "Eb": "D#",
    "Gb": "F#",
    "Ab": "G#",
    "Bb": "A#",
    "Cb": "B",
    "Fb": "E",
    "E#": "F",
    "B#": "C",
}

# Tuning reference
A4_FREQ = 440.0
A_PITCH_CLASS = 9

# Capture defaults (analyser-style spectrum source)
DEFAULT_SR = 44100
DEFAULT_N_FFT = 2048
DEFAULT_FRAME_RATE = 60.0
MAX_BYTE_AMPLITUDE = 255.0

# Tempo defaults
DEFAULT_BPM = 120.0
MIN_BPM = 40.0
MAX_BPM = 200.0
DEFAULT_SAMPLE_INTERVAL_MS = 500.0
