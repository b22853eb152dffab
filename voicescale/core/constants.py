"""Global constants for voicescale."""

# Pitch names
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Equal temperament reference
A4_FREQUENCY = 440.0
A4_MIDI = 69

# MIDI ranges
MIDI_MIN = 0
MIDI_MAX = 127

# Audio processing defaults
DEFAULT_SR = 44100
DEFAULT_FFT_SIZE = 1024
DEFAULT_OVERLAP = 0.5

# Peak search band (Hz): skips DC offset and the ultrasonic noise floor
PEAK_MIN_FREQ = 5.0
PEAK_MAX_FREQ = 20000.0

# Voice band used to accept a frame as a usable pitch frame
VOICE_MIN_FREQ = 80.0
VOICE_MAX_FREQ = 2000.0
MIN_PEAK_MAGNITUDE = 0.001
MIN_TOTAL_MAGNITUDE = 0.01

# Interval names by semitone distance from the root
INTERVAL_NAMES = [
    "unison",
    "minor 2nd",
    "major 2nd",
    "minor 3rd",
    "major 3rd",
    "perfect 4th",
    "tritone",
    "perfect 5th",
    "minor 6th",
    "major 6th",
    "minor 7th",
    "major 7th",
]
