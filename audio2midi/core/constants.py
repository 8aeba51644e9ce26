"""Global constants for audio2midi."""

# Pitch names
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Frame analysis defaults
DEFAULT_WINDOW_SIZE = 4096
DEFAULT_HOP_SIZE = 512
DEFAULT_MIN_FREQ = 80.0  # ~E2
DEFAULT_MAX_FREQ = 2000.0  # ~B6
DEFAULT_YIN_THRESHOLD = 0.1
DEFAULT_AMPLITUDE_FLOOR = 0.01

# Onset/tempo analysis defaults
DEFAULT_TEMPO_WINDOW = 2048
DEFAULT_TEMPO_HOP = 512
DEFAULT_TEMPO = 120.0
MIN_TEMPO = 60.0
MAX_TEMPO = 180.0

# MIDI ranges
MIDI_MIN = 0
MIDI_MAX = 127
NOTE_MIN = 36  # C2
NOTE_MAX = 96  # C7
VELOCITY_MIN = 20

# Binary track encoding
DEFAULT_TICKS_PER_QUARTER = 480
DEFAULT_RELEASE_VELOCITY = 0x40
MAX_VARIABLE_LENGTH = 0x0FFFFFFF
