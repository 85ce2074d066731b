"""Protocol and takeover constants shared across the bridge."""

# MIDI
MIDI_MAX = 127
NOTE_OFFSET = 1  # bump buttons sit one below their fader's controller number

# Soft takeover
ATTACH_TOLERANCE = 0.01

# Eos OSC addressing
DEFAULT_BANK = 1
BASE_FADER_PATH = "/eos/user/0/fader"
FADER_LEVEL_PREFIX = "/eos/fader"

# Profiles
DEFAULT_PAGE = 1
PROFILES_DIR_NAME = "faderProfiles"
