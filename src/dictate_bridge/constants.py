"""Default configuration values and fixed output lines for dictate-bridge."""

from typing import Final

DEFAULT_LOCALE: Final = "en-in"
FALLBACK_LOCALE: Final = "en-us"
DEFAULT_SAMPLE_RATE: Final = 16_000
DEFAULT_BLOCKSIZE: Final = 4_000
DEFAULT_AUDIO_QUEUE_MAXSIZE: Final = 200
DEFAULT_VAD_FRAME_MS: Final = 30
DEFAULT_VAD_MODE: Final = 3
DEFAULT_MIN_SPEECH_MS: Final = 150
DEFAULT_ENERGY_THRESHOLD: Final = 300.0
DEFAULT_MIN_CONFIDENCE: Final = 0.0
DEFAULT_SHUTDOWN_TIMEOUT: Final = 2.0

# Config file
DEFAULT_CONFIG_DIR: Final = "~/.config/dictate-bridge"
DEFAULT_CONFIG_DIR_ENV: Final = "DICTATE_BRIDGE_CONFIG_DIR"
DEFAULT_CONFIG_FILE: Final = "config.json"

# Lines written to stdout besides recognized text. The parent process
# tells diagnostics apart from dictation by these exact shapes.
REJECTED_LINE: Final = "Speech could not be recognized."
NO_DEVICE_PREFIX: Final = "No audio input device found: "
ERROR_PREFIX: Final = "An error occurred in the speech helper: "
LISTENING_NOTICE: Final = "Speech helper started. Listening for speech..."
