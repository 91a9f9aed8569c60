"""Exception hierarchy for dictate-bridge."""


class BridgeError(Exception):
    """Base class for all bridge failures."""


class DeviceUnavailableError(BridgeError):
    """No usable audio input device could be bound."""


class UnsupportedLocaleError(BridgeError, ValueError):
    """Locale tag is malformed or has no speech model."""


class EngineBusyError(BridgeError, RuntimeError):
    """Another engine handle is already live in this process."""
