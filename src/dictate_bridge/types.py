"""Recognition event types delivered by the engine."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Recognized:
    """An utterance the engine transcribed. *text* may be empty."""

    text: str
    confidence: float | None = None


@dataclass(frozen=True, slots=True)
class Rejected:
    """An utterance the engine heard but could not map to usable text."""

    text: str = ""


RecognitionOutcome = Recognized | Rejected
