"""Structural type protocols for the recognizer and audio stream."""

from typing import Protocol


class RecognizerLike(Protocol):
    """Structural type for Vosk-compatible streaming recognizers."""

    def AcceptWaveform(self, data: bytes) -> bool: ...

    def Result(self) -> str: ...

    def Reset(self) -> None: ...


class InputStreamLike(Protocol):
    """Structural type for sounddevice-compatible input streams."""

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def close(self) -> None: ...
