"""Shared test fixtures: no microphone or speech model needed."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Any

import pytest

from dictate_bridge.errors import DeviceUnavailableError
from dictate_bridge.types import RecognitionOutcome, Rejected


class FakeRecognizer:
    """Scripted stand-in for vosk.KaldiRecognizer.

    Each AcceptWaveform call consumes one script entry: None means the
    utterance is still going, a string is the JSON result of an endpoint.
    """

    def __init__(self, script: Iterable[str | None] = ()) -> None:
        self._script = list(script)
        self._result = ""
        self.chunks: list[bytes] = []
        self.resets = 0

    def AcceptWaveform(self, data: bytes) -> bool:
        self.chunks.append(data)
        if not self._script:
            return False
        entry = self._script.pop(0)
        if entry is None:
            return False
        self._result = entry
        return True

    def Result(self) -> str:
        return self._result

    def Reset(self) -> None:
        self.resets += 1


class FakeStream:
    """Stand-in for sounddevice.RawInputStream."""

    def __init__(self) -> None:
        self.started = False
        self.stopped = False
        self.closed = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def close(self) -> None:
        self.closed = True


class FakeVad:
    """Voice activity detector reporting a fixed amount of speech."""

    def __init__(self, speech_ms: int = 0) -> None:
        self.speech_ms = speech_ms
        self.frames: list[Any] = []
        self.resets = 0

    def process(self, frame: Any) -> bool:
        self.frames.append(frame)
        return self.speech_ms > 0

    def reset(self) -> None:
        self.resets += 1
        self.speech_ms = 0


class FakeEngine:
    """Engine double for bridge tests.

    recognize_async() replays *script* synchronously through the
    subscribed handlers, then optionally reports *fail_with*.
    """

    def __init__(
        self,
        script: Iterable[RecognitionOutcome] = (),
        device_error: DeviceUnavailableError | None = None,
        fail_with: BaseException | None = None,
        on_start: Any = None,
    ) -> None:
        self.script = list(script)
        self.device_error = device_error
        self.fail_with = fail_with
        self.on_start = on_start
        self.recognized_handlers: list[Any] = []
        self.rejected_handlers: list[Any] = []
        self.error_handlers: list[Any] = []
        self.device: Any = "unset"
        self.started = False
        self.closed = False

    def __enter__(self) -> FakeEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.closed = True

    def on_recognized(self, handler: Any) -> None:
        self.recognized_handlers.append(handler)

    def on_rejected(self, handler: Any) -> None:
        self.rejected_handlers.append(handler)

    def on_error(self, handler: Any) -> None:
        self.error_handlers.append(handler)

    def set_input_to_default_audio_device(self, device: int | None = None) -> None:
        self.device = device
        if self.device_error is not None:
            raise self.device_error

    def recognize_async(self) -> None:
        self.started = True
        for outcome in self.script:
            handlers = (
                self.rejected_handlers
                if isinstance(outcome, Rejected)
                else self.recognized_handlers
            )
            for handler in handlers:
                handler(outcome)
        if self.fail_with is not None:
            for handler in self.error_handlers:
                handler(self.fail_with)
        if self.on_start is not None:
            self.on_start()


class BlockingStdin:
    """stdin double whose readline() blocks until released."""

    def __init__(self) -> None:
        self._released = threading.Event()

    def readline(self) -> str:
        self._released.wait()
        return ""

    def release(self) -> None:
        self._released.set()


@pytest.fixture
def blocking_stdin() -> Any:
    stdin = BlockingStdin()
    yield stdin
    stdin.release()


@pytest.fixture
def fake_recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture
def engine_deps(
    monkeypatch: pytest.MonkeyPatch, fake_recognizer: FakeRecognizer
) -> dict[str, Any]:
    """Replace model loading and audio devices inside dictate_bridge.engine."""
    deps: dict[str, Any] = {
        "recognizer": fake_recognizer,
        "streams": [],
        "loaded": [],
    }

    def load_model(locale: str, model_path: str | None = None) -> object:
        deps["loaded"].append((locale, model_path))
        return object()

    def open_input_stream(callback: Any, **kwargs: Any) -> FakeStream:
        stream = FakeStream()
        deps["streams"].append((stream, callback, kwargs))
        return stream

    monkeypatch.setattr("dictate_bridge.engine.load_model", load_model)
    monkeypatch.setattr(
        "dictate_bridge.engine.create_recognizer",
        lambda model, sample_rate: deps["recognizer"],
    )
    monkeypatch.setattr(
        "dictate_bridge.engine.resolve_input_device",
        lambda device=None: {"name": "Fake Mic", "max_input_channels": 1},
    )
    monkeypatch.setattr(
        "dictate_bridge.engine.open_input_stream", open_input_stream
    )
    return deps
