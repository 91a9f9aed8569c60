"""Tests for dictate_bridge.engine: lifecycle, dispatch, and the live-handle slot."""

from __future__ import annotations

import json
import threading
from typing import Any

import pytest

from dictate_bridge.audio.vad import VadConfig
from dictate_bridge.config import BridgeConfig, VadSettings
from dictate_bridge.engine import SpeechRecognitionEngine
from dictate_bridge.errors import (
    DeviceUnavailableError,
    EngineBusyError,
    UnsupportedLocaleError,
)
from dictate_bridge.types import Recognized, Rejected

CHUNK = b"\x00\x00" * 4000


def _text(text: str) -> str:
    return json.dumps({"text": text})


class _Collector:
    """Collects outcomes from the worker and signals after *expected* items."""

    def __init__(self, expected: int) -> None:
        self.items: list[Any] = []
        self.expected = expected
        self.done = threading.Event()
        self._lock = threading.Lock()

    def __call__(self, item: Any) -> None:
        with self._lock:
            self.items.append(item)
            if len(self.items) >= self.expected:
                self.done.set()


class TestConstruction:
    def test_resolves_locale_and_loads_model(self, engine_deps: dict) -> None:
        with SpeechRecognitionEngine("en_IN", model_path="/models/x") as engine:
            assert engine.locale == "en-in"
        assert engine_deps["loaded"] == [("en-in", "/models/x")]

    def test_from_config(self, engine_deps: dict) -> None:
        config = BridgeConfig(locale="fr", vad=VadSettings(enabled=False))
        with SpeechRecognitionEngine.from_config(config) as engine:
            assert engine.locale == "fr"
            assert engine.sample_rate == 16_000
            assert engine.blocksize == 4_000

    def test_bad_locale_frees_slot(self, engine_deps: dict) -> None:
        with pytest.raises(UnsupportedLocaleError):
            SpeechRecognitionEngine("not a locale")
        with SpeechRecognitionEngine("en-us"):
            pass


class TestSingleLiveHandle:
    def test_second_engine_refused(self, engine_deps: dict) -> None:
        with SpeechRecognitionEngine("en-us"):
            with pytest.raises(EngineBusyError):
                SpeechRecognitionEngine("en-us")

    def test_slot_released_on_close(self, engine_deps: dict) -> None:
        engine = SpeechRecognitionEngine("en-us")
        engine.close()
        assert engine.closed
        with SpeechRecognitionEngine("en-us"):
            pass

    def test_close_is_idempotent(self, engine_deps: dict) -> None:
        engine = SpeechRecognitionEngine("en-us")
        engine.close()
        engine.close()
        with SpeechRecognitionEngine("en-us"):
            pass

    def test_released_when_body_raises(self, engine_deps: dict) -> None:
        with pytest.raises(KeyError):
            with SpeechRecognitionEngine("en-us"):
                raise KeyError("boom")
        with SpeechRecognitionEngine("en-us"):
            pass


class TestAudioInput:
    def test_opens_stream_with_capture_format(self, engine_deps: dict) -> None:
        with SpeechRecognitionEngine("en-us", blocksize=8000) as engine:
            engine.set_input_to_default_audio_device(3)
            stream, callback, kwargs = engine_deps["streams"][0]
            assert kwargs == {"samplerate": 16_000, "blocksize": 8000, "device": 3}
            assert callback == engine._audio_callback
        assert stream.stopped and stream.closed

    def test_device_error_propagates(
        self, engine_deps: dict, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def no_device(device: int | None = None) -> dict:
            raise DeviceUnavailableError("Error querying device -1")

        monkeypatch.setattr("dictate_bridge.engine.resolve_input_device", no_device)
        with SpeechRecognitionEngine("en-us") as engine:
            with pytest.raises(DeviceUnavailableError):
                engine.set_input_to_default_audio_device()
        assert engine_deps["streams"] == []

    def test_recognize_requires_input(self, engine_deps: dict) -> None:
        with SpeechRecognitionEngine("en-us") as engine:
            with pytest.raises(RuntimeError, match="audio input"):
                engine.recognize_async()

    def test_closed_engine_refuses_work(self, engine_deps: dict) -> None:
        engine = SpeechRecognitionEngine("en-us")
        engine.close()
        with pytest.raises(RuntimeError, match="closed"):
            engine.set_input_to_default_audio_device()


class TestRecognition:
    def test_outcomes_dispatched_in_order(self, engine_deps: dict) -> None:
        engine_deps["recognizer"]._script = [
            None,
            _text("hello world"),
            _text(""),
            _text("testing one two"),
        ]
        collector = _Collector(expected=3)
        with SpeechRecognitionEngine("en-us") as engine:
            engine.on_recognized(collector)
            engine.set_input_to_default_audio_device()
            engine.recognize_async()
            assert engine.listening
            stream = engine_deps["streams"][0][0]
            assert stream.started
            for _ in range(4):
                engine.accept_audio(CHUNK)
            assert collector.done.wait(timeout=5)
        assert collector.items == [
            Recognized("hello world"),
            Recognized(""),
            Recognized("testing one two"),
        ]
        assert not engine.listening

    def test_audio_callback_copies_into_queue(self, engine_deps: dict) -> None:
        engine_deps["recognizer"]._script = [_text("from the callback")]
        collector = _Collector(expected=1)
        with SpeechRecognitionEngine("en-us") as engine:
            engine.on_recognized(collector)
            engine.set_input_to_default_audio_device()
            engine.recognize_async()
            engine._audio_callback(bytearray(CHUNK), 4000, None, None)
            assert collector.done.wait(timeout=5)
        assert collector.items == [Recognized("from the callback")]
        assert engine_deps["recognizer"].chunks == [CHUNK]

    def test_rejections_go_to_rejected_handlers(
        self, engine_deps: dict, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        engine_deps["recognizer"]._script = [_text("")]
        recognized = _Collector(expected=1)
        rejected = _Collector(expected=1)
        with SpeechRecognitionEngine(
            "en-us", vad_config=VadConfig(energy_threshold=0.0), min_speech_ms=30
        ) as engine:
            engine._decoder.vad._vad = type(
                "AlwaysSpeech", (), {"is_speech": lambda self, data, rate: True}
            )()
            engine.on_recognized(recognized)
            engine.on_rejected(rejected)
            engine.set_input_to_default_audio_device()
            engine.recognize_async()
            engine.accept_audio(CHUNK)
            assert rejected.done.wait(timeout=5)
        assert rejected.items == [Rejected()]
        assert recognized.items == []

    def test_worker_failure_reaches_error_handlers(self, engine_deps: dict) -> None:
        class _Broken:
            def AcceptWaveform(self, data: bytes) -> bool:
                raise RuntimeError("decoder crashed")

        engine_deps["recognizer"] = _Broken()
        errors = _Collector(expected=1)
        with SpeechRecognitionEngine("en-us") as engine:
            engine.on_error(errors)
            engine.set_input_to_default_audio_device()
            engine.recognize_async()
            engine.accept_audio(CHUNK)
            assert errors.done.wait(timeout=5)
        assert isinstance(errors.items[0], RuntimeError)
        assert str(errors.items[0]) == "decoder crashed"

    def test_cannot_start_twice(self, engine_deps: dict) -> None:
        with SpeechRecognitionEngine("en-us") as engine:
            engine.set_input_to_default_audio_device()
            engine.recognize_async()
            with pytest.raises(RuntimeError, match="already running"):
                engine.recognize_async()
