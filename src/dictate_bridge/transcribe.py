"""Utterance decoding: raw PCM chunks in, recognition outcomes out.

The recognizer decides where an utterance ends. The voice activity
detector only judges whether that utterance contained speech, which is
what separates a rejection from silence.
"""

import json
from typing import Any

import numpy as np

from dictate_bridge.audio.vad import VoiceActivityDetector
from dictate_bridge.constants import DEFAULT_MIN_CONFIDENCE, DEFAULT_MIN_SPEECH_MS
from dictate_bridge.protocols import RecognizerLike
from dictate_bridge.types import RecognitionOutcome, Recognized, Rejected


def mean_confidence(result: dict[str, Any]) -> float | None:
    """Average per-word confidence of a Vosk result, if words were reported."""
    words = result.get("result") or []
    scores = [float(w["conf"]) for w in words if "conf" in w]
    if not scores:
        return None
    return sum(scores) / len(scores)


class UtteranceDecoder:
    """Feeds audio to a recognizer and classifies each finished utterance."""

    def __init__(
        self,
        recognizer: RecognizerLike,
        vad: VoiceActivityDetector | None = None,
        min_speech_ms: int = DEFAULT_MIN_SPEECH_MS,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    ) -> None:
        self.recognizer = recognizer
        self.vad = vad
        self.min_speech_ms = min_speech_ms
        self.min_confidence = min_confidence

    def feed(self, chunk: bytes) -> RecognitionOutcome | None:
        """Consume one block of int16 PCM.

        Returns an outcome when the recognizer reports an endpoint,
        otherwise None.
        """
        if not chunk:
            return None
        if self.vad is not None:
            self.vad.process(np.frombuffer(chunk, dtype=np.int16))
        if not self.recognizer.AcceptWaveform(chunk):
            return None
        return self.classify(self.recognizer.Result())

    def classify(self, raw: str) -> RecognitionOutcome:
        """Turn a recognizer JSON result into an outcome and reset the VAD."""
        result = json.loads(raw) if raw else {}
        text = result.get("text", "") or ""
        heard_speech = (
            self.vad is not None and self.vad.speech_ms >= self.min_speech_ms
        )
        if self.vad is not None:
            self.vad.reset()

        if not text.strip():
            return Rejected() if heard_speech else Recognized(text)

        confidence = mean_confidence(result)
        if (
            self.min_confidence
            and confidence is not None
            and confidence < self.min_confidence
        ):
            return Rejected(text)
        return Recognized(text, confidence)

    def reset(self) -> None:
        """Drop any partial utterance."""
        self.recognizer.Reset()
        if self.vad is not None:
            self.vad.reset()
