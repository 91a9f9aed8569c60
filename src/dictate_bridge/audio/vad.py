"""Voice Activity Detection using WebRTC VAD.

Measures how much speech an utterance contained so that an empty
transcript can be told apart from plain silence: speech that produced no
text is a rejection, silence that produced no text is nothing at all.
"""

import math
from dataclasses import dataclass

import numpy as np
import webrtcvad

_SUPPORTED_RATES = (8_000, 16_000, 32_000, 48_000)


@dataclass(frozen=True, slots=True)
class VadConfig:
    """Immutable VAD configuration."""

    frame_ms: int = 30
    mode: int = 3
    sample_rate: int = 16_000
    energy_threshold: float = 300.0

    def __post_init__(self) -> None:
        if self.frame_ms not in (10, 20, 30):
            raise ValueError("frame_ms must be one of: 10, 20, 30")
        if not (0 <= self.mode <= 3):
            raise ValueError("mode must be between 0 and 3")
        if self.sample_rate not in _SUPPORTED_RATES:
            raise ValueError(
                f"sample_rate must be one of: {', '.join(map(str, _SUPPORTED_RATES))}"
            )
        if self.energy_threshold < 0:
            raise ValueError("energy_threshold must not be negative")


def rms_energy(frame: np.ndarray) -> float:
    """Root-mean-square amplitude of an int16 frame."""
    if frame.size == 0:
        return 0.0
    samples = frame.astype(np.float64)
    return math.sqrt(float(np.mean(samples * samples)))


class VoiceActivityDetector:
    """WebRTC VAD with an RMS energy gate, accumulating speech per utterance."""

    __slots__ = (
        "_vad",
        "_config",
        "_frame_samples",
        "_residual",
        "_speech_frames",
        "_state",
    )

    def __init__(self, config: VadConfig) -> None:
        self._config = config
        self._vad = webrtcvad.Vad(config.mode)
        self._frame_samples = int(config.sample_rate * config.frame_ms / 1000)
        self._residual = np.array([], dtype=np.int16)
        self._speech_frames = 0
        self._state = "silence"

    @property
    def state(self) -> str:
        """Current VAD state: 'speech' or 'silence'."""
        return self._state

    @property
    def frame_samples(self) -> int:
        """Number of samples per VAD frame."""
        return self._frame_samples

    @property
    def speech_ms(self) -> int:
        """Milliseconds of speech seen since the last reset."""
        return self._speech_frames * self._config.frame_ms

    def _is_speech(self, chunk: np.ndarray) -> bool:
        threshold = self._config.energy_threshold
        if threshold and rms_energy(chunk) < threshold:
            return False
        return self._vad.is_speech(chunk.tobytes(), self._config.sample_rate)

    def process(self, frame: np.ndarray) -> bool:
        """Process an audio block, return True if any full frame was speech.

        Samples that do not fill a whole frame are carried over to the
        next call.
        """
        if frame.size == 0:
            return False

        self._residual = (
            frame.copy()
            if self._residual.size == 0
            else np.concatenate([self._residual, frame])
        )

        heard = False
        while self._residual.size >= self._frame_samples:
            chunk = self._residual[: self._frame_samples]
            self._residual = self._residual[self._frame_samples :]
            if self._is_speech(chunk):
                self._state = "speech"
                self._speech_frames += 1
                heard = True
            else:
                self._state = "silence"

        return heard

    def reset(self) -> None:
        """Clear state for a new utterance."""
        self._residual = np.array([], dtype=np.int16)
        self._speech_frames = 0
        self._state = "silence"
