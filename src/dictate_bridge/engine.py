"""Speech recognition engine: the handle the bridge owns for its lifetime.

The engine binds a dictation recognizer to an audio input and runs
recognition on a background worker thread. The PortAudio callback only
copies audio into a queue; the worker decodes it and invokes subscribed
handlers one outcome at a time, in the order utterances complete.

Only one engine may be live per process. Use it as a context manager so
the input stream, worker and model are released on every exit path.
"""

import queue
import threading
from collections.abc import Callable
from typing import Any, Self

from dictate_bridge.audio.vad import VadConfig, VoiceActivityDetector
from dictate_bridge.config import BridgeConfig
from dictate_bridge.constants import (
    DEFAULT_AUDIO_QUEUE_MAXSIZE,
    DEFAULT_BLOCKSIZE,
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_MIN_SPEECH_MS,
    DEFAULT_SAMPLE_RATE,
    DEFAULT_SHUTDOWN_TIMEOUT,
)
from dictate_bridge.devices import open_input_stream, resolve_input_device
from dictate_bridge.env import LOGGER
from dictate_bridge.errors import EngineBusyError
from dictate_bridge.model import create_recognizer, load_model, resolve_locale
from dictate_bridge.protocols import InputStreamLike
from dictate_bridge.transcribe import UtteranceDecoder
from dictate_bridge.types import RecognitionOutcome, Recognized, Rejected

_LIVE_ENGINE = threading.Lock()

RecognizedHandler = Callable[[Recognized], None]
RejectedHandler = Callable[[Rejected], None]
ErrorHandler = Callable[[BaseException], None]


class SpeechRecognitionEngine:
    """Continuous dictation over a Vosk model and a microphone."""

    def __init__(
        self,
        locale: str | None = None,
        *,
        model_path: str | None = None,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        blocksize: int = DEFAULT_BLOCKSIZE,
        vad_config: VadConfig | None = None,
        min_speech_ms: int = DEFAULT_MIN_SPEECH_MS,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    ) -> None:
        if not _LIVE_ENGINE.acquire(blocking=False):
            raise EngineBusyError("a speech engine is already running")
        try:
            self.locale = resolve_locale(locale)
            model = load_model(self.locale, model_path)
            recognizer = create_recognizer(model, sample_rate)
            vad = VoiceActivityDetector(vad_config) if vad_config else None
        except BaseException:
            _LIVE_ENGINE.release()
            raise

        self.sample_rate = sample_rate
        self.blocksize = blocksize
        self._model: Any = model
        self._decoder: UtteranceDecoder | None = UtteranceDecoder(
            recognizer,
            vad,
            min_speech_ms=min_speech_ms,
            min_confidence=min_confidence,
        )
        self._audio_queue: queue.Queue[bytes] = queue.Queue(
            maxsize=DEFAULT_AUDIO_QUEUE_MAXSIZE
        )
        self._stream: InputStreamLike | None = None
        self._worker: threading.Thread | None = None
        self._stopping = threading.Event()
        self._closed = False

        self._recognized_handlers: list[RecognizedHandler] = []
        self._rejected_handlers: list[RejectedHandler] = []
        self._error_handlers: list[ErrorHandler] = []

    @classmethod
    def from_config(cls, config: BridgeConfig) -> Self:
        """Create an engine from bridge configuration."""
        return cls(
            config.locale,
            model_path=config.model_path,
            sample_rate=config.audio.sample_rate,
            blocksize=config.audio.blocksize,
            vad_config=config.vad.build(config.audio.sample_rate),
            min_speech_ms=config.vad.min_speech_ms,
            min_confidence=config.min_confidence,
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def listening(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    # -- subscriptions -----------------------------------------------------

    def on_recognized(self, handler: RecognizedHandler) -> None:
        """Call *handler* for every transcribed utterance."""
        self._recognized_handlers.append(handler)

    def on_rejected(self, handler: RejectedHandler) -> None:
        """Call *handler* for every utterance that could not be transcribed."""
        self._rejected_handlers.append(handler)

    def on_error(self, handler: ErrorHandler) -> None:
        """Call *handler* if the recognition worker fails."""
        self._error_handlers.append(handler)

    # -- audio input -------------------------------------------------------

    def set_input_to_default_audio_device(self, device: int | None = None) -> None:
        """Bind the engine to the default input device, or to *device*.

        Raises DeviceUnavailableError if no input device can be opened.
        """
        self._ensure_open()
        info = resolve_input_device(device)
        LOGGER.debug("Using audio input: %s", info["name"])
        self._stream = open_input_stream(
            self._audio_callback,
            samplerate=self.sample_rate,
            blocksize=self.blocksize,
            device=device,
        )

    def _audio_callback(
        self,
        indata: Any,
        frames: int,
        time_info: Any,
        status: Any,
    ) -> None:
        """Keep callback lightweight by deferring work to the worker."""
        if status:
            LOGGER.debug("Audio status: %s", status)
        self.accept_audio(bytes(indata))

    def accept_audio(self, chunk: bytes) -> None:
        """Queue a block of mono int16 PCM for recognition."""
        try:
            self._audio_queue.put_nowait(chunk)
        except queue.Full:
            LOGGER.debug("Audio queue full; dropping %d bytes", len(chunk))

    # -- recognition -------------------------------------------------------

    def recognize_async(self) -> None:
        """Start continuous recognition on a background thread."""
        self._ensure_open()
        if self._stream is None:
            raise RuntimeError("audio input has not been set")
        if self._worker is not None:
            raise RuntimeError("recognition is already running")

        self._worker = threading.Thread(
            target=self._recognize_loop,
            name="speech-recognizer",
            daemon=True,
        )
        self._worker.start()
        self._stream.start()

    def _recognize_loop(self) -> None:
        decoder = self._decoder
        try:
            while not self._stopping.is_set():
                try:
                    chunk = self._audio_queue.get(timeout=0.1)
                except queue.Empty:
                    continue
                outcome = decoder.feed(chunk)
                if outcome is not None:
                    self._dispatch(outcome)
        except Exception as exc:
            LOGGER.debug("Recognition worker failed", exc_info=True)
            if not self._error_handlers:
                raise
            for handler in self._error_handlers:
                handler(exc)

    def _dispatch(self, outcome: RecognitionOutcome) -> None:
        if isinstance(outcome, Rejected):
            for handler in self._rejected_handlers:
                handler(outcome)
        else:
            for handler in self._recognized_handlers:
                handler(outcome)

    # -- lifecycle ---------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("engine is closed")

    def close(self) -> None:
        """Stop listening and release the stream, worker and model.

        Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self._stopping.set()
            if self._stream is not None:
                try:
                    self._stream.stop()
                    self._stream.close()
                except Exception:
                    LOGGER.debug("Error closing audio stream", exc_info=True)
            if (
                self._worker is not None
                and self._worker is not threading.current_thread()
            ):
                self._worker.join(timeout=DEFAULT_SHUTDOWN_TIMEOUT)
                if self._worker.is_alive():
                    LOGGER.debug("Recognition worker did not stop in time")
        finally:
            self._stream = None
            self._decoder = None
            self._model = None
            _LIVE_ENGINE.release()
