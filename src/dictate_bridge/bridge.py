"""Recognition bridge: engine events in, lines on stdout out.

RecognitionBridge owns the engine for the life of the process. It
subscribes to recognition outcomes, starts listening, then blocks until
stdin delivers a line or EOF, a termination signal arrives, or the
engine worker fails. run_bridge() is the outermost scope: every failure
ends there as a single diagnostic line, never as a traceback.
"""

import asyncio
import signal
import sys
import threading
from collections.abc import Callable
from typing import TextIO

from dictate_bridge.config import BridgeConfig
from dictate_bridge.constants import (
    ERROR_PREFIX,
    LISTENING_NOTICE,
    NO_DEVICE_PREFIX,
    REJECTED_LINE,
)
from dictate_bridge.engine import SpeechRecognitionEngine
from dictate_bridge.env import LOGGER
from dictate_bridge.errors import DeviceUnavailableError
from dictate_bridge.output import OutputChannel
from dictate_bridge.types import Recognized, Rejected

EngineFactory = Callable[[BridgeConfig], SpeechRecognitionEngine]

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class RecognitionBridge:
    """Forwards recognized utterances from the engine to the output channel."""

    def __init__(
        self,
        config: BridgeConfig,
        output: OutputChannel,
        engine_factory: EngineFactory = SpeechRecognitionEngine.from_config,
        stdin: TextIO | None = None,
    ) -> None:
        self.config = config
        self.output = output
        self.engine_factory = engine_factory
        self.stdin = stdin if stdin is not None else sys.stdin
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop_event: asyncio.Event | None = None
        self._failure: BaseException | None = None

    def handle_recognized(self, event: Recognized) -> None:
        """Emit the transcript verbatim unless it is blank."""
        if event.text and event.text.strip():
            self.output.write_line(event.text)

    def handle_rejected(self, event: Rejected) -> None:
        self.output.write_line(REJECTED_LINE)

    def handle_error(self, exc: BaseException) -> None:
        """Called from the worker thread; wakes the foreground to fail."""
        self._notify(self._fail, exc)

    def _fail(self, exc: BaseException) -> None:
        if self._failure is None:
            self._failure = exc
        self._stop()

    def _stop(self) -> None:
        if self._stop_event is not None and not self._stop_event.is_set():
            self._stop_event.set()

    def _notify(self, callback: Callable[..., None], *args: object) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            # Loop closed between the check and the call.
            pass

    def _watch_stdin(self) -> None:
        """Block on stdin; any line or EOF ends the session."""
        try:
            self.stdin.readline()
        except (OSError, ValueError):
            LOGGER.debug("stdin unreadable; treating as EOF", exc_info=True)
        self._notify(self._stop)

    def _install_signal_handlers(self) -> list[signal.Signals]:
        installed: list[signal.Signals] = []
        for sig in _STOP_SIGNALS:
            try:
                self._loop.add_signal_handler(sig, self._stop)
            except (NotImplementedError, RuntimeError, ValueError):
                continue
            installed.append(sig)
        return installed

    def _remove_signal_handlers(self, installed: list[signal.Signals]) -> None:
        for sig in installed:
            try:
                self._loop.remove_signal_handler(sig)
            except Exception:
                pass

    async def run(self) -> None:
        """Create the engine, listen until told to stop, then release it."""
        self._loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        self._failure = None

        with self.engine_factory(self.config) as engine:
            engine.on_recognized(self.handle_recognized)
            if self.config.report_rejections:
                engine.on_rejected(self.handle_rejected)
            engine.on_error(self.handle_error)

            try:
                engine.set_input_to_default_audio_device(self.config.audio.device)
            except DeviceUnavailableError as exc:
                self.output.write_line(f"{NO_DEVICE_PREFIX}{exc}")
                return

            installed = self._install_signal_handlers()
            try:
                engine.recognize_async()
                LOGGER.info(LISTENING_NOTICE)

                watcher = threading.Thread(
                    target=self._watch_stdin,
                    name="stdin-watcher",
                    daemon=True,
                )
                watcher.start()

                await self._stop_event.wait()
                LOGGER.debug("Stopping...")
            finally:
                self._remove_signal_handlers(installed)

        if self._failure is not None:
            raise self._failure


def run_bridge(
    config: BridgeConfig,
    output: OutputChannel | None = None,
    engine_factory: EngineFactory = SpeechRecognitionEngine.from_config,
    stdin: TextIO | None = None,
) -> int:
    """Run the bridge to completion. Returns exit code.

    Failures are reported on the output channel, not through the exit
    code, so this always returns 0.
    """
    output = output or OutputChannel()
    bridge = RecognitionBridge(config, output, engine_factory, stdin)
    try:
        asyncio.run(bridge.run())
    except Exception as exc:
        LOGGER.debug("Bridge failed", exc_info=True)
        report_failure(output, exc)
    return 0


def report_failure(output: OutputChannel, exc: BaseException) -> None:
    """Write the generic diagnostic line for *exc*."""
    try:
        output.write_line(f"{ERROR_PREFIX}{exc}")
    except OSError:
        # The parent is gone; stderr is all that is left.
        LOGGER.error("%s%s", ERROR_PREFIX, exc)
