"""Line-oriented output channel to the parent process."""

import sys
import threading
from typing import TextIO


class OutputChannel:
    """Append-only line sink that flushes after every write.

    Writes come from both the foreground and the recognition worker, so
    each line is written and flushed under a lock.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()

    def write_line(self, line: str) -> None:
        with self._lock:
            self._stream.write(f"{line}\n")
            self._stream.flush()
