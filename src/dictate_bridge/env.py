"""Environment setup, stdout protection, and logging for dictate-bridge.

Standard output belongs to the parent process: only recognized text and
the fixed diagnostic lines may reach it. Anything else a library prints
is diverted to stderr.
"""

import contextlib
import logging
import sys
import warnings
from collections.abc import Generator

LOGGER = logging.getLogger("bridge")


def setup_environment(verbose: bool = False) -> None:
    """Configure warning filters and silence Kaldi before models load."""
    warnings.filterwarnings("ignore", category=UserWarning)
    warnings.filterwarnings("ignore", category=DeprecationWarning)

    import vosk

    # Kaldi logs to fd 2; -1 keeps only errors.
    vosk.SetLogLevel(0 if verbose else -1)


@contextlib.contextmanager
def quiet_stdout() -> Generator[None, None, None]:
    """Send Python-level stdout writes to stderr for the duration.

    Model lookup in vosk reports problems with print(); without this they
    would be read by the parent as dictated text.
    """
    with contextlib.redirect_stdout(sys.stderr):
        yield
