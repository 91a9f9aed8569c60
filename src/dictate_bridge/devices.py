"""Audio input device resolution, stream opening, and listing.

sounddevice is imported lazily: importing it loads PortAudio, and a host
without PortAudio is a host without an audio input device.
"""

from collections.abc import Callable
from typing import Any

from dictate_bridge.errors import DeviceUnavailableError
from dictate_bridge.protocols import InputStreamLike


def _sounddevice() -> Any:
    try:
        import sounddevice as sd
    except OSError as exc:
        raise DeviceUnavailableError(f"PortAudio is not available ({exc})") from exc
    return sd


def resolve_input_device(device: int | None = None) -> dict[str, Any]:
    """Return device info for *device*, or the default input device.

    Raises DeviceUnavailableError when there is no such input device.
    """
    sd = _sounddevice()
    try:
        info = sd.query_devices(device, kind="input")
    except (sd.PortAudioError, ValueError) as exc:
        raise DeviceUnavailableError(str(exc)) from exc
    if info["max_input_channels"] < 1:
        raise DeviceUnavailableError(f"{info['name']} has no input channels")
    return info


def open_input_stream(
    callback: Callable[..., None],
    samplerate: int,
    blocksize: int,
    device: int | None = None,
) -> InputStreamLike:
    """Open a mono int16 raw input stream delivering blocks to *callback*."""
    sd = _sounddevice()
    stream_kwargs: dict[str, Any] = {}
    if device is not None:
        stream_kwargs["device"] = device
    try:
        return sd.RawInputStream(
            samplerate=samplerate,
            blocksize=blocksize,
            channels=1,
            dtype="int16",
            callback=callback,
            **stream_kwargs,
        )
    except sd.PortAudioError as exc:
        raise DeviceUnavailableError(str(exc)) from exc


def list_audio_devices() -> None:
    """Display available audio input devices."""
    from rich.console import Console
    from rich.table import Table

    sd = _sounddevice()
    console = Console()
    table = Table(title="Audio Input Devices")
    table.add_column("ID", style="cyan")
    table.add_column("Device", style="white")
    table.add_column("Default", style="green")
    for i, d in enumerate(sd.query_devices()):
        if d["max_input_channels"] > 0:
            is_default = "Yes" if i == sd.default.device[0] else ""
            table.add_row(str(i), d["name"], is_default)
    console.print(table)
