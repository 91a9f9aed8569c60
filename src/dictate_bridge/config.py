"""Bridge configuration: frozen dataclasses and the JSON config loader."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dictate_bridge.audio.vad import VadConfig
from dictate_bridge.constants import (
    DEFAULT_BLOCKSIZE,
    DEFAULT_CONFIG_DIR,
    DEFAULT_CONFIG_DIR_ENV,
    DEFAULT_CONFIG_FILE,
    DEFAULT_ENERGY_THRESHOLD,
    DEFAULT_LOCALE,
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_MIN_SPEECH_MS,
    DEFAULT_SAMPLE_RATE,
    DEFAULT_VAD_FRAME_MS,
    DEFAULT_VAD_MODE,
)
from dictate_bridge.env import LOGGER


@dataclass(frozen=True, slots=True)
class AudioConfig:
    """Input device and capture format."""

    device: int | None = None
    sample_rate: int = DEFAULT_SAMPLE_RATE
    blocksize: int = DEFAULT_BLOCKSIZE


@dataclass(frozen=True, slots=True)
class VadSettings:
    """Speech detection used to classify empty transcripts."""

    enabled: bool = True
    mode: int = DEFAULT_VAD_MODE
    frame_ms: int = DEFAULT_VAD_FRAME_MS
    min_speech_ms: int = DEFAULT_MIN_SPEECH_MS
    energy_threshold: float = DEFAULT_ENERGY_THRESHOLD

    def build(self, sample_rate: int) -> VadConfig | None:
        """VadConfig for the detector, or None when detection is off."""
        if not self.enabled:
            return None
        return VadConfig(
            frame_ms=self.frame_ms,
            mode=self.mode,
            sample_rate=sample_rate,
            energy_threshold=self.energy_threshold,
        )


@dataclass(frozen=True, slots=True)
class BridgeConfig:
    """Top-level configuration loaded from ~/.config/dictate-bridge/config.json.

    ``locale=None`` selects the platform locale.
    """

    locale: str | None = DEFAULT_LOCALE
    model_path: str | None = None
    report_rejections: bool = True
    min_confidence: float = DEFAULT_MIN_CONFIDENCE
    audio: AudioConfig = field(default_factory=AudioConfig)
    vad: VadSettings = field(default_factory=VadSettings)


def config_dir() -> Path:
    """Directory holding config.json, honoring the env override."""
    return Path(
        os.environ.get(DEFAULT_CONFIG_DIR_ENV, "") or DEFAULT_CONFIG_DIR,
    ).expanduser()


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    raw = data.get(name, {})
    if not isinstance(raw, dict):
        raise ValueError(f"config section {name!r} must be an object")
    return raw


def parse_config(data: dict[str, Any]) -> BridgeConfig:
    """Build a BridgeConfig from decoded JSON, filling in defaults."""
    audio_raw = _section(data, "audio")
    audio = AudioConfig(
        device=_optional_int(audio_raw.get("device")),
        sample_rate=int(audio_raw.get("sample_rate", DEFAULT_SAMPLE_RATE)),
        blocksize=int(audio_raw.get("blocksize", DEFAULT_BLOCKSIZE)),
    )

    vad_raw = _section(data, "vad")
    vad = VadSettings(
        enabled=bool(vad_raw.get("enabled", True)),
        mode=int(vad_raw.get("mode", DEFAULT_VAD_MODE)),
        frame_ms=int(vad_raw.get("frame_ms", DEFAULT_VAD_FRAME_MS)),
        min_speech_ms=int(vad_raw.get("min_speech_ms", DEFAULT_MIN_SPEECH_MS)),
        energy_threshold=float(
            vad_raw.get("energy_threshold", DEFAULT_ENERGY_THRESHOLD)
        ),
    )

    locale = data.get("locale", DEFAULT_LOCALE)
    model_path = data.get("model_path")
    return BridgeConfig(
        locale=None if locale is None else str(locale),
        model_path=None if model_path is None else str(model_path),
        report_rejections=bool(data.get("report_rejections", True)),
        min_confidence=float(data.get("min_confidence", DEFAULT_MIN_CONFIDENCE)),
        audio=audio,
        vad=vad,
    )


def load_config(path: str | None = None) -> BridgeConfig:
    """Load bridge configuration from a JSON file.

    Reads ``~/.config/dictate-bridge/config.json`` (or *path*). The
    ``DICTATE_BRIDGE_CONFIG_DIR`` environment variable overrides the
    config directory. Returns the defaults if the file does not exist.
    """
    config_path = (
        Path(path).expanduser() if path else config_dir() / DEFAULT_CONFIG_FILE
    )
    if not config_path.exists():
        LOGGER.debug("No config at %s; using defaults", config_path)
        return BridgeConfig()

    with open(config_path) as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"{config_path} must contain a JSON object")
    return parse_config(data)
