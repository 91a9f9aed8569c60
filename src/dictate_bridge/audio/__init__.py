"""Audio subpackage: voice activity detection."""

from dictate_bridge.audio.vad import VadConfig, VoiceActivityDetector

__all__ = ["VadConfig", "VoiceActivityDetector"]
