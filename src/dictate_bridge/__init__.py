__version__ = "0.1.0"


def __getattr__(name: str):
    """Lazy re-exports so that importing the package does not load vosk."""
    _bridge_names = {"RecognitionBridge", "run_bridge"}
    _engine_names = {"SpeechRecognitionEngine"}
    if name in _bridge_names:
        from dictate_bridge import bridge

        return getattr(bridge, name)
    if name in _engine_names:
        from dictate_bridge import engine

        return getattr(engine, name)
    raise AttributeError(f"module 'dictate_bridge' has no attribute {name!r}")
