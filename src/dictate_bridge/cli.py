"""CLI entry point for dictate-bridge.

Parses arguments, configures logging, and runs the bridge. Logging goes
to stderr; stdout carries only recognized text and diagnostic lines for
the parent process. With no arguments the bridge listens in the built-in
default locale.
"""

import argparse
import dataclasses
import logging
import os
import sys

from dictate_bridge.config import BridgeConfig, load_config
from dictate_bridge.constants import DEFAULT_LOCALE
from dictate_bridge.env import LOGGER, setup_environment
from dictate_bridge.errors import DeviceUnavailableError


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Continuous dictation: print each recognized utterance as a line on stdout"
    )
    locale_group = parser.add_mutually_exclusive_group()
    locale_group.add_argument(
        "--locale",
        default=None,
        help=f"Recognition locale, e.g. en-IN or fr (default: from config or {DEFAULT_LOCALE})",
    )
    locale_group.add_argument(
        "--platform-locale",
        action="store_true",
        help="Use the locale of the current environment",
    )
    parser.add_argument(
        "--model-path",
        default=None,
        help="Local Vosk model directory (overrides locale-based lookup)",
    )
    parser.add_argument(
        "--device", type=int, default=None, help="Audio input device"
    )
    parser.add_argument(
        "--no-rejections",
        action="store_true",
        help="Do not report utterances that could not be recognized",
    )
    parser.add_argument(
        "--min-confidence",
        type=float,
        default=None,
        help="Reject transcripts whose mean word confidence is lower (0 disables)",
    )
    parser.add_argument(
        "--config-file",
        default=None,
        help="JSON config file (default: ~/.config/dictate-bridge/config.json)",
    )
    parser.add_argument(
        "--list-devices", action="store_true", help="List audio devices"
    )
    return parser


def apply_overrides(
    config: BridgeConfig, args: argparse.Namespace
) -> BridgeConfig:
    """Layer command-line flags over the loaded config."""
    changes: dict[str, object] = {}
    if args.platform_locale:
        changes["locale"] = None
    elif args.locale is not None:
        changes["locale"] = args.locale
    if args.model_path is not None:
        changes["model_path"] = args.model_path
    if args.no_rejections:
        changes["report_rejections"] = False
    if args.min_confidence is not None:
        changes["min_confidence"] = args.min_confidence
    if args.device is not None:
        changes["audio"] = dataclasses.replace(config.audio, device=args.device)
    return dataclasses.replace(config, **changes)


def configure_logging() -> bool:
    """Send log records to stderr through Rich. Returns True if verbose."""
    from rich.console import Console
    from rich.logging import RichHandler

    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                show_time=False,
                show_path=False,
                rich_tracebacks=False,
            )
        ],
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return log_level == "DEBUG"


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    verbose = configure_logging()

    if args.list_devices:
        from dictate_bridge.devices import list_audio_devices

        try:
            list_audio_devices()
        except DeviceUnavailableError as exc:
            LOGGER.error("%s", exc)
            return 1
        return 0

    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8")

    from dictate_bridge.bridge import report_failure, run_bridge
    from dictate_bridge.output import OutputChannel

    output = OutputChannel()
    try:
        setup_environment(verbose)
        config = apply_overrides(load_config(args.config_file), args)
        return run_bridge(config, output)
    except KeyboardInterrupt:
        return 0
    except Exception as exc:
        LOGGER.debug("Startup failed", exc_info=True)
        report_failure(output, exc)
        return 0
