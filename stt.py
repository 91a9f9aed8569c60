# /// script
# requires-python = ">=3.12"
# dependencies = [
#     "dictate-bridge",
# ]
#
# [tool.uv.sources]
# dictate-bridge = { path = "." }
# ///
"""Speech helper: prints each dictated utterance as a line on stdout."""

from dictate_bridge.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
