"""Entry point for the symposium-chat CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from . import __version__
from .core.log import configure_logging, logger
from .core.persistence import JsonFileStore
from .preferences import Preferences, load_preferences


def _apply_overrides(prefs: Preferences, args: argparse.Namespace) -> None:
    if args.host:
        prefs.server.host = args.host
    if args.port:
        prefs.server.port = args.port
    if args.state_file:
        prefs.storage.path = Path(args.state_file).expanduser()
    if args.agent:
        prefs.agent.name = args.agent
    if args.log_level:
        prefs.logging.level = args.log_level.upper()


def _inspect_state(prefs: Preferences) -> int:
    """Print the persisted snapshot as indented JSON."""
    store = JsonFileStore(prefs.storage.path)
    state = asyncio.run(store.get(prefs.storage.state_key))
    print(json.dumps(state, indent=2, ensure_ascii=False))
    return 0


def _reset_state(prefs: Preferences) -> int:
    store = JsonFileStore(prefs.storage.path)
    asyncio.run(store.delete(prefs.storage.state_key))
    print(f"Cleared {prefs.storage.state_key} in {prefs.storage.path}")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Run the symposium-chat web surface."""
    parser = argparse.ArgumentParser(description="Symposium chat coordinator")
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=f"symposium-chat {__version__}",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Preferences file (default: ~/.symposium/chat-preferences.yaml)",
    )
    parser.add_argument("--host", type=str, help="Interface to listen on")
    parser.add_argument("--port", type=int, help="Web server port")
    parser.add_argument(
        "--state-file",
        type=str,
        help="JSON file holding the persisted chat snapshot",
    )
    parser.add_argument(
        "--agent",
        type=str,
        help="Agent backend: 'echo' or 'package.module:factory'",
    )
    parser.add_argument("--log-level", type=str, help="Logging level (e.g. DEBUG)")
    parser.add_argument(
        "--inspect-state",
        action="store_true",
        help="Print the persisted snapshot and exit",
    )
    parser.add_argument(
        "--reset-state",
        action="store_true",
        help="Delete the persisted snapshot and exit",
    )

    args = parser.parse_args(argv)

    prefs_path = Path(args.config).expanduser() if args.config else None
    prefs = load_preferences(prefs_path)
    _apply_overrides(prefs, args)
    configure_logging(prefs.logging.level, prefs.logging.file)

    if args.inspect_state:
        sys.exit(_inspect_state(prefs))
    if args.reset_state:
        sys.exit(_reset_state(prefs))

    try:
        from symposium_chat.web import main as web_main

        web_main(prefs, prefs_path)
    except ImportError as exc:
        print(
            f"Web dependencies not installed: {exc}\n"
            "Install with:  pip install fastapi uvicorn websockets",
            file=sys.stderr,
        )
        sys.exit(1)
    except (KeyboardInterrupt, SystemExit):
        pass
    except Exception:
        logger.debug("Fatal error in symposium-chat", exc_info=True)
        import traceback

        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
