"""Web surface for symposium-chat."""

from __future__ import annotations

from pathlib import Path

from symposium_chat.preferences import Preferences


def main(prefs: Preferences | None = None, prefs_path: Path | None = None) -> None:
    """Launch the web server."""
    import uvicorn

    from .server import create_app

    prefs = prefs or Preferences()
    app = create_app(prefs, prefs_path=prefs_path)
    uvicorn.run(
        app,
        host=prefs.server.host,
        port=prefs.server.port,
        log_level=prefs.logging.level.lower(),
    )
