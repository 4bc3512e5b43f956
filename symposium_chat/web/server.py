"""FastAPI server hosting the chat surface."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Body, FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles

from symposium_chat.core.agent import AgentBackend, load_agent
from symposium_chat.core.errors import AgentLoadError
from symposium_chat.core.persistence import JsonFileStore, KeyValueStore
from symposium_chat.preferences import Preferences, save_agent_name

from .web_app import WebSurface

logger = logging.getLogger(__name__)

_HERE = Path(__file__).parent
_TEMPLATES = _HERE / "templates"
_STATIC = _HERE / "static"


def _build_agent(prefs: Preferences) -> AgentBackend:
    if prefs.agent.name == "echo":
        return load_agent("echo", chunk_delay=prefs.agent.chunk_delay)
    return load_agent(prefs.agent.name)


def create_app(
    prefs: Preferences | None = None,
    *,
    agent: AgentBackend | None = None,
    store: KeyValueStore | None = None,
    prefs_path: Path | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    *agent* and *store* default to what *prefs* describes.  *prefs_path* is
    the preferences file that settings changes are written back to.
    """
    prefs = prefs or Preferences()
    agent = agent if agent is not None else _build_agent(prefs)
    store = store if store is not None else JsonFileStore(prefs.storage.path)
    surface = WebSurface(agent, store, state_key=prefs.storage.state_key)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await surface.shutdown()

    app = FastAPI(title="Symposium Chat", lifespan=lifespan)
    app.state.surface = surface

    # Serve the UI bundle (webview.js)
    app.mount("/static", StaticFiles(directory=str(_STATIC)), name="static")

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        """Serve the page that mounts the chat bundle."""
        html = (_TEMPLATES / "index.html").read_text(encoding="utf-8")
        return HTMLResponse(content=html)

    @app.get("/api/state")
    async def inspect_state() -> dict:
        """Raw persisted snapshot, for debugging."""
        return {"state": await surface.coordinator.persistence.inspect()}

    @app.get("/api/config")
    async def config() -> dict:
        return prefs.to_dict()

    @app.put("/api/config/agent")
    async def set_agent(name: str = Body(..., embed=True)) -> dict:
        """Select the agent backend.  The running agent is kept until restart."""
        try:
            load_agent(name)
        except AgentLoadError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if not save_agent_name(name, prefs_path):
            raise HTTPException(status_code=500, detail="could not write preferences")
        prefs.agent.name = name
        logger.info("agent set to %s; takes effect on restart", name)
        return {"agent": name, "restart_required": True}

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket) -> None:
        """Bidirectional WebSocket carrying the surface protocol."""
        await ws.accept()
        await surface.attach(ws)

        try:
            while True:
                data = await ws.receive_json()
                msg_type = data.get("type", "") if isinstance(data, dict) else ""

                if msg_type == "ping":
                    await ws.send_json({"type": "pong"})
                elif msg_type == "visibility":
                    await surface.set_visible(bool(data.get("visible", True)))
                else:
                    surface.dispatch(data)

        except WebSocketDisconnect:
            logger.info("WebSocket client disconnected")
        except Exception:
            logger.exception("WebSocket error")
        finally:
            await surface.detach(ws)

    return app
