"""User preferences for symposium-chat.

Loads settings from ~/.symposium/chat-preferences.yaml.
Falls back to sensible defaults if the file doesn't exist or is invalid.
Creates a default file on first run so users can discover and edit it.
"""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .core.constants import STATE_KEY
from .core.log import logger

SYMPOSIUM_HOME = Path.home() / ".symposium"
PREFS_PATH = SYMPOSIUM_HOME / "chat-preferences.yaml"

_DEFAULT_YAML = """\
# symposium-chat preferences
# Delete this file to reset to defaults.

server:
  host: "127.0.0.1"              # interface the web surface listens on
  port: 8765

storage:
  path: "~/.symposium/chat-state.json"   # where tab/session snapshots live
  state_key: "symposium.chatState"

agent:
  name: "echo"                   # built-in name or "package.module:factory"
  chunk_delay: 0.02              # seconds between echo chunks

logging:
  level: "INFO"
  file: ""                       # empty = log to stderr only
"""


@dataclass
class ServerPreferences:
    """Where the web surface listens."""

    host: str = "127.0.0.1"
    port: int = 8765


@dataclass
class StoragePreferences:
    """Where the versioned snapshot is persisted."""

    path: Path = SYMPOSIUM_HOME / "chat-state.json"
    state_key: str = STATE_KEY


@dataclass
class AgentPreferences:
    name: str = "echo"
    chunk_delay: float = 0.02


@dataclass
class LoggingPreferences:
    level: str = "INFO"
    file: Path | None = None


@dataclass
class Preferences:
    """Top-level symposium-chat preferences."""

    server: ServerPreferences = field(default_factory=ServerPreferences)
    storage: StoragePreferences = field(default_factory=StoragePreferences)
    agent: AgentPreferences = field(default_factory=AgentPreferences)
    logging: LoggingPreferences = field(default_factory=LoggingPreferences)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view (paths as strings)."""
        data = asdict(self)
        data["storage"]["path"] = str(self.storage.path)
        data["logging"]["file"] = str(self.logging.file) if self.logging.file else ""
        return data


def _expand(value: Any) -> Path:
    return Path(str(value)).expanduser()


def _apply(prefs: Preferences, data: dict[str, Any]) -> None:
    if isinstance(data.get("server"), dict):
        sdata = data["server"]
        if "host" in sdata:
            prefs.server.host = str(sdata["host"])
        if "port" in sdata:
            prefs.server.port = int(sdata["port"])
    if isinstance(data.get("storage"), dict):
        stdata = data["storage"]
        if stdata.get("path"):
            prefs.storage.path = _expand(stdata["path"])
        if stdata.get("state_key"):
            prefs.storage.state_key = str(stdata["state_key"])
    if isinstance(data.get("agent"), dict):
        adata = data["agent"]
        if adata.get("name"):
            prefs.agent.name = str(adata["name"])
        if "chunk_delay" in adata:
            prefs.agent.chunk_delay = max(0.0, float(adata["chunk_delay"]))
    if isinstance(data.get("logging"), dict):
        ldata = data["logging"]
        if ldata.get("level"):
            prefs.logging.level = str(ldata["level"]).upper()
        if "file" in ldata:
            prefs.logging.file = _expand(ldata["file"]) if ldata["file"] else None


def load_preferences(path: Path | None = None) -> Preferences:
    """Load preferences from YAML file.

    Falls back to sensible defaults if the file doesn't exist or is invalid.
    Creates a default preferences file on first run.
    """
    path = path or PREFS_PATH
    prefs = Preferences()

    if path.exists():
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            if isinstance(data, dict):
                _apply(prefs, data)
            else:
                logger.warning("ignoring preferences in %s: not a mapping", path)
        except (OSError, yaml.YAMLError, TypeError, ValueError):
            logger.warning(
                "could not read preferences from %s; using defaults", path, exc_info=True
            )
            prefs = Preferences()
    else:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(_DEFAULT_YAML, encoding="utf-8")
        except OSError:
            logger.debug("could not write default preferences to %s", path, exc_info=True)

    return prefs


def save_agent_name(name: str, path: Path | None = None) -> bool:
    """Persist the selected agent to the preferences file.

    Surgically updates only ``agent.name``, preserving the rest of the file
    (including user comments) as-is.  Returns False if the file could not
    be written.
    """
    path = path or PREFS_PATH
    value = json.dumps(name)
    try:
        if path.exists():
            text = path.read_text(encoding="utf-8")
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            text = _DEFAULT_YAML

        lines = text.splitlines()
        section = None
        header = None
        replaced = False
        for i, line in enumerate(lines):
            if line and not line[0].isspace() and not line.startswith("#"):
                section = line.split("#", 1)[0].strip()
                if section == "agent:":
                    header = i
                continue
            if section == "agent:" and re.match(r"^\s+name:", line):
                lines[i] = re.sub(
                    r"^(\s+name:)\s*(\"[^\"]*\"|'[^']*'|[^\s#]*)",
                    lambda m: f"{m.group(1)} {value}",
                    line,
                    count=1,
                )
                replaced = True
                break

        if not replaced:
            if header is not None:
                lines.insert(header + 1, f"  name: {value}")
            else:
                lines += ["", "agent:", f"  name: {value}"]

        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    except OSError:
        logger.warning("could not save agent preference to %s", path, exc_info=True)
        return False
    return True
