"""Base JSON file store."""

from __future__ import annotations

import json
from pathlib import Path

from ..log import logger


class JsonStore:
    """One JSON document on disk, replaced atomically on every save.

    Subclasses override ``_default()`` to provide the value returned when
    the file is missing or unreadable.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    # -- core I/O -------------------------------------------------------------

    def load_raw(self) -> dict | list:
        """Parse the file, or return ``_default()`` if it is absent or broken."""
        try:
            if self.path.exists():
                return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("unreadable store %s; using defaults", self.path, exc_info=True)
        return self._default()

    def save_raw(self, data: dict | list, *, sort_keys: bool = False) -> None:
        """Write *data* beside the target, then rename it into place."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(
            json.dumps(data, indent=2, ensure_ascii=False, sort_keys=sort_keys),
            encoding="utf-8",
        )
        tmp.replace(self.path)

    # -- override point -------------------------------------------------------

    def _default(self) -> dict | list:  # noqa: PLR6301
        return {}
