"""Key-value stores the coordinator persists its snapshot into."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from ._base import JsonStore
from ..log import logger


@runtime_checkable
class KeyValueStore(Protocol):
    """Host-provided persistence, in the shape of a workspace memento."""

    async def get(self, key: str) -> Any:
        """Return the stored value, or ``None`` when the key is absent."""
        ...

    async def update(self, key: str, value: Any) -> None:
        """Store *value*; ``None`` removes the key."""
        ...

    async def delete(self, key: str) -> None:
        ...


class MemoryStore:
    """In-process store.  Values are deep-copied in and out."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    async def update(self, key: str, value: Any) -> None:
        if value is None:
            self._data.pop(key, None)
        else:
            self._data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore(JsonStore):
    """Key-value store backed by one JSON object on disk (``{key: value}``).

    Every call re-reads the file, so several processes pointed at the same
    path see each other's writes; the last writer wins.
    """

    def __init__(self, path: Path) -> None:
        super().__init__(path)

    def _load(self) -> dict[str, Any]:
        raw = self.load_raw()
        if isinstance(raw, dict):
            return raw
        logger.warning("ignoring non-object store contents in %s", self.path)
        return {}

    async def get(self, key: str) -> Any:
        return self._load().get(key)

    async def update(self, key: str, value: Any) -> None:
        data = self._load()
        if value is None:
            if key not in data:
                return
            del data[key]
        else:
            data[key] = value
        self.save_raw(data)

    async def delete(self, key: str) -> None:
        await self.update(key, None)
