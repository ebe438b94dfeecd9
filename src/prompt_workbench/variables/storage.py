"""
Preference store adapters.

The variable manager persists through any object with async ``get`` and
``set`` by string key. Two adapters ship here: an in-memory store and a
YAML file store.
"""

import asyncio
import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, TypeVar

import yaml


logger = logging.getLogger(__name__)

T = TypeVar("T")


class PreferenceStore(Protocol):
    """Async key-value preference store."""

    async def get(self, key: str, default: T) -> T:
        ...

    async def set(self, key: str, value: Any) -> None:
        ...


class MemoryPreferenceStore:
    """
    In-memory preference store.

    Values are deep-copied on the way in and out so callers never share
    state with the store. Data is lost when the process exits.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial or {})

    async def get(self, key: str, default: T) -> T:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def snapshot(self) -> Dict[str, Any]:
        """Get a copy of everything stored."""
        return copy.deepcopy(self._data)


class YamlPreferenceStore:
    """
    Preference store backed by a single YAML file.

    The whole file is rewritten on every ``set``. Blocking file access runs
    in a worker thread.
    """

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    async def get(self, key: str, default: T) -> T:
        data = await asyncio.to_thread(self._read)
        return data.get(key, default)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write_key, key, value)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}

        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Preference file {self.path} does not contain a mapping")
        return data

    def _write_key(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        tmp_path.replace(self.path)
        logger.debug("Saved preference %s to %s", key, self.path)
