"""Key/value stores that remember the logged-in user between runs."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import MutableMapping, Optional

logger = logging.getLogger(__name__)


class SessionStore:
    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    def __init__(self):
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileSessionStore(SessionStore):
    """JSON file on disk; used by the command line client."""

    def __init__(self, path):
        self._path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Session file %s is unreadable; starting empty.", self._path)
            return {}
        if not isinstance(payload, dict):
            return {}
        return {str(key): str(value) for key, value in payload.items()}

    def _write(self, items: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(items, indent=2), encoding="utf-8")

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            items = self._read()
            items[key] = str(value)
            self._write(items)

    def remove_item(self, key: str) -> None:
        with self._lock:
            items = self._read()
            if key in items:
                del items[key]
                self._write(items)


class RequestSessionStore(SessionStore):
    """Adapts a Starlette cookie session (``request.session``)."""

    def __init__(self, session: MutableMapping):
        self._session = session

    def get_item(self, key: str) -> Optional[str]:
        value = self._session.get(key)
        return None if value is None else str(value)

    def set_item(self, key: str, value: str) -> None:
        self._session[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._session.pop(key, None)


__all__ = [
    "FileSessionStore",
    "MemorySessionStore",
    "RequestSessionStore",
    "SessionStore",
]
