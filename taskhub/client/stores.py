"""
Client-side state containers.

Persistence is explicit: a store is handed a storage object with
``load(name)`` / ``save(name, value)`` and only writes the fields it
chooses to keep between sessions.
"""
import json
import logging
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

THEMES = ("light", "dark", "system")


class MemoryStorage:
    def __init__(self):
        self._data: dict = {}

    def load(self, name: str) -> Optional[Any]:
        return self._data.get(name)

    def save(self, name: str, value: Any) -> None:
        self._data[name] = value

    def remove(self, name: str) -> None:
        self._data.pop(name, None)


class JsonFileStorage:
    """All stores share one JSON document on disk, keyed by store name."""

    def __init__(self, path):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError:
            logger.warning("Ignoring unreadable client state file %s", self.path)
            return {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")

    def load(self, name: str) -> Optional[Any]:
        return self._read().get(name)

    def save(self, name: str, value: Any) -> None:
        data = self._read()
        data[name] = value
        self._write(data)

    def remove(self, name: str) -> None:
        data = self._read()
        if data.pop(name, None) is not None:
            self._write(data)


class AuthStore:
    STORAGE_KEY = "auth-storage"

    def __init__(self, storage=None):
        self.storage = storage or MemoryStorage()
        self.user: Optional[dict] = None
        self.token: Optional[str] = None
        self.error: Optional[str] = None
        self._hydrate()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token and self.user)

    def _hydrate(self) -> None:
        saved = self.storage.load(self.STORAGE_KEY) or {}
        self.user = saved.get("user")
        self.token = saved.get("token")

    def _persist(self) -> None:
        # only user and token survive a restart
        self.storage.save(self.STORAGE_KEY, {"user": self.user, "token": self.token})

    def set_session(self, user: dict, token: str) -> None:
        self.user = user
        self.token = token
        self.error = None
        self._persist()

    def update_user(self, **fields) -> None:
        if self.user is None:
            return
        self.user = {**self.user, **fields}
        self._persist()

    def set_error(self, message: Optional[str]) -> None:
        self.error = message

    def logout(self) -> None:
        self.user = None
        self.token = None
        self.error = None
        self.storage.remove(self.STORAGE_KEY)


class ThemeStore:
    STORAGE_KEY = "theme-storage"

    def __init__(self, storage=None):
        self.storage = storage or MemoryStorage()
        saved = self.storage.load(self.STORAGE_KEY) or {}
        self.preference = saved.get("preference") if saved.get("preference") in THEMES else "system"

    def set_preference(self, preference: str) -> None:
        if preference not in THEMES:
            raise ValueError(f"Unknown theme {preference!r}; expected one of {', '.join(THEMES)}")
        self.preference = preference
        self.storage.save(self.STORAGE_KEY, {"preference": preference})

    def resolved(self, system_prefers_dark: bool = False) -> str:
        """The theme actually applied: 'system' follows the OS setting."""
        if self.preference == "system":
            return "dark" if system_prefers_dark else "light"
        return self.preference


class UIStore:
    # Not persisted
    def __init__(self):
        self.sidebar_open = False
        self.sidebar_collapsed = False

    def set_sidebar_open(self, value: bool) -> None:
        self.sidebar_open = value

    def toggle_sidebar(self) -> None:
        self.sidebar_open = not self.sidebar_open

    def set_sidebar_collapsed(self, value: bool) -> None:
        self.sidebar_collapsed = value

    def toggle_sidebar_collapsed(self) -> None:
        self.sidebar_collapsed = not self.sidebar_collapsed
