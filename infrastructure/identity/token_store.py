import json
import logging
import os
import threading
from typing import Dict, List, Optional

from use_cases.session_models import PersistenceMode

log = logging.getLogger(__name__)


class MemoryTokenStore:
    """Keeps session material for as long as the client object lives."""

    def __init__(self):
        self._values: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._values)


class FileTokenStore:
    """Persists session material as a JSON object on disk, surviving restarts."""

    def __init__(self, path: str):
        self.path = path
        # one store is shared by every visitor's script thread
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            log.warning(f"⚠️ Token store {self.path} unreadable, starting empty: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, values: Dict[str, str]) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(values, f)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            values = self._load()
            values[key] = value
            self._save(values)

    def delete(self, key: str) -> None:
        with self._lock:
            values = self._load()
            if key in values:
                del values[key]
                self._save(values)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._load())


def build_token_store(mode: PersistenceMode, path: str):
    if mode == PersistenceMode.LOCAL:
        return FileTokenStore(path)
    return MemoryTokenStore()
