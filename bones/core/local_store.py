"""
local_store.py: Durable key-value store for client-owned state

The client owns exactly two pieces of durable state:
  token      : bearer token for the backend
  mockOrders : orders synthesized locally when quote conversion fails

Both live in one JSON file (default: DATA_DIR/local_store.json).
Writes go through a temp file + os.replace so a crash never leaves a
half-written file. Two processes writing the same file are last-write-wins.
"""

import json
import os
import logging
import tempfile
import threading
from copy import deepcopy
from typing import Optional

from bones.core import paths

log = logging.getLogger("bones.store")

TOKEN_KEY = "token"


class LocalStore:
    """JSON-file backed key-value store."""

    def __init__(self, path: Optional[str] = None):
        self.path = path or paths.LOCAL_STORE_PATH
        self._lock = threading.Lock()

    # ── File I/O ─────────────────────────────────────────────────────────────

    def _load(self) -> dict:
        try:
            with open(self.path) as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as e:
            log.error("Local store %s is corrupt (%s): starting empty", self.path, e)
            return {}
        if not isinstance(data, dict):
            log.error("Local store %s is not an object: starting empty", self.path)
            return {}
        return data

    def _save(self, data: dict):
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=directory, prefix=".store-", suffix=".json")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2, default=str)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise

    # ── Public API ───────────────────────────────────────────────────────────

    def get(self, key: str, default=None):
        with self._lock:
            data = self._load()
        if key not in data:
            return default
        return deepcopy(data[key])

    def put(self, key: str, value):
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def delete(self, key: str) -> bool:
        with self._lock:
            data = self._load()
            if key not in data:
                return False
            del data[key]
            self._save(data)
            return True

    def keys(self) -> list:
        with self._lock:
            return sorted(self._load().keys())

    def append(self, key: str, item) -> int:
        """Append to a list value under one lock. Returns the new length."""
        with self._lock:
            data = self._load()
            current = data.get(key)
            if not isinstance(current, list):
                if current is not None:
                    log.warning("Store key %s held %s, replacing with list",
                                key, type(current).__name__)
                current = []
            current.append(item)
            data[key] = current
            self._save(data)
            return len(current)

    # ── Token helpers ────────────────────────────────────────────────────────

    def get_token(self) -> str:
        return self.get(TOKEN_KEY, "") or ""

    def set_token(self, token: str):
        self.put(TOKEN_KEY, token)

    def clear_token(self):
        self.delete(TOKEN_KEY)
