"""
JSON File Storage Implementation

DESIGN DECISION: A single JSON document on local disk is the default store:
1. The user can open and read their data directly
2. No database setup required
3. Easy to back up, export or migrate later

TRADEOFFS:
- The whole document is rewritten on every change (fine for one person's
  budget, which is a few hundred entries at most)
- One process at a time; there is no file locking

Writes go to a temporary file that is then renamed over the real one, so a
crash mid-write leaves the previous version intact. Transient OS errors
are retried with exponential backoff.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from budget_manager.log import get_logger
from budget_manager.services.storage.interface import (
    KeyValueStore,
    SerializationError,
    StorageConnectionError,
    StorageError,
)


class JsonFileStore(KeyValueStore):
    """
    Key-value store persisted as one JSON object in a file.

    The file is read lazily on first access and cached; every write
    rewrites the file.
    """

    def __init__(self, path: Path, retry_attempts: int = 3):
        self._path = Path(path).expanduser()
        self._retry_attempts = retry_attempts
        self._data: Optional[dict[str, Any]] = None
        self._logger = get_logger(__name__).bind(path=str(self._path))

    @property
    def path(self) -> Path:
        return self._path

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data

        if not self._path.exists():
            self._data = {}
            return self._data

        try:
            for attempt in self._retrying():
                with attempt:
                    text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageConnectionError(f"Could not read {self._path}: {e}")

        if not text.strip():
            self._data = {}
            return self._data

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise SerializationError(f"{self._path} is not valid JSON: {e}")
        if not isinstance(data, dict):
            raise SerializationError(f"{self._path} does not contain a JSON object")

        self._data = data
        self._logger.debug("store_loaded", keys=len(data))
        return self._data

    def _flush(self, data: dict[str, Any]) -> None:
        try:
            payload = json.dumps(data, indent=2, sort_keys=True)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Store contents are not JSON-compatible: {e}")

        try:
            for attempt in self._retrying():
                with attempt:
                    self._write_atomically(payload)
        except OSError as e:
            self._logger.error("store_write_failed", error=str(e))
            raise StorageError(f"Could not write {self._path}: {e}")

    def _write_atomically(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent,
            prefix=f".{self._path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self._path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def connect(self) -> None:
        """Read and check the file now, so a broken store fails at startup."""
        self._load()

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.set_many({key: value})

    def set_many(self, items: dict[str, Any]) -> None:
        data = dict(self._load())
        data.update(items)
        self._flush(data)
        self._data = data
        self._logger.debug("store_written", keys=sorted(items))

    def remove(self, key: str) -> bool:
        data = self._load()
        if key not in data:
            return False
        data = {k: v for k, v in data.items() if k != key}
        self._flush(data)
        self._data = data
        self._logger.debug("store_key_removed", key=key)
        return True
