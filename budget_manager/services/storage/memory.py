"""In-memory key-value store, used for tests and the ``memory`` backend."""

import copy
import json
from typing import Any, Optional

from budget_manager.services.storage.interface import KeyValueStore, SerializationError


class InMemoryStore(KeyValueStore):
    """
    Dictionary-backed store.

    Values are deep-copied on the way in and out, and must be JSON-encodable,
    so it behaves like the file store (no aliasing with the caller's objects).
    """

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        try:
            json.dumps(value)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Value for {key!r} is not JSON-compatible: {e}")
        self._data[key] = copy.deepcopy(value)

    def remove(self, key: str) -> bool:
        if key not in self._data:
            return False
        del self._data[key]
        return True

    def keys(self) -> list[str]:
        return list(self._data)
