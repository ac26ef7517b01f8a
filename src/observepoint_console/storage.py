"""
Local key-value storage.

Same shape as browser local storage: raw string items
addressed by key. Two keys are used:
- observepoint_api_key: the operator's API key (raw string)
- validation_templates: JSON array of ValidationTemplate dicts
"""
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

API_KEY_STORAGE_KEY = 'observepoint_api_key'
TEMPLATES_STORAGE_KEY = 'validation_templates'


class LocalStorage(ABC):
    """String item store with the local storage interface."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        pass

    def get_json(self, key: str, default: Any = None) -> Any:
        """Decode a JSON item, returning default when missing or corrupt."""
        raw = self.get_item(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning(f"Discarding unreadable JSON stored under {key}")
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value))


class MemoryStorage(LocalStorage):
    """In-process storage, used by library callers and tests."""

    def __init__(self, items: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._items)


class DatabaseStorage(LocalStorage):
    """Storage backed by the local SQLite table. Requires an app context."""

    def get_item(self, key: str) -> Optional[str]:
        from .database import StoredItem
        return StoredItem.read(key)

    def set_item(self, key: str, value: str) -> None:
        from .database import StoredItem
        StoredItem.write(key, value)

    def remove_item(self, key: str) -> None:
        from .database import StoredItem
        StoredItem.remove(key)
