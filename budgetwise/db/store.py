"""
Key -> JSON storage used for budgets and savings goals.

Callers receive a store instance instead of reaching for ambient global state,
so the same code runs against memory in tests and a JSON file in a deployment.
"""
import json
import logging
import threading
from abc import ABC, abstractmethod
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def _to_json_compatible(obj: Any):
    """
    Recursively convert Decimal values to native numbers so they serialize.
    """
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    if isinstance(obj, dict):
        return {str(k): _to_json_compatible(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_json_compatible(v) for v in obj]
    return obj


class KeyValueStore(ABC):
    """Read/write JSON-compatible values by key."""

    @abstractmethod
    def read(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def write(self, key: str, value: Any) -> None:
        ...


class MemoryStore(KeyValueStore):
    """
    In-memory store holding serialized copies, so values handed out can be
    mutated freely without touching what is stored.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()
        for key, value in (initial or {}).items():
            self.write(key, value)

    def read(self, key: str, default: Any = None) -> Any:
        with self._lock:
            raw = self._data.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    def write(self, key: str, value: Any) -> None:
        encoded = json.dumps(_to_json_compatible(value))
        with self._lock:
            self._data[key] = encoded


class JsonFileStore(KeyValueStore):
    """Keeps every key in a single JSON document on disk."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open(encoding="utf-8") as fp:
                data = json.load(fp)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read store file {self._path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring store file {self._path}: top-level value is not an object")
            return {}
        return data

    def read(self, key: str, default: Any = None) -> Any:
        with self._lock:
            data = self._load()
        return data.get(key, default)

    def write(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._load()
            data[key] = _to_json_compatible(value)
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            with tmp_path.open("w", encoding="utf-8") as fp:
                json.dump(data, fp, indent=2)
            tmp_path.replace(self._path)


def build_store(path: Optional[str] = None) -> KeyValueStore:
    if path:
        logger.info(f"Using JSON file store at {path}")
        return JsonFileStore(path)
    logger.info("Using in-memory store")
    return MemoryStore()
