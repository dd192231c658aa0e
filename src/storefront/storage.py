"""Key-value persistence for storefront stores.

Stores never touch the filesystem directly. They read and write plain
JSON-serializable values through a ``Storage`` so the backing medium can be
swapped: ``JsonFileStorage`` for real use, ``MemoryStorage`` for tests.
"""

import copy
import fcntl
import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Protocol

from .errors import InvalidSchemaVersionError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# Can be overridden via STOREFRONT_DATA_DIR environment variable
_default_data_dir = Path(__file__).parent.parent.parent / "data"
DATA_DIR = Path(os.environ.get("STOREFRONT_DATA_DIR", _default_data_dir))

CART_KEY = "cart"
ORDERS_KEY = "orders"
ADDRESSES_KEY = "addresses"
WISHLIST_KEY = "wishlist"
PROFILE_KEY = "profile"


class Storage(Protocol):
    """Protocol for the persistence port used by every store."""

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under key, or default if absent."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Replace the value stored under key."""
        ...

    def remove(self, key: str) -> None:
        """Delete key entirely. Missing keys are ignored."""
        ...


class MemoryStorage:
    """In-process storage. Values are deep-copied in and out."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStorage:
    """Stores each key as ``<key>.json`` under a data directory."""

    def __init__(self, data_dir: Path | None = None):
        """
        Initialize JsonFileStorage.

        Args:
            data_dir: Override data directory (for testing).
        """
        self.data_dir = Path(data_dir) if data_dir is not None else DATA_DIR

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def _ensure_dir(self) -> None:
        """Ensure data directory exists."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _lock(self) -> Iterator[None]:
        """Acquire exclusive lock on the data directory for writes."""
        self._ensure_dir()
        lock_path = self.data_dir / ".storefront.lock"
        with open(lock_path, "w") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def exists(self, key: str) -> bool:
        return self._path(key).exists()

    def get(self, key: str, default: Any = None) -> Any:
        """
        Load the value for key from disk.

        Raises:
            InvalidSchemaVersionError: If the file was written by an
                incompatible version.
        """
        path = self._path(key)
        if not path.exists():
            return default

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        version = data.get("schema_version", 0)
        if version != SCHEMA_VERSION:
            raise InvalidSchemaVersionError(key, version, SCHEMA_VERSION)

        return data.get("value", default)

    def set(self, key: str, value: Any) -> None:
        """
        Save the value for key atomically.

        Uses write-to-temp-then-rename for atomicity.
        """
        with self._lock():
            fd, temp_path = tempfile.mkstemp(
                dir=self.data_dir, prefix=f".{key}_", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump({"schema_version": SCHEMA_VERSION, "value": value}, f, indent=2)
                    f.write("\n")
                os.replace(temp_path, self._path(key))
            except Exception:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
                raise
        logger.debug("Saved %s to %s", key, self._path(key))

    def remove(self, key: str) -> None:
        with self._lock():
            try:
                self._path(key).unlink()
            except FileNotFoundError:
                return
        logger.debug("Removed %s", key)
