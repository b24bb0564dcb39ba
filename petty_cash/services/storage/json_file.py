"""
JSON File Storage Implementation

DESIGN DECISION: A local directory with one file per key is used as the
key-value backend because:
1. No database setup required
2. The stored document is plain JSON a person can open and read
3. os.replace gives an atomic overwrite on the same filesystem

TRADEOFFS:
- Single process only (no locking; last writer wins)
- Whole-value rewrites (we're fine: the collection is small)

The implementation follows the abstract interface, so we can swap to
another backend later without changing business logic.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog

from petty_cash.services.storage.interface import (
    KeyValueStorageInterface,
    StorageReadError,
    StorageWriteError,
)


logger = structlog.get_logger(__name__)


class JsonFileStorage(KeyValueStorageInterface):
    """
    File-backed key-value storage.

    Each key maps to `<data_dir>/<key>.json`.
    """

    def __init__(self, data_dir: Path):
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        """Map a key to its file, refusing keys that would escape data_dir."""
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        """Read a key. Missing file means the key was never written."""
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageReadError(f"Failed to read {key}: {e}") from e

    def set(self, key: str, value: str) -> None:
        """Write to a temp file in the same directory, then atomically replace."""
        path = self._path_for(key)
        tmp_name = None
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._data_dir,
                prefix=f".{key}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            logger.error("storage_write_failed", key=key, error=str(e))
            raise StorageWriteError(f"Failed to write {key}: {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.debug("storage_write", key=key, size=len(value))

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageWriteError(f"Failed to delete {key}: {e}") from e
