"""
Blob Store Implementations

DESIGN DECISION: A local JSON file per key is the default backend because:
1. The tracker is single-user and local, like browser storage
2. No database setup required
3. The file is human-readable and easy to back up

TRADEOFFS:
- Every save rewrites the whole file (fine for a personal dataset)
- No indexing (the record store filters in Python)
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

from smartshop.services.storage.interface import (
    BlobStoreInterface,
    ConnectionError,
    StorageError,
)


class InMemoryBlobStore(BlobStoreInterface):
    """Dict-backed store. Used in tests and when no data directory is usable."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._blobs: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    def set(self, key: str, value: str) -> None:
        self._blobs[key] = value

    def delete(self, key: str) -> None:
        self._blobs.pop(key, None)


class JsonFileBlobStore(BlobStoreInterface):
    """
    One file per key under a data directory.

    Writes go to a temporary file in the same directory and are moved
    into place with os.replace, so readers see either the old or the
    new blob, never a half-written one.
    """

    SUFFIX = ".json"

    def __init__(self, data_dir: Path | str):
        self._data_dir = Path(data_dir).expanduser()
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConnectionError(
                f"Cannot use data directory {self._data_dir}: {e}"
            ) from e

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}{self.SUFFIX}"

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.",
            suffix=".tmp",
            dir=self._data_dir,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(value)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise StorageError(f"Failed to write {path}: {e}") from e

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError(f"Failed to delete {path}: {e}") from e
