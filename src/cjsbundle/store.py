"""Content-addressable byte stores for minted bundles and URL caches."""

from __future__ import annotations

import hashlib
import logging
import re
import threading
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Protocol, runtime_checkable

from .errors import StoreError

LOGGER = logging.getLogger(__name__)
HASH_LENGTH = 7
_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


def content_key(data: bytes, length: int = HASH_LENGTH) -> str:
    """Return the truncated SHA-256 hex digest used as a bundle key.

    Collisions are not checked; the key only addresses cached content.
    """

    return hashlib.sha256(data).hexdigest()[:length]


@runtime_checkable
class ByteStore(Protocol):
    """Key/value storage for raw bytes.

    Implementations raise :class:`StoreError` on failure and return ``None``
    for missing keys.
    """

    def store(self, key: str, data: bytes) -> None:
        """Insert or replace ``key``."""

    def get(self, key: str) -> bytes | None:
        """Return the stored bytes, or None when absent."""


class MemoryStore:
    """Process-local store guarded by a lock."""

    def __init__(self) -> None:
        self._entries: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def store(self, key: str, data: bytes) -> None:
        with self._lock:
            self._entries[key] = bytes(data)

    def get(self, key: str) -> bytes | None:
        with self._lock:
            return self._entries.get(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries


class DiskStore:
    """One file per key under ``root_dir``, written atomically."""

    def __init__(self, root_dir: Path | str) -> None:
        self.root_dir = Path(root_dir).expanduser()

    def store(self, key: str, data: bytes) -> None:
        target = self._path(key)

        def _write(tmp_path: Path) -> None:
            tmp_path.write_bytes(data)

        try:
            self._atomic_write(target, _write)
        except OSError as exc:
            raise StoreError(f"failed to write '{key}' to {target}: {exc}") from exc

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreError(f"failed to read '{key}' from {path}: {exc}") from exc

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key) or key.startswith("."):
            raise StoreError(f"invalid store key: {key!r}")
        return self.root_dir / key

    def _atomic_write(self, target: Path, writer: Callable[[Path], None]) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp_name = f".{target.name}.{uuid.uuid4().hex}.tmp"
        tmp_path = target.with_name(tmp_name)
        try:
            writer(tmp_path)
            tmp_path.replace(target)
        finally:
            if tmp_path.exists():
                tmp_path.unlink(missing_ok=True)

    def __repr__(self) -> str:
        return f"DiskStore({str(self.root_dir)!r})"


__all__ = ["ByteStore", "DiskStore", "HASH_LENGTH", "MemoryStore", "content_key"]
