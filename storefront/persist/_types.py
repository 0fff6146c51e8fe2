"""
Storage types.
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

# ═══════════════════════════════════════════════════════════════════════════════
# Storage Protocol — Users Implement This
# ═══════════════════════════════════════════════════════════════════════════════


class Storage(Protocol):
    """
    Synchronous key-value storage for serialized snapshots.

    Synchronous on purpose: hydration must finish before the first remote
    fetch is scheduled.

    Example:
        class KeyringStorage:
            @property
            def name(self) -> str:
                return "keyring"

            def get(self, key: str) -> str | None:
                return keyring.get_password("storefront", key)

            def set(self, key: str, value: str) -> None:
                keyring.set_password("storefront", key, value)

            def delete(self, key: str) -> bool:
                try:
                    keyring.delete_password("storefront", key)
                    return True
                except keyring.errors.PasswordDeleteError:
                    return False
    """

    @property
    def name(self) -> str:
        """Storage name for logs."""
        ...

    def get(self, key: str) -> str | None:
        """Get raw value. Returns None on miss."""
        ...

    def set(self, key: str, value: str) -> None:
        """Set raw value."""
        ...

    def delete(self, key: str) -> bool:
        """Delete key. Returns True if existed."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Storage
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryStorage:
    """
    In-process storage.

    Example:
        storage = MemoryStorage()
        cache = CartCache(storage)
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    @property
    def name(self) -> str:
        return "memory"

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._data)


# ═══════════════════════════════════════════════════════════════════════════════
# File Storage — Local Device Store
# ═══════════════════════════════════════════════════════════════════════════════

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileStorage:
    """
    One file per key under `directory`.

    Writes go through a temp file + os.replace so a crash never leaves a
    half-written snapshot behind.

    Example:
        storage = FileStorage(settings.storage_dir)
    """

    def __init__(self, directory: Path | str, suffix: str = ".json") -> None:
        self._dir = Path(directory).expanduser()
        self._suffix = suffix

    @property
    def name(self) -> str:
        return f"file:{self._dir}"

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._dir / f"{key}{self._suffix}"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        self._dir.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("Storage", "MemoryStorage", "FileStorage")
