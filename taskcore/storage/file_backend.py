from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path

from .interface import KeyValueBackend

_SAFE_KEY = re.compile(r"[^A-Za-z0-9._-]")


class FileKeyValueBackend(KeyValueBackend):
    """Local key-value store: one file per key under ``directory``.

    Writes go to a temp file in the same directory and are swapped in with
    ``os.replace`` so a reader never sees a half-written value.
    """

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._dir

    def _path(self, key: str) -> Path:
        if not key:
            raise ValueError("key must be non-empty")
        return self._dir / f"{_SAFE_KEY.sub('_', key)}.json"

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def set(self, key: str, value: bytes) -> None:
        path = self._path(key)
        self._dir.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._dir, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(value)
            os.replace(tmp, path)
        except BaseException:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass

    def ping(self) -> bool:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return os.access(self._dir, os.W_OK)


__all__ = ["FileKeyValueBackend"]
