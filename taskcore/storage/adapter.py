from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from taskcore.models.task import Task
from taskcore.observability import get_json_logger, get_metrics
from taskcore.services.errors import ErrorHandler

from .interface import KeyValueBackend

STORAGE_KEY = "todo-app-todos"


class CorruptPayloadError(ValueError):
    """Stored value exists but is not a JSON array of task records."""


class BackendUnavailableError(RuntimeError):
    """A backend is configured but its health check failed."""


class UnloadedDataError(RuntimeError):
    """A write would replace stored tasks that were never read."""


@dataclass(frozen=True, slots=True)
class StorageHealth:
    available: bool
    has_error: bool


class TaskStorage:
    """Reads and writes the whole task collection under one key.

    Contract: no method raises. Any backend or decoding fault sets
    ``has_error`` (reported by ``health()`` until the next successful call),
    is reported once through the error handler and yields a safe default.

    With no backend at all every call is a silent no-op. A configured backend
    that fails its health check is a fault like any other. When ``load_all``
    could not read the stored value (backend down or read error), writes are
    refused while that value still holds tasks, so a store seeded empty never
    overwrites data it has not seen.
    """

    def __init__(
        self,
        backend: KeyValueBackend | None,
        errors: ErrorHandler | None = None,
        *,
        key: str = STORAGE_KEY,
    ) -> None:
        self._backend = backend
        self._errors = errors or ErrorHandler()
        self._key = key
        self._has_error = False
        self._load_pending = False

    @property
    def key(self) -> str:
        return self._key

    @property
    def load_pending(self) -> bool:
        """True after a load that could not read the stored value."""
        return self._load_pending

    def is_available(self) -> bool:
        if self._backend is None:
            return False
        try:
            return bool(self._backend.ping())
        except Exception:
            return False

    def health(self) -> StorageHealth:
        return StorageHealth(available=self.is_available(), has_error=self._has_error)

    def load_all(self) -> list[Task]:
        self._has_error = False
        if self._backend is None:
            return []
        if not self.is_available():
            self._load_pending = True
            self._fail("load", self._unavailable())
            return []
        try:
            raw = self._backend.get(self._key)
        except Exception as exc:
            self._load_pending = True
            self._fail("load", exc)
            return []
        self._load_pending = False
        try:
            if not raw:
                return []
            records = json.loads(raw.decode("utf-8") if isinstance(raw, bytes) else raw)
            if not isinstance(records, list):
                raise CorruptPayloadError(
                    f"expected a JSON array under {self._key!r}, got {type(records).__name__}"
                )
        except Exception as exc:
            # Unreadable payload: nothing recoverable to protect, later saves replace it.
            self._fail("load", exc)
            return []
        return self._decode_records(records)

    def save_all(self, tasks: Iterable[Task]) -> None:
        self._has_error = False
        backend = self._backend
        if backend is None:
            return
        if not self.is_available():
            self._fail("save", self._unavailable())
            return
        try:
            if self._load_pending:
                self._check_nothing_unloaded(backend)
            payload = json.dumps([t.to_record() for t in tasks], separators=(",", ":"))
            backend.set(self._key, payload.encode("utf-8"))
        except Exception as exc:
            self._fail("save", exc)
            return
        get_metrics().increment("storage_writes")

    def clear(self) -> None:
        self._has_error = False
        if self._backend is None:
            return
        if not self.is_available():
            self._fail("clear", self._unavailable())
            return
        try:
            self._backend.delete(self._key)
        except Exception as exc:
            self._fail("clear", exc)
            return
        self._load_pending = False

    def _check_nothing_unloaded(self, backend: KeyValueBackend) -> None:
        if backend.get(self._key):
            raise UnloadedDataError(
                f"{self._key!r} holds tasks that were never loaded; not overwriting"
            )
        self._load_pending = False

    def _unavailable(self) -> BackendUnavailableError:
        return BackendUnavailableError(f"{type(self._backend).__name__} is unavailable")

    def _decode_records(self, records: list[Any]) -> list[Task]:
        tasks: list[Task] = []
        skipped = 0
        for record in records:
            try:
                tasks.append(Task.model_validate(record))
            except ValidationError:
                skipped += 1
        if skipped:
            # Best effort: keep the records that still parse.
            self._fail("load", CorruptPayloadError(f"skipped {skipped} unreadable task record(s)"))
        return tasks

    def _fail(self, op: str, exc: BaseException) -> None:
        self._has_error = True
        get_metrics().increment("storage_errors", {"op": op})
        get_json_logger("taskcore.storage").debug(
            "storage fault", extra={"event": "storage_fault", "op": op, "key": self._key}
        )
        self._errors.handle(exc, f"TaskStorage.{op}")


__all__ = [
    "STORAGE_KEY",
    "BackendUnavailableError",
    "CorruptPayloadError",
    "StorageHealth",
    "TaskStorage",
    "UnloadedDataError",
]
