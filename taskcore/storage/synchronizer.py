from __future__ import annotations

from taskcore.models.task import Task
from taskcore.observability import get_json_logger, get_metrics
from taskcore.scheduling import Handle, Scheduler, resolve_scheduler
from taskcore.store.task_store import TaskStore

from .adapter import TaskStorage


class PersistenceSynchronizer:
    """Write-through from a ``TaskStore`` to ``TaskStorage``, off the call path.

    - A store change schedules one write on the next loop turn (``call_soon``).
    - Changes arriving before that write fires join it; the write always
      stores the store's *current* snapshot.
    - With no event loop to defer to, the write happens inline.
    """

    def __init__(
        self,
        store: TaskStore,
        storage: TaskStorage,
        *,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._store = store
        self._storage = storage
        self._scheduler = scheduler
        self._pending: Handle | None = None
        self._closed = False
        self._unsubscribe = store.subscribe(self._on_change)

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def _on_change(self, _snapshot: tuple[Task, ...]) -> None:
        if self._closed:
            return
        if self._pending is not None:
            get_metrics().increment("storage_writes_coalesced")
            return
        scheduler = resolve_scheduler(self._scheduler)
        if scheduler is None:
            get_json_logger("taskcore.storage").debug(
                "no event loop; writing inline", extra={"event": "storage_write_inline"}
            )
            self._write()
            return
        self._pending = scheduler.call_soon(self._run_pending)

    def _run_pending(self) -> None:
        self._pending = None
        self._write()

    def _write(self) -> None:
        try:
            self._storage.save_all(self._store.all())
        except Exception:
            # TaskStorage never raises; this guards the loop against a broken subclass.
            get_json_logger("taskcore.storage").exception(
                "storage write failed", extra={"event": "storage_write_failed"}
            )

    def flush(self) -> None:
        """Cancel any scheduled write and persist the current snapshot now."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._write()

    def close(self) -> None:
        if self._closed:
            return
        if self._pending is not None:
            self.flush()
        self._closed = True
        self._unsubscribe()


__all__ = ["PersistenceSynchronizer"]
