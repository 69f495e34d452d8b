from __future__ import annotations

import datetime as _dt
import uuid
from collections.abc import Callable, Iterable
from typing import Any

from taskcore.models.task import CreateRequest, Priority, Task, UpdateRequest
from taskcore.observability import get_json_logger, get_metrics

Clock = Callable[[], _dt.datetime]
Listener = Callable[[tuple[Task, ...]], None]

_TICK = _dt.timedelta(microseconds=1)


def utc_now() -> _dt.datetime:
    return _dt.datetime.now(_dt.UTC)


class TaskStore:
    """Canonical ordered collection of tasks.

    - Every mutation swaps in a new tuple snapshot; tasks themselves are frozen.
    - ``version`` increases by one per logical change and never otherwise.
    - Listeners get the new snapshot once per change; no-op calls emit nothing.
    """

    def __init__(self, *, clock: Clock | None = None) -> None:
        self._clock = clock or utc_now
        self._tasks: tuple[Task, ...] = ()
        self._version = 0
        self._loaded = False
        self._listeners: list[Listener] = []

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        return len(self._tasks)

    def load(self, initial: Iterable[Task]) -> None:
        if self._loaded:
            raise RuntimeError("TaskStore.load() may only be called once")
        self._loaded = True
        seen: set[str] = set()
        seeded: list[Task] = []
        for task in initial:
            if task.id in seen:
                continue
            seen.add(task.id)
            seeded.append(task)
        # Seeding is not a change: nothing new to persist or announce.
        self._tasks = tuple(seeded)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    # ----------------------------
    # Queries
    # ----------------------------
    def all(self) -> tuple[Task, ...]:
        return self._tasks

    def get_by_id(self, task_id: str) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    # ----------------------------
    # Mutations
    # ----------------------------
    def add(self, request: CreateRequest) -> Task:
        now = self._clock()
        task = Task(
            id=self._new_id(),
            title=request.title,
            description=request.description,
            completed=False,
            priority=request.priority or Priority.MEDIUM,
            due_date=request.due_date,
            tags=tuple(request.tags or ()),
            created_at=now,
            updated_at=now,
        )
        self._commit(self._tasks + (task,), "add", task.id)
        return task

    def update(self, task_id: str, request: UpdateRequest) -> Task | None:
        return self._apply(task_id, request.changes(), "update")

    def toggle(self, task_id: str) -> Task | None:
        current = self.get_by_id(task_id)
        if current is None:
            return None
        return self._apply(task_id, {"completed": not current.completed}, "toggle")

    def remove(self, task_id: str) -> bool:
        remaining = tuple(t for t in self._tasks if t.id != task_id)
        if len(remaining) == len(self._tasks):
            return False
        self._commit(remaining, "remove", task_id)
        return True

    def clear_completed(self) -> int:
        remaining = tuple(t for t in self._tasks if not t.completed)
        removed = len(self._tasks) - len(remaining)
        if removed:
            self._commit(remaining, "clear_completed", None)
        return removed

    # ----------------------------
    # Internals
    # ----------------------------
    def _new_id(self) -> str:
        existing = {t.id for t in self._tasks}
        while True:
            candidate = uuid.uuid4().hex
            if candidate not in existing:
                return candidate

    def _next_updated_at(self, previous: _dt.datetime) -> _dt.datetime:
        now = self._clock()
        return now if now > previous else previous + _TICK

    def _apply(self, task_id: str, changes: dict[str, Any], op: str) -> Task | None:
        for index, current in enumerate(self._tasks):
            if current.id == task_id:
                break
        else:
            return None
        update = dict(changes)
        update["updated_at"] = self._next_updated_at(current.updated_at)
        replacement = current.model_copy(update=update)
        tasks = list(self._tasks)
        tasks[index] = replacement
        self._commit(tuple(tasks), op, task_id)
        return replacement

    def _commit(self, tasks: tuple[Task, ...], op: str, task_id: str | None) -> None:
        self._tasks = tasks
        self._version += 1
        get_metrics().increment("task_mutations", {"op": op})
        logger = get_json_logger("taskcore.store")
        logger.debug(
            "task mutation",
            extra={"event": "task_mutation", "op": op, "task_id": task_id, "count": len(tasks)},
        )
        snapshot = self._tasks
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("store listener failed", extra={"event": "listener_failed", "op": op})


__all__ = ["Clock", "Listener", "TaskStore", "utc_now"]
