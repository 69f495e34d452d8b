from __future__ import annotations

import datetime as _dt
from collections.abc import Callable, Iterable

from taskcore.models.task import Priority, PriorityCounts, Statistics, Task

from .task_store import Clock, TaskStore, utc_now


def local_day(now: _dt.datetime, tz: _dt.tzinfo | None = None) -> _dt.date:
    """Calendar day of ``now`` in ``tz`` (the process local zone when None)."""
    return now.astimezone(tz).date()


def compute_statistics(tasks: Iterable[Task], today: _dt.date) -> Statistics:
    total = completed = overdue = 0
    by_priority = dict.fromkeys(Priority, 0)
    for task in tasks:
        total += 1
        by_priority[task.priority] += 1
        if task.completed:
            completed += 1
        elif task.is_overdue(today):
            overdue += 1
    return Statistics(
        total=total,
        completed=completed,
        pending=total - completed,
        overdue=overdue,
        by_priority=PriorityCounts(
            low=by_priority[Priority.LOW],
            medium=by_priority[Priority.MEDIUM],
            high=by_priority[Priority.HIGH],
        ),
    )


class StatisticsEngine:
    """Memoized statistics over a ``TaskStore``.

    Overdue status only changes when the collection changes or the calendar
    day rolls over, so the cache is keyed on ``(store.version, today)``.
    """

    def __init__(
        self,
        store: TaskStore,
        *,
        clock: Clock | None = None,
        tz: _dt.tzinfo | None = None,
    ) -> None:
        self._store = store
        self._clock: Callable[[], _dt.datetime] = clock or utc_now
        self._tz = tz
        self._cache_key: tuple[int, _dt.date] | None = None
        self._cached: Statistics | None = None
        self.computations = 0

    def today(self) -> _dt.date:
        return local_day(self._clock(), self._tz)

    def statistics(self) -> Statistics:
        key = (self._store.version, self.today())
        if self._cached is None or key != self._cache_key:
            self._cached = compute_statistics(self._store.all(), key[1])
            self._cache_key = key
            self.computations += 1
        return self._cached


__all__ = ["StatisticsEngine", "compute_statistics", "local_day"]
