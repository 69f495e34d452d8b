from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum

from taskcore.models.task import Task


class FilterType(StrEnum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


class SortKey(StrEnum):
    DATE = "date"
    PRIORITY = "priority"
    TITLE = "title"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"


def filter_tasks(tasks: Iterable[Task], filter_type: FilterType) -> list[Task]:
    if filter_type == FilterType.ACTIVE:
        return [t for t in tasks if not t.completed]
    if filter_type == FilterType.COMPLETED:
        return [t for t in tasks if t.completed]
    return list(tasks)


def sort_tasks(tasks: Iterable[Task], key: SortKey, order: SortOrder) -> list[Task]:
    if key == SortKey.PRIORITY:
        sort_key = lambda t: t.priority.rank  # noqa: E731
    elif key == SortKey.TITLE:
        sort_key = lambda t: t.title.casefold()  # noqa: E731
    else:
        sort_key = lambda t: t.created_at  # noqa: E731
    return sorted(tasks, key=sort_key, reverse=order == SortOrder.DESC)


class TaskView:
    """Filter and sort state for what the renderer shows."""

    def __init__(
        self,
        filter_type: FilterType = FilterType.ALL,
        sort_key: SortKey = SortKey.DATE,
        sort_order: SortOrder = SortOrder.DESC,
    ) -> None:
        self.filter_type = FilterType(filter_type)
        self.sort_key = SortKey(sort_key)
        self.sort_order = SortOrder(sort_order)

    def set_filter(self, filter_type: FilterType | str) -> None:
        self.filter_type = FilterType(filter_type)

    def show_all(self) -> None:
        self.set_filter(FilterType.ALL)

    def show_active(self) -> None:
        self.set_filter(FilterType.ACTIVE)

    def show_completed(self) -> None:
        self.set_filter(FilterType.COMPLETED)

    def set_sort_key(self, key: SortKey | str) -> None:
        self.sort_key = SortKey(key)

    def set_sort_order(self, order: SortOrder | str) -> None:
        self.sort_order = SortOrder(order)

    def toggle_sort_order(self) -> None:
        self.sort_order = SortOrder.ASC if self.sort_order == SortOrder.DESC else SortOrder.DESC

    def apply(self, tasks: Iterable[Task]) -> list[Task]:
        return sort_tasks(filter_tasks(tasks, self.filter_type), self.sort_key, self.sort_order)


__all__ = ["FilterType", "SortKey", "SortOrder", "TaskView", "filter_tasks", "sort_tasks"]
