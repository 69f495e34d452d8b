from __future__ import annotations

import datetime as _dt
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.LOW: 1, Priority.MEDIUM: 2, Priority.HIGH: 3}


def _coerce_calendar_day(value: Any) -> Any:
    # Older records stored the due date as a full instant ("2024-12-31T00:00:00.000Z").
    if isinstance(value, _dt.datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            return _dt.datetime.fromisoformat(raw).date()
        except ValueError:
            return value
    return value


def _as_utc(value: _dt.datetime) -> _dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=_dt.UTC)
    return value.astimezone(_dt.UTC)


class Task(BaseModel):
    """A single to-do item.

    Instances are frozen: the store replaces a task with ``model_copy`` on every
    change, so a snapshot handed out earlier never changes under its holder.
    Field aliases are camelCase to match the persisted record.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    id: str
    title: str
    description: str | None = None
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    due_date: _dt.date | None = None
    tags: tuple[str, ...] = ()
    created_at: _dt.datetime
    updated_at: _dt.datetime

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date_from_legacy(cls, value: Any) -> Any:
        return _coerce_calendar_day(value)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _timestamps_are_utc(cls, value: _dt.datetime) -> _dt.datetime:
        return _as_utc(value)

    def is_overdue(self, today: _dt.date) -> bool:
        """True when pending and the due day ended before ``today`` began."""
        if self.completed or self.due_date is None:
            return False
        return self.due_date < today

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="forbid")

    title: str
    description: str | None = None
    priority: Priority | None = None
    due_date: _dt.date | None = None
    tags: list[str] | None = None

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date_from_legacy(cls, value: Any) -> Any:
        return _coerce_calendar_day(value)


class UpdateRequest(BaseModel):
    """Partial update. Only fields explicitly set are applied.

    ``description`` and ``due_date`` may be explicitly set to ``None`` to clear
    them; ``None`` for any other field is ignored.
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="forbid")

    title: str | None = None
    description: str | None = None
    completed: bool | None = None
    priority: Priority | None = None
    due_date: _dt.date | None = None
    tags: list[str] | None = None

    @field_validator("due_date", mode="before")
    @classmethod
    def _due_date_from_legacy(cls, value: Any) -> Any:
        return _coerce_calendar_day(value)

    def changes(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None and name not in _CLEARABLE_FIELDS:
                continue
            out[name] = tuple(value) if name == "tags" else value
        return out


_CLEARABLE_FIELDS = frozenset({"description", "due_date"})


class PriorityCounts(BaseModel):
    model_config = ConfigDict(frozen=True)

    low: int = 0
    medium: int = 0
    high: int = 0


class Statistics(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = 0
    completed: int = 0
    pending: int = 0
    overdue: int = 0
    by_priority: PriorityCounts = Field(default_factory=PriorityCounts)


__all__ = [
    "Priority",
    "Task",
    "CreateRequest",
    "UpdateRequest",
    "PriorityCounts",
    "Statistics",
]
