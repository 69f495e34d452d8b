from __future__ import annotations

import datetime as dt

import pytest
from pydantic import ValidationError

from taskcore.models.task import CreateRequest, Priority, Task, UpdateRequest

NOW = dt.datetime(2026, 3, 10, 12, 0, 0, tzinfo=dt.UTC)


def _task(**overrides: object) -> Task:
    data: dict[str, object] = {
        "id": "t1",
        "title": "Write tests",
        "created_at": NOW,
        "updated_at": NOW,
    }
    data.update(overrides)
    return Task(**data)  # type: ignore[arg-type]


def test_task_defaults() -> None:
    t = _task()
    assert t.completed is False
    assert t.priority is Priority.MEDIUM
    assert t.tags == ()
    assert t.due_date is None
    assert t.description is None


def test_task_is_frozen() -> None:
    t = _task()
    with pytest.raises(ValidationError):
        t.title = "changed"  # type: ignore[misc]


def test_record_uses_camel_case_and_omits_unset_due_date() -> None:
    rec = _task().to_record()
    assert "createdAt" in rec and "updatedAt" in rec
    assert "dueDate" not in rec
    assert "description" not in rec
    assert rec["priority"] == "medium"

    rec2 = _task(due_date=dt.date(2026, 12, 31)).to_record()
    assert rec2["dueDate"] == "2026-12-31"


def test_legacy_instant_due_date_reads_as_calendar_day() -> None:
    t = Task.model_validate(
        {
            "id": "a",
            "title": "x",
            "createdAt": "2024-01-01T10:00:00.000Z",
            "updatedAt": "2024-01-01T10:00:00.000Z",
            "dueDate": "2024-12-31T00:00:00.000Z",
        }
    )
    assert t.due_date == dt.date(2024, 12, 31)
    assert t.created_at == dt.datetime(2024, 1, 1, 10, 0, tzinfo=dt.UTC)


def test_naive_timestamps_read_as_utc() -> None:
    t = _task(created_at=dt.datetime(2026, 1, 1, 8, 0), updated_at=dt.datetime(2026, 1, 1, 8, 0))
    assert t.created_at.tzinfo is not None
    assert t.created_at.utcoffset() == dt.timedelta(0)


def test_is_overdue_ignores_completed() -> None:
    today = dt.date(2026, 3, 10)
    past = dt.date(2026, 3, 9)
    assert _task(due_date=past).is_overdue(today) is True
    assert _task(due_date=past, completed=True).is_overdue(today) is False
    assert _task(due_date=today).is_overdue(today) is False
    assert _task().is_overdue(today) is False


def test_create_request_rejects_unknown_fields_and_bad_priority() -> None:
    with pytest.raises(ValidationError):
        CreateRequest.model_validate({"title": "x", "id": "forced"})
    with pytest.raises(ValidationError):
        CreateRequest(title="x", priority="urgent")  # type: ignore[arg-type]


def test_update_request_changes_only_explicit_fields() -> None:
    assert UpdateRequest().changes() == {}
    assert UpdateRequest(title="New").changes() == {"title": "New"}
    # explicit None clears nullable fields but is ignored for the rest
    changes = UpdateRequest(due_date=None, completed=None, description=None).changes()
    assert changes == {"due_date": None, "description": None}


def test_update_request_accepts_camel_case_aliases() -> None:
    req = UpdateRequest.model_validate({"dueDate": "2026-04-01"})
    assert req.changes() == {"due_date": dt.date(2026, 4, 1)}
