from __future__ import annotations

import datetime as dt
from typing import Any

import pytest

from taskcore.feedback.manager import FeedbackManager
from taskcore.models.task import CreateRequest, Priority, UpdateRequest
from taskcore.services.confirmation import ConfirmationGateway
from taskcore.services.errors import ErrorHandler
from taskcore.services.task_service import CLEAR_COMPLETED_MESSAGE, TaskService
from taskcore.store.statistics import StatisticsEngine
from taskcore.store.task_store import TaskStore
from taskcore.store.views import FilterType
from taskcore.validation import rules
from tests.helpers.clock import FakeClock
from tests.helpers.scheduler import ManualScheduler


class _Prompt:
    def __init__(self) -> None:
        self.answer = True
        self.messages: list[str] = []

    def __call__(self, message: str) -> bool:
        self.messages.append(message)
        return self.answer


class _Sink:
    def __init__(self) -> None:
        self.lines: list[tuple[str, Any]] = []

    def __call__(self, label: str, message: Any) -> None:
        self.lines.append((label, message))


@pytest.fixture()
def prompt() -> _Prompt:
    return _Prompt()


@pytest.fixture()
def sink() -> _Sink:
    return _Sink()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def store(clock: FakeClock) -> TaskStore:
    s = TaskStore(clock=clock)
    s.load([])
    return s


@pytest.fixture()
def service(
    store: TaskStore,
    clock: FakeClock,
    prompt: _Prompt,
    sink: _Sink,
    scheduler: ManualScheduler,
) -> TaskService:
    errors = ErrorHandler(sink)
    return TaskService(
        store,
        StatisticsEngine(store, clock=clock, tz=dt.UTC),
        FeedbackManager(scheduler=scheduler),
        ConfirmationGateway(prompt, errors),
        errors,
    )


def test_add_task_success(service: TaskService, scheduler: ManualScheduler) -> None:
    result = service.add_task(CreateRequest(title="Buy milk", priority=Priority.HIGH))
    assert result.success is True
    assert result.task is not None
    assert service.tasks() == (result.task,)

    state = service.feedback()
    assert state.success_message == "Todo created successfully"
    assert state.error_message is None
    assert state.is_loading is False

    scheduler.advance(3.0)
    assert service.feedback().success_message is None


def test_add_task_rejects_blank_title(service: TaskService, sink: _Sink) -> None:
    result = service.add_task(CreateRequest(title="   "))
    assert result.success is False
    assert result.error == rules.TITLE_REQUIRED
    assert service.statistics().total == 0
    assert service.feedback().error_message == rules.TITLE_REQUIRED
    assert sink.lines == [("[TaskService.add_task] Validation Error:", rules.TITLE_REQUIRED)]


def test_add_task_uses_configured_today(service: TaskService, clock: FakeClock) -> None:
    today = clock.now.date()
    assert service.add_task(CreateRequest(title="t", due_date=today)).success
    past = service.add_task(CreateRequest(title="t", due_date=today - dt.timedelta(days=1)))
    assert past.error == rules.DUE_DATE_IN_PAST


def test_add_task_accepts_mapping(service: TaskService) -> None:
    result = service.add_task({"title": "From form", "dueDate": "2026-03-12", "tags": ["x"]})
    assert result.success is True
    assert result.task is not None
    assert result.task.due_date == dt.date(2026, 3, 12)


def test_add_task_mapping_with_bad_priority(service: TaskService, sink: _Sink) -> None:
    result = service.add_task({"title": "t", "priority": "urgent"})
    assert result.success is False
    assert result.error is not None and result.error.startswith("priority:")
    assert service.tasks() == ()
    assert sink.lines[0][0] == "[TaskService.add_task] Validation Error:"


def test_update_task(service: TaskService) -> None:
    created = service.add_task(CreateRequest(title="a", description="d")).task
    assert created is not None

    result = service.update_task(created.id, UpdateRequest(title="b", description=None))
    assert result.success is True
    assert result.task is not None
    assert result.task.title == "b"
    assert result.task.description is None
    assert service.feedback().success_message == "Todo updated successfully"


def test_update_task_invalid_leaves_task_alone(service: TaskService) -> None:
    created = service.add_task(CreateRequest(title="a")).task
    assert created is not None
    result = service.update_task(created.id, {"title": " "})
    assert result.error == rules.TITLE_REQUIRED
    assert service.tasks()[0] == created


def test_update_unknown_task(service: TaskService, sink: _Sink) -> None:
    result = service.update_task("missing", UpdateRequest(completed=True))
    assert result.success is False
    assert result.error == "Todo not found or could not be updated"
    assert sink.lines == [("[TaskService.update_task] Todo Not Found:", 'Todo with ID "missing" not found')]


def test_toggle_messages(service: TaskService) -> None:
    created = service.add_task(CreateRequest(title="a")).task
    assert created is not None

    assert service.toggle_task(created.id).task.completed is True  # type: ignore[union-attr]
    assert service.feedback().success_message == "Todo marked as completed"
    assert service.toggle_task(created.id).task.completed is False  # type: ignore[union-attr]
    assert service.feedback().success_message == "Todo marked as active"

    missing = service.toggle_task("nope")
    assert missing.error == "Todo not found or could not be toggled"
    assert service.feedback().success_message is None


def test_delete_confirmed(service: TaskService, prompt: _Prompt) -> None:
    created = service.add_task(CreateRequest(title="  Buy milk")).task
    assert created is not None

    result = service.delete_task(created.id)
    assert result.success is True
    assert result.confirmed is True
    assert result.removed == 1
    assert prompt.messages == ['Are you sure you want to delete "Buy milk"?']
    assert service.tasks() == ()
    assert service.feedback().success_message == "Todo deleted successfully"


def test_delete_cancelled(service: TaskService, prompt: _Prompt, sink: _Sink) -> None:
    created = service.add_task(CreateRequest(title="keep")).task
    assert created is not None
    prompt.answer = False

    result = service.delete_task(created.id)
    assert result.success is False
    assert result.confirmed is False
    assert service.tasks() == (created,)
    assert service.feedback().error_message is None
    assert service.feedback().success_message is None
    assert sink.lines == []


def test_delete_unknown(service: TaskService, prompt: _Prompt) -> None:
    result = service.delete_task("ghost")
    assert prompt.messages == ["Are you sure you want to delete this todo?"]
    assert result.success is False
    assert result.confirmed is True
    assert result.error == "Todo not found or could not be deleted"


def test_clear_completed(service: TaskService, prompt: _Prompt) -> None:
    ids = [service.add_task(CreateRequest(title=t)).task.id for t in "abc"]  # type: ignore[union-attr]
    service.toggle_task(ids[0])
    service.toggle_task(ids[2])

    result = service.clear_completed()
    assert prompt.messages == [CLEAR_COMPLETED_MESSAGE]
    assert result.removed == 2
    assert [t.title for t in service.tasks()] == ["b"]
    assert service.feedback().success_message == "Cleared 2 completed todos"


def test_clear_completed_with_nothing_done_skips_prompt(
    service: TaskService, prompt: _Prompt
) -> None:
    service.add_task(CreateRequest(title="a"))
    result = service.clear_completed()
    assert result.success is True
    assert result.removed == 0
    assert prompt.messages == []


def test_clear_completed_cancelled(service: TaskService, prompt: _Prompt) -> None:
    created = service.add_task(CreateRequest(title="a")).task
    assert created is not None
    service.toggle_task(created.id)
    prompt.answer = False

    result = service.clear_completed()
    assert result.confirmed is False
    assert len(service.tasks()) == 1


def test_unexpected_fault_becomes_failure(
    service: TaskService, store: TaskStore, sink: _Sink, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _explode(_request: CreateRequest) -> None:
        raise RuntimeError("boom")

    monkeypatch.setattr(store, "add", _explode)
    result = service.add_task(CreateRequest(title="a"))
    assert result.success is False
    assert result.error == "Failed to create todo. Please try again."
    assert service.feedback().is_loading is False
    assert sink.lines == [("[TaskService.add_task] Error:", "RuntimeError: boom")]


def test_visible_tasks_follow_view(service: TaskService, clock: FakeClock) -> None:
    first = service.add_task(CreateRequest(title="first")).task
    clock.advance(seconds=1)
    second = service.add_task(CreateRequest(title="second")).task
    assert first is not None and second is not None
    service.toggle_task(first.id)

    assert service.visible_tasks() == list(reversed(service.tasks()))
    service.view.set_filter(FilterType.ACTIVE)
    assert [t.id for t in service.visible_tasks()] == [second.id]


def test_statistics_reflect_commands(service: TaskService, clock: FakeClock) -> None:
    created = service.add_task(
        CreateRequest(title="a", due_date=clock.now.date(), priority=Priority.LOW)
    ).task
    assert created is not None
    service.add_task(CreateRequest(title="b"))

    stats = service.statistics()
    assert (stats.total, stats.pending, stats.overdue) == (2, 2, 0)
    assert stats.by_priority.low == 1
    assert stats.by_priority.medium == 1

    clock.advance(days=1)
    assert service.statistics().overdue == 1
