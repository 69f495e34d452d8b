from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from taskcore.feedback.manager import FeedbackManager
from taskcore.models.results import CommandResult, DeleteResult, FeedbackState
from taskcore.models.task import CreateRequest, Statistics, Task, UpdateRequest
from taskcore.store.statistics import StatisticsEngine
from taskcore.store.task_store import TaskStore
from taskcore.store.views import TaskView
from taskcore.validation.rules import validate_create, validate_update

from .confirmation import ConfirmationGateway
from .errors import ErrorHandler

CLEAR_COMPLETED_MESSAGE = "Are you sure you want to clear all completed todos?"

_M = TypeVar("_M", bound=BaseModel)


def _coerce(model: type[_M], request: _M | Mapping[str, Any]) -> _M:
    if isinstance(request, model):
        return request
    return model.model_validate(request)


def _describe_validation_error(exc: ValidationError) -> list[str]:
    messages: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = str(err.get("msg", "invalid value"))
        messages.append(f"{loc}: {msg}" if loc else msg)
    return messages or ["Invalid request"]


class TaskService:
    """Commands the renderer dispatches, with feedback and error routing.

    Every command clears old messages, flips the loading flag around the
    work, and ends with exactly one success or error message (or none, when
    the user cancels a confirmation). Nothing raised underneath escapes.
    """

    def __init__(
        self,
        store: TaskStore,
        statistics: StatisticsEngine,
        feedback: FeedbackManager,
        confirmation: ConfirmationGateway,
        errors: ErrorHandler,
        *,
        view: TaskView | None = None,
    ) -> None:
        self._store = store
        self._statistics = statistics
        self._feedback = feedback
        self._confirmation = confirmation
        self._errors = errors
        self.view = view or TaskView()

    # ----------------------------
    # Reads
    # ----------------------------
    def tasks(self) -> tuple[Task, ...]:
        return self._store.all()

    def visible_tasks(self) -> list[Task]:
        return self.view.apply(self._store.all())

    def statistics(self) -> Statistics:
        return self._statistics.statistics()

    def feedback(self) -> FeedbackState:
        return self._feedback.state()

    # ----------------------------
    # Commands
    # ----------------------------
    def add_task(self, request: CreateRequest | Mapping[str, Any]) -> CommandResult:
        context = "TaskService.add_task"
        self._begin()
        try:
            try:
                req = _coerce(CreateRequest, request)
            except ValidationError as exc:
                return self._invalid(_describe_validation_error(exc), context)
            result = validate_create(req, today=self._statistics.today())
            if not result.valid:
                return self._invalid(result.errors, context)
            task = self._store.add(req)
            self._feedback.set_success("Todo created successfully")
            return CommandResult(success=True, task=task)
        except Exception as exc:
            return self._failed(exc, context, "Failed to create todo. Please try again.")
        finally:
            self._feedback.set_loading(False)

    def update_task(
        self, task_id: str, request: UpdateRequest | Mapping[str, Any]
    ) -> CommandResult:
        context = "TaskService.update_task"
        self._begin()
        try:
            try:
                req = _coerce(UpdateRequest, request)
            except ValidationError as exc:
                return self._invalid(_describe_validation_error(exc), context)
            result = validate_update(req, today=self._statistics.today())
            if not result.valid:
                return self._invalid(result.errors, context)
            task = self._store.update(task_id, req)
            if task is None:
                return self._not_found(task_id, context, "updated")
            self._feedback.set_success("Todo updated successfully")
            return CommandResult(success=True, task=task)
        except Exception as exc:
            return self._failed(exc, context, "Failed to update todo. Please try again.")
        finally:
            self._feedback.set_loading(False)

    def toggle_task(self, task_id: str) -> CommandResult:
        context = "TaskService.toggle_task"
        self._begin()
        try:
            task = self._store.toggle(task_id)
            if task is None:
                return self._not_found(task_id, context, "toggled")
            self._feedback.set_success(
                "Todo marked as completed" if task.completed else "Todo marked as active"
            )
            return CommandResult(success=True, task=task)
        except Exception as exc:
            return self._failed(exc, context, "Failed to toggle todo. Please try again.")
        finally:
            self._feedback.set_loading(False)

    def delete_task(self, task_id: str) -> DeleteResult:
        context = "TaskService.delete_task"
        self._begin()
        try:
            existing = self._store.get_by_id(task_id)
            title = existing.title if existing is not None else None
            if not self._confirmation.confirm_delete_task(title):
                # Cancelling is not an error: leave no message behind.
                self._feedback.clear()
                return DeleteResult(success=False, confirmed=False)
            if not self._store.remove(task_id):
                error = self._not_found(task_id, context, "deleted").error
                return DeleteResult(success=False, confirmed=True, error=error)
            self._feedback.set_success("Todo deleted successfully")
            return DeleteResult(success=True, confirmed=True, removed=1)
        except Exception as exc:
            error = self._failed(exc, context, "Failed to delete todo. Please try again.").error
            return DeleteResult(success=False, confirmed=True, error=error)
        finally:
            self._feedback.set_loading(False)

    def clear_completed(self) -> DeleteResult:
        context = "TaskService.clear_completed"
        self._begin()
        try:
            if not any(t.completed for t in self._store.all()):
                return DeleteResult(success=True, confirmed=True, removed=0)
            if not self._confirmation.confirm(CLEAR_COMPLETED_MESSAGE):
                self._feedback.clear()
                return DeleteResult(success=False, confirmed=False)
            removed = self._store.clear_completed()
            noun = "todo" if removed == 1 else "todos"
            self._feedback.set_success(f"Cleared {removed} completed {noun}")
            return DeleteResult(success=True, confirmed=True, removed=removed)
        except Exception as exc:
            error = self._failed(exc, context, "Failed to clear completed todos. Please try again.").error
            return DeleteResult(success=False, confirmed=True, error=error)
        finally:
            self._feedback.set_loading(False)

    # ----------------------------
    # Outcome helpers
    # ----------------------------
    def _begin(self) -> None:
        self._feedback.clear()
        self._feedback.set_loading(True)

    def _invalid(self, errors: list[str], context: str) -> CommandResult:
        self._errors.handle_validation(errors, context)
        self._feedback.set_error(errors[0])
        return CommandResult(success=False, error=errors[0], errors=list(errors))

    def _not_found(self, task_id: str, context: str, verb: str) -> CommandResult:
        self._errors.handle_not_found(task_id, context)
        message = f"Todo not found or could not be {verb}"
        self._feedback.set_error(message)
        return CommandResult(success=False, error=message)

    def _failed(self, exc: Exception, context: str, message: str) -> CommandResult:
        self._errors.handle(exc, context)
        self._feedback.set_error(message)
        return CommandResult(success=False, error=message)


__all__ = ["CLEAR_COMPLETED_MESSAGE", "TaskService"]
