from __future__ import annotations

from collections.abc import Callable

from .errors import ErrorHandler

DEFAULT_DELETE_MESSAGE = "Are you sure you want to delete this item?"
DEFAULT_TASK_DELETE_MESSAGE = "Are you sure you want to delete this todo?"

ConfirmationPrompt = Callable[[str], bool]


def task_delete_message(title: str | None) -> str:
    if not isinstance(title, str) or not title.strip():
        return DEFAULT_TASK_DELETE_MESSAGE
    return f'Are you sure you want to delete "{title.strip()}"?'


class ConfirmationGateway:
    """Yes/no gate in front of destructive commands.

    The prompt is any ``Callable[[str], bool]``. A missing prompt, or one that
    raises, counts as "not confirmed".
    """

    def __init__(self, prompt: ConfirmationPrompt | None, errors: ErrorHandler | None = None) -> None:
        self._prompt = prompt
        self._errors = errors or ErrorHandler()

    def confirm(self, message: str | None = None) -> bool:
        if not isinstance(message, str) or not message.strip():
            message = DEFAULT_DELETE_MESSAGE
        return self._ask(message)

    def confirm_delete_task(self, title: str | None = None) -> bool:
        return self._ask(task_delete_message(title))

    def _ask(self, message: str) -> bool:
        if self._prompt is None or not callable(self._prompt):
            return False
        try:
            return bool(self._prompt(message))
        except Exception as exc:  # noqa: BLE001
            self._errors.handle(exc, "ConfirmationGateway")
            return False


__all__ = [
    "ConfirmationGateway",
    "ConfirmationPrompt",
    "DEFAULT_DELETE_MESSAGE",
    "DEFAULT_TASK_DELETE_MESSAGE",
    "task_delete_message",
]
