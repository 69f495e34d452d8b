from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from taskcore.observability import get_json_logger, get_metrics

DEFAULT_CONTEXT = "Unknown Context"
UNKNOWN_ERROR = "Unknown error occurred"
UNKNOWN_VALIDATION_ERROR = "Unknown validation error"
GENERIC_NOT_FOUND = "Todo not found"

DiagnosticSink = Callable[[str, Any], None]


def _normalize_context(context: Any) -> str:
    if not isinstance(context, str) or not context.strip():
        return DEFAULT_CONTEXT
    return context.strip()


def _normalize_error(error: Any) -> str:
    if error is None:
        return UNKNOWN_ERROR
    if isinstance(error, BaseException):
        text = str(error).strip()
        name = type(error).__name__
        return f"{name}: {text}" if text else name
    text = str(error).strip()
    return text or UNKNOWN_ERROR


def _normalize_validation(messages: Any) -> str:
    if isinstance(messages, str) or not isinstance(messages, Iterable):
        return UNKNOWN_VALIDATION_ERROR
    valid = [m.strip() for m in messages if isinstance(m, str) and m.strip()]
    return "; ".join(valid) if valid else UNKNOWN_VALIDATION_ERROR


def _normalize_not_found(task_id: Any) -> str:
    if not isinstance(task_id, str) or not task_id.strip():
        return GENERIC_NOT_FOUND
    return f'Todo with ID "{task_id.strip()}" not found'


class ErrorHandler:
    """Turns raw failures into one structured diagnostic line each.

    Three kinds are recognised: general errors, validation failures and
    not-found lookups. Output goes to ``sink(label, message)`` when one is
    given, otherwise to the ``taskcore.errors`` JSON logger. Nothing raised
    while logging ever reaches the caller.
    """

    def __init__(
        self,
        sink: DiagnosticSink | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._sink = sink
        self._logger = logger

    def handle(self, error: Any, context: str | None) -> None:
        try:
            ctx = _normalize_context(context)
            message = _normalize_error(error)
            exc = error if isinstance(error, BaseException) else None
            self._emit(ctx, "Error", "error", message, exc=exc)
        except Exception:
            pass

    def handle_validation(self, messages: Iterable[str] | None, context: str | None) -> None:
        try:
            ctx = _normalize_context(context)
            self._emit(ctx, "Validation Error", "validation_error", _normalize_validation(messages))
        except Exception:
            pass

    def handle_not_found(self, task_id: str | None, context: str | None) -> None:
        try:
            ctx = _normalize_context(context)
            self._emit(ctx, "Todo Not Found", "not_found", _normalize_not_found(task_id))
        except Exception:
            pass

    def _emit(
        self,
        context: str,
        kind: str,
        event: str,
        message: str,
        *,
        exc: BaseException | None = None,
    ) -> None:
        get_metrics().increment("errors_handled", {"kind": event})
        label = f"[{context}] {kind}:"
        if self._sink is not None:
            self._sink(label, message)
            return
        logger = self._logger or get_json_logger("taskcore.errors")
        logger.error(
            "%s %s",
            label,
            message,
            exc_info=(type(exc), exc, exc.__traceback__) if exc is not None else None,
            extra={"event": event, "context": context, "kind": kind},
        )


__all__ = [
    "DEFAULT_CONTEXT",
    "UNKNOWN_ERROR",
    "UNKNOWN_VALIDATION_ERROR",
    "GENERIC_NOT_FOUND",
    "DiagnosticSink",
    "ErrorHandler",
]
