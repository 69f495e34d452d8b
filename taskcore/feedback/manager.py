from __future__ import annotations

from collections.abc import Callable

from taskcore.models.results import FeedbackState
from taskcore.observability import get_json_logger
from taskcore.scheduling import Handle, Scheduler, resolve_scheduler

DEFAULT_SUCCESS_TTL_S = 3.0

FeedbackListener = Callable[[FeedbackState], None]


class FeedbackManager:
    """Transient user feedback: one error, one success message, a loading flag.

    Error and success exclude each other. A success message expires after
    ``success_ttl`` seconds; at most one expiry timer is live at a time, and
    any call that replaces or clears the success message cancels it.
    """

    def __init__(
        self,
        *,
        success_ttl: float = DEFAULT_SUCCESS_TTL_S,
        scheduler: Scheduler | None = None,
        on_change: FeedbackListener | None = None,
    ) -> None:
        if success_ttl <= 0:
            raise ValueError("success_ttl must be positive")
        self._ttl = success_ttl
        self._scheduler = scheduler
        self._on_change = on_change
        self._error: str | None = None
        self._success: str | None = None
        self._loading = False
        self._timer: Handle | None = None
        self._closed = False

    @property
    def error_message(self) -> str | None:
        return self._error

    @property
    def success_message(self) -> str | None:
        return self._success

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def has_pending_expiry(self) -> bool:
        return self._timer is not None

    def state(self) -> FeedbackState:
        return FeedbackState(
            error_message=self._error,
            success_message=self._success,
            is_loading=self._loading,
        )

    def set_error(self, message: str) -> None:
        self._cancel_timer()
        self._error = message
        self._success = None
        self._notify()

    def set_success(self, message: str) -> None:
        self._cancel_timer()
        self._success = message
        self._error = None
        if not self._closed:
            self._start_timer()
        self._notify()

    def set_loading(self, loading: bool) -> None:
        self._loading = bool(loading)
        self._notify()

    def clear(self) -> None:
        self._cancel_timer()
        self._error = None
        self._success = None
        self._notify()

    def close(self) -> None:
        self._cancel_timer()
        self._closed = True

    def _start_timer(self) -> None:
        scheduler = resolve_scheduler(self._scheduler)
        if scheduler is None:
            get_json_logger("taskcore.feedback").debug(
                "no event loop; success message will not expire",
                extra={"event": "feedback_no_timer"},
            )
            return
        self._timer = scheduler.call_later(self._ttl, self._expire)

    def _expire(self) -> None:
        try:
            self._timer = None
            if self._closed:
                return
            self._success = None
            self._notify()
        except Exception:
            get_json_logger("taskcore.feedback").exception(
                "success expiry failed", extra={"event": "feedback_expiry_failed"}
            )

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(self.state())
        except Exception:
            get_json_logger("taskcore.feedback").exception(
                "feedback listener failed", extra={"event": "listener_failed"}
            )


__all__ = ["DEFAULT_SUCCESS_TTL_S", "FeedbackListener", "FeedbackManager"]
