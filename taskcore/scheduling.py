from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, Protocol


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """The slice of ``asyncio.AbstractEventLoop`` the core schedules through.

    Any object with these two methods works, which lets tests drive time by
    hand instead of sleeping.
    """

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> Handle: ...

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> Handle: ...


def resolve_scheduler(scheduler: Scheduler | None) -> Scheduler | None:
    """Return ``scheduler``, else the running event loop, else None."""
    if scheduler is not None:
        return scheduler
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


__all__ = ["Handle", "Scheduler", "resolve_scheduler"]
