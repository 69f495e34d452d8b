from __future__ import annotations

import datetime as _dt
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from taskcore.feedback.manager import DEFAULT_SUCCESS_TTL_S

StorageKind = Literal["file", "redis", "none"]

_STORAGE_KINDS: tuple[StorageKind, ...] = ("file", "redis", "none")


@dataclass(frozen=True, slots=True)
class CoreConfig:
    storage: StorageKind
    data_dir: Path
    redis_url: str
    key_prefix: str
    success_ttl_s: float
    timezone: _dt.tzinfo | None


def _read_storage(raw: str | None) -> StorageKind:
    value = (raw or "").strip().lower()
    for kind in _STORAGE_KINDS:
        if value == kind:
            return kind
    return "file"


def _read_ttl(raw: str | None) -> float:
    try:
        value = float((raw or "").strip())
    except ValueError:
        return DEFAULT_SUCCESS_TTL_S
    # Reject nan, inf and non-positive values
    if not value > 0 or value == float("inf"):
        return DEFAULT_SUCCESS_TTL_S
    return value


def _read_timezone(raw: str | None) -> _dt.tzinfo | None:
    name = (raw or "").strip()
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        # Fall back to the process local zone
        return None


def load_config(env: dict[str, str] | None = None) -> CoreConfig:
    e: dict[str, Any] = dict(os.environ)
    if env:
        e.update(env)
    data_dir = (e.get("TASKCORE_DATA_DIR") or "").strip() or ".local/taskcore"
    return CoreConfig(
        storage=_read_storage(e.get("TASKCORE_STORAGE")),
        data_dir=Path(data_dir).expanduser(),
        redis_url=e.get("REDIS_URL") or "redis://localhost:6379/0",
        key_prefix=(e.get("TODO_STORE_PREFIX") or "todo").strip() or "todo",
        success_ttl_s=_read_ttl(e.get("TASKCORE_SUCCESS_TTL_S")),
        timezone=_read_timezone(e.get("TASKCORE_TIMEZONE")),
    )


__all__ = ["CoreConfig", "StorageKind", "load_config"]
