from __future__ import annotations

from typing import Protocol


class KeyValueBackend(Protocol):
    """Minimal key-value byte store the task storage writes through.

    Keep this tiny so local files, Redis or an in-memory dict can stand in
    for each other without touching callers. Implementations may raise on
    any fault; ``TaskStorage`` absorbs it.
    """

    def get(self, key: str) -> bytes | None:
        """Return the stored bytes for key, or None when absent."""

    def set(self, key: str, value: bytes) -> None:
        """Replace the value stored under key."""

    def delete(self, key: str) -> None:
        """Remove key. Deleting a missing key is not an error."""

    def ping(self) -> bool:
        """Cheap probe: True when the store can currently be used."""


__all__ = ["KeyValueBackend"]
