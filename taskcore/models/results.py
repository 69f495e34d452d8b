from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .task import Task


class ValidationResult(BaseModel):
    """Outcome of a validation pass. ``errors`` is ordered and empty iff valid."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> ValidationResult:
        return cls(valid=not errors, errors=list(errors))


class CommandResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    task: Task | None = None
    error: str | None = None
    errors: list[str] = Field(default_factory=list)


class DeleteResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    confirmed: bool
    error: str | None = None
    removed: int = 0


class FeedbackState(BaseModel):
    model_config = ConfigDict(frozen=True)

    error_message: str | None = None
    success_message: str | None = None
    is_loading: bool = False


__all__ = ["ValidationResult", "CommandResult", "DeleteResult", "FeedbackState"]
