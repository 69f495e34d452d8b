"""Validation rules for create and update requests.

Pure functions: nothing here touches the store or storage. Each rule appends
human-readable messages in a fixed order so callers can show the first one
and log the rest.
"""

from __future__ import annotations

import datetime as _dt
from collections.abc import Sequence

from taskcore.models.results import ValidationResult
from taskcore.models.task import CreateRequest, UpdateRequest

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
TAG_MAX_LENGTH = 50
TAG_MAX_COUNT = 10

TITLE_REQUIRED = "Title is required"
TITLE_TOO_LONG = f"Title cannot exceed {TITLE_MAX_LENGTH} characters"
DESCRIPTION_TOO_LONG = f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"
DUE_DATE_IN_PAST = "Due date cannot be in the past"
TOO_MANY_TAGS = f"Maximum {TAG_MAX_COUNT} tags allowed"
TAG_EMPTY = "Tag cannot be empty"
TAG_TOO_LONG = f"Tag cannot exceed {TAG_MAX_LENGTH} characters"
TAG_DUPLICATE = "Duplicate tags are not allowed"
REQUEST_REQUIRED = "Request is required"


def _check_title(title: str | None, errors: list[str]) -> None:
    trimmed = (title or "").strip()
    if not trimmed:
        errors.append(TITLE_REQUIRED)
    elif len(trimmed) > TITLE_MAX_LENGTH:
        errors.append(TITLE_TOO_LONG)


def _check_description(description: str | None, errors: list[str]) -> None:
    if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
        errors.append(DESCRIPTION_TOO_LONG)


def _check_due_date(due_date: _dt.date | None, today: _dt.date, errors: list[str]) -> None:
    if due_date is not None and due_date < today:
        errors.append(DUE_DATE_IN_PAST)


def _check_tags(tags: Sequence[str] | None, errors: list[str]) -> None:
    if tags is None:
        return
    if len(tags) > TAG_MAX_COUNT:
        errors.append(TOO_MANY_TAGS)
    if any(not t.strip() for t in tags):
        errors.append(TAG_EMPTY)
    if any(len(t) > TAG_MAX_LENGTH for t in tags):
        errors.append(TAG_TOO_LONG)
    normalized = [t.strip().lower() for t in tags if t.strip()]
    if len(set(normalized)) != len(normalized):
        errors.append(TAG_DUPLICATE)


def _today(today: _dt.date | None) -> _dt.date:
    return today if today is not None else _dt.date.today()


def validate_create(
    request: CreateRequest | None, today: _dt.date | None = None
) -> ValidationResult:
    if request is None:
        return ValidationResult.from_errors([REQUEST_REQUIRED])
    errors: list[str] = []
    _check_title(request.title, errors)
    _check_description(request.description, errors)
    _check_due_date(request.due_date, _today(today), errors)
    _check_tags(request.tags, errors)
    return ValidationResult.from_errors(errors)


def validate_update(
    request: UpdateRequest | None, today: _dt.date | None = None
) -> ValidationResult:
    """Only rules for fields the request actually sets are applied."""
    if request is None:
        return ValidationResult.from_errors([REQUEST_REQUIRED])
    errors: list[str] = []
    provided = request.model_fields_set
    if "title" in provided and request.title is not None:
        _check_title(request.title, errors)
    if "description" in provided:
        _check_description(request.description, errors)
    if "due_date" in provided:
        _check_due_date(request.due_date, _today(today), errors)
    if "tags" in provided:
        _check_tags(request.tags, errors)
    return ValidationResult.from_errors(errors)


__all__ = [
    "validate_create",
    "validate_update",
    "TITLE_MAX_LENGTH",
    "DESCRIPTION_MAX_LENGTH",
    "TAG_MAX_LENGTH",
    "TAG_MAX_COUNT",
    "TITLE_REQUIRED",
    "TITLE_TOO_LONG",
    "DESCRIPTION_TOO_LONG",
    "DUE_DATE_IN_PAST",
    "TOO_MANY_TAGS",
    "TAG_EMPTY",
    "TAG_TOO_LONG",
    "TAG_DUPLICATE",
    "REQUEST_REQUIRED",
]
