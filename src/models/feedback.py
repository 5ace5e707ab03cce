"""Feedback submission models.

A :class:`FeedbackRecord` is built from untrusted JSON at the HTTP
boundary, validated once, and then passed unchanged to every storage
connector.  The model is frozen so no connector can alter the record
another connector is about to store.

JSON uses camelCase keys (``highlightedText``, ``userEmail``); Python code
uses the snake_case attribute names.  Both spellings are accepted on input.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import (
    AliasGenerator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from src.utils.errors import FeedbackValidationError


class FeedbackCategory(str, Enum):  # noqa: UP042
    """Closed set of feedback categories the widget can submit."""

    BUG = "Bug"
    FEATURE_REQUEST = "Feature Request"
    QUESTION = "Question"
    TYPO = "Typo"
    CONFUSING = "Confusing"
    OUTDATED = "Outdated"
    MISSING = "Missing"
    OTHER = "Other"


# Categories offered by the widget out of the box.
DEFAULT_FEEDBACK_CATEGORIES: tuple[FeedbackCategory, ...] = (
    FeedbackCategory.BUG,
    FeedbackCategory.FEATURE_REQUEST,
    FeedbackCategory.QUESTION,
    FeedbackCategory.TYPO,
    FeedbackCategory.CONFUSING,
    FeedbackCategory.OTHER,
)

MAX_COMMENT_LENGTH = 5000
MAX_SUGGESTED_TAG_LENGTH = 100
MAX_USER_NAME_LENGTH = 200


class FeedbackRecord(BaseModel):
    """One visitor's feedback about one documentation page."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=AliasGenerator(validation_alias=to_camel, serialization_alias=to_camel),
        extra="ignore",
    )

    # Site-relative path of the page the feedback is about, e.g. "/docs/api/auth".
    page: str = Field(min_length=1)
    category: FeedbackCategory
    comment: str = Field(min_length=1, max_length=MAX_COMMENT_LENGTH)
    # ISO-8601 string as sent by the browser; kept verbatim for storage.
    timestamp: str
    user_agent: str | None = None
    # Text the visitor highlighted before opening the feedback modal.
    highlighted_text: str | None = None
    section_id: str | None = None
    suggested_tag: str | None = Field(default=None, max_length=MAX_SUGGESTED_TAG_LENGTH)
    user_email: EmailStr | None = None
    user_id: str | None = None
    user_name: str | None = Field(default=None, max_length=MAX_USER_NAME_LENGTH)

    @field_validator("page")
    @classmethod
    def _page_is_relative_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("Page must start with / (relative path)")
        return value

    @field_validator("timestamp")
    @classmethod
    def _timestamp_is_iso(cls, value: str) -> str:
        # fromisoformat only accepts a trailing "Z" from Python 3.11 on.
        candidate = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            datetime.fromisoformat(candidate)
        except ValueError as exc:
            raise ValueError("Timestamp must be a valid ISO datetime") from exc
        if "T" not in candidate:
            raise ValueError("Timestamp must be a valid ISO datetime")
        return value

    def to_storage_dict(self) -> dict[str, Any]:
        """Return the camelCase JSON shape, omitting optional fields that were not supplied."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _first_error_message(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid feedback data"
    first = errors[0]
    message = str(first.get("msg", "Invalid feedback data"))
    # Pydantic prefixes messages raised from validators with "Value error, ".
    message = message.removeprefix("Value error, ")
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {message}" if location else message


def validate_feedback_data(data: Any) -> FeedbackRecord:
    """Validate untrusted input into a :class:`FeedbackRecord`.

    Raises
    ------
    FeedbackValidationError
        With the first field error as the message and the full list on
        ``errors``.
    """
    if not isinstance(data, dict):
        raise FeedbackValidationError("Feedback must be a JSON object")
    try:
        return FeedbackRecord.model_validate(data)
    except ValidationError as exc:
        raise FeedbackValidationError(
            message=_first_error_message(exc),
            errors=exc.errors(include_url=False, include_context=False),
        ) from exc


def is_valid_feedback_data(data: Any) -> bool:
    """Return ``True`` if *data* would pass :func:`validate_feedback_data`."""
    try:
        validate_feedback_data(data)
    except FeedbackValidationError:
        return False
    return True


def create_feedback_record(
    page: str,
    category: FeedbackCategory | str,
    comment: str,
    **options: Any,
) -> FeedbackRecord:
    """Build a validated record stamped with the current UTC time.

    ``options`` accepts any optional field by its snake_case name
    (``highlighted_text``, ``user_email``, ...).
    """
    data: dict[str, Any] = {
        "page": page,
        "category": category,
        "comment": comment,
        "timestamp": datetime.now(tz=timezone.utc).isoformat(),  # noqa: UP017
        **options,
    }
    try:
        return FeedbackRecord.model_validate(data)
    except ValidationError as exc:
        raise FeedbackValidationError(
            message=_first_error_message(exc),
            errors=exc.errors(include_url=False, include_context=False),
        ) from exc
