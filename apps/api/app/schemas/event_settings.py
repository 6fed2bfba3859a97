"""Typed view of Event.settings."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic import (
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)
from pydantic.alias_generators import to_camel

from app.schemas.base import ApiModel
from app.utils.datetime_parsing import ensure_utc

logger = logging.getLogger(__name__)


class EventSettings(ApiModel):
    """
    Named settings plus passthrough of unknown keys.

    Parsed once at the boundary (event_service.get_event_settings) instead
    of cast at each read site.
    """

    model_config = ConfigDict(extra="allow")

    allow_abstract_submissions: bool = False
    abstract_deadline: datetime | None = None
    reviewer_user_ids: list[str] = Field(default_factory=list)

    @field_validator("allow_abstract_submissions", mode="before")
    @classmethod
    def coerce_null_flag(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("abstract_deadline", mode="wrap")
    @classmethod
    def lenient_deadline(
        cls, value: Any, handler: ValidatorFunctionWrapHandler
    ) -> datetime | None:
        # Blank or unparseable deadlines mean "no deadline"
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        try:
            return ensure_utc(handler(value))
        except ValidationError:
            logger.warning("Ignoring unparseable abstractDeadline %r", value)
            return None

    @field_validator("reviewer_user_ids", mode="before")
    @classmethod
    def coerce_reviewer_ids(cls, value: Any) -> Any:
        if value is None:
            return []
        return [str(v) for v in value]

    @classmethod
    def from_document(cls, document: dict | None) -> EventSettings:
        return cls.model_validate(document or {})

    def named_document(self) -> dict[str, Any]:
        """JSON form of the named keys only."""
        return {
            "allowAbstractSubmissions": self.allow_abstract_submissions,
            "abstractDeadline": self.abstract_deadline.isoformat()
            if self.abstract_deadline
            else None,
            "reviewerUserIds": list(self.reviewer_user_ids),
        }


def merge_settings(document: dict | None, **updates: Any) -> dict[str, Any]:
    """
    Shallow merge: replace only the given named keys, keep every other key.

    `updates` use snake_case field names (reviewer_user_ids=[...]). Returns
    a new dict so the ORM sees the assignment.
    """
    unknown = set(updates) - set(EventSettings.model_fields)
    if unknown:
        raise ValueError(f"Unknown event settings: {', '.join(sorted(unknown))}")

    current = EventSettings.from_document(document)
    data = current.model_dump(include=set(EventSettings.model_fields))
    data.update(updates)
    named = EventSettings.model_validate(data).named_document()

    result = dict(document or {})
    for key in updates:
        result[to_camel(key)] = named[to_camel(key)]
    return result
