"""Shared base for API schemas (camelCase on the wire)."""

from typing import Any, TypeVar

from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

ModelT = TypeVar("ModelT", bound=BaseModel)


class ApiModel(BaseModel):
    """Accepts both camelCase and snake_case input; serializes camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class SuccessResponse(ApiModel):
    success: bool = True
    message: str | None = None


def parse_body(model: type[ModelT], payload: Any) -> ModelT:
    """
    Validate a raw JSON body inside a handler.

    For endpoints that must run their own checks (event open, token
    editable) before the body is looked at. Errors surface exactly like
    FastAPI's own body validation.
    """
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise RequestValidationError(
            [{**error, "loc": ("body", *error["loc"])} for error in exc.errors()]
        ) from exc
