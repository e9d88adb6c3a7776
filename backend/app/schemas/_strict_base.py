"""Strict schema baselines and request parsing."""

from typing import Any, Dict, List, Mapping, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from app.core.exceptions import ValidationException

ModelT = TypeVar("ModelT", bound=BaseModel)


class StrictModel(BaseModel):
    """Neutral strict base for response DTOs."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class StrictRequestModel(StrictModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, str_strip_whitespace=True)


def _summarize_errors(exc: ValidationError) -> List[Dict[str, Any]]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]


def parse_payload(model: Type[ModelT], payload: Mapping[str, Any]) -> ModelT:
    """
    Build a request DTO from raw input.

    Raises:
        ValidationException: with per-field messages when the payload is
            missing fields or malformed; nothing has touched the database yet.
    """
    try:
        return model.model_validate(dict(payload))
    except ValidationError as exc:
        errors = _summarize_errors(exc)
        first = errors[0]["message"] if errors else "Invalid request"
        raise ValidationException(first, details={"errors": errors}) from exc
