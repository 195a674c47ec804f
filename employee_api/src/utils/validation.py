"""Input validation helpers shared by the services."""

from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from employee_api.src.errors import ValidationError

M = TypeVar("M", bound=BaseModel)


def format_validation_errors(exc: PydanticValidationError) -> str:
    """
    Flatten pydantic errors into ``Validation error: field: message, ...``.

    Args:
        exc: Pydantic validation error

    Returns:
        Single-line message
    """
    parts = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        parts.append(f"{field}: {message}" if field else message)
    return "Validation error: " + ", ".join(parts)


def validate_model(model_class: Type[M], data: Mapping[str, Any]) -> M:
    """
    Validate ``data`` against ``model_class``.

    Raises:
        ValidationError: With every field problem listed in the message
    """
    try:
        return model_class.model_validate(dict(data))
    except PydanticValidationError as e:
        raise ValidationError(format_validation_errors(e)) from e
