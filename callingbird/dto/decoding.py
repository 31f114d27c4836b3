"""
Shared decoding helpers: every backend payload goes through one of a small,
closed set of pydantic shapes, and anything else becomes a DecodeError.
"""
from typing import Any, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from callingbird.errors import DecodeError

ModelT = TypeVar("ModelT", bound=BaseModel)


def decode(model: Type[ModelT], raw_data: Any, what: str) -> ModelT:
    """
    Validate raw JSON data against a single pydantic shape.

    Raises:
        DecodeError: if the payload does not validate
    """
    try:
        return model.model_validate(raw_data)
    except PydanticValidationError as e:
        raise DecodeError(f"Invalid {what} payload: {e.error_count()} error(s)", errors=[e]) from e


def decode_first(models: Sequence[Type[BaseModel]], raw_data: Any, what: str) -> BaseModel:
    """
    Validate raw JSON data against known shapes in order, newest first.

    Raises:
        DecodeError: if no shape validates, carrying every shape's error
    """
    errors: List[Exception] = []
    for model in models:
        try:
            return model.model_validate(raw_data)
        except PydanticValidationError as e:
            errors.append(e)
    raise DecodeError(f"{what} payload matches none of {len(models)} known shapes", errors=errors)


def unwrap_list(raw_data: Any, wrapper_key: Optional[str], what: str) -> list:
    """
    Accept either a bare JSON array or an object holding the array under
    wrapper_key.
    """
    if isinstance(raw_data, list):
        return raw_data
    if wrapper_key and isinstance(raw_data, dict) and isinstance(raw_data.get(wrapper_key), list):
        return raw_data[wrapper_key]
    raise DecodeError(f"Expected a list of {what}, got {type(raw_data).__name__}")
