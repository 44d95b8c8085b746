"""Validation helpers for tool argument schemas."""
from __future__ import annotations

from typing import Any, Literal, Mapping, Type

from pydantic import BaseModel, TypeAdapter, ValidationError

from .errors import InvalidParametersError


def _describe(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        if item["type"] == "missing":
            problems.append(f"Missing '{location}' parameter")
        else:
            problems.append(f"Invalid '{location}' parameter: {item['msg']}")
    return "; ".join(problems)


def validate_args(schema: Type[BaseModel], args: Mapping[str, Any] | None) -> dict[str, Any]:
    """Validate tool arguments, returning only the fields the caller set.

    Raises:
        InvalidParametersError: If a required field is missing or mistyped
    """
    try:
        model = schema.model_validate(dict(args or {}))
    except ValidationError as e:
        raise InvalidParametersError(_describe(e)) from e
    return model.model_dump(exclude_unset=True)


class ArgsValidator:
    """Schema validator for pydantic-ai tool arguments that returns dicts.

    Unlike a plain model dump, the returned dict keeps only the fields the
    caller actually supplied and leaves out schema defaults. Per-command checks
    in the text editor rely on this to report a missing argument instead of
    acting on a default.
    """

    def __init__(self, schema: Type[BaseModel]) -> None:
        self._adapter = TypeAdapter(schema)
        self._inner = self._adapter.validator

    def _to_dict(self, result: Any) -> dict[str, Any]:
        if isinstance(result, BaseModel):
            return result.model_dump(exclude_unset=True)
        return result

    def validate_python(
        self,
        input: Any,
        *,
        allow_partial: bool | Literal["off", "on", "trailing-strings"] = False,
        **kwargs: Any,
    ) -> dict[str, Any]:
        result = self._inner.validate_python(input, allow_partial=allow_partial, **kwargs)
        return self._to_dict(result)

    def validate_json(
        self,
        input: str | bytes | bytearray,
        *,
        allow_partial: bool | Literal["off", "on", "trailing-strings"] = False,
        **kwargs: Any,
    ) -> dict[str, Any]:
        result = self._inner.validate_json(input, allow_partial=allow_partial, **kwargs)
        return self._to_dict(result)

    def validate_strings(self, data: Any, **kwargs: Any) -> dict[str, Any]:
        result = self._inner.validate_strings(data, **kwargs)
        return self._to_dict(result)
