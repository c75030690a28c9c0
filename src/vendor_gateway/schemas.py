"""Client-facing field specs compiled into strict pydantic models."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    create_model,
)

from .errors import InputValidationError


FieldSpec = Dict[str, Any]

_TYPE_NAMES = {
    "string_type": "string",
    "int_type": "integer",
    "int_from_float": "integer",
    "float_type": "number",
    "bool_type": "boolean",
    "list_type": "array",
    "dict_type": "object",
    "model_type": "object",
    "model_attributes_type": "object",
}

_SCALARS: Dict[str, Any] = {
    "string": StrictStr,
    "integer": StrictInt,
    "number": StrictFloat,
    "boolean": StrictBool,
    "object": Dict[str, Any],
}


def _sanitize_name(name: str) -> str:
    return "".join(ch if ch.isalnum() else "_" for ch in name)


def _field_type(spec: Mapping[str, Any], model_name: str) -> Any:
    if spec.get("enum"):
        return Literal[tuple(spec["enum"])]

    spec_type = spec.get("type")
    if spec_type == "array":
        items = spec.get("items") or {}
        return List[_field_type(items, f"{model_name}Item")] if items else List[Any]
    if spec_type == "object" and spec.get("properties"):
        return _object_model(spec, model_name)
    return _SCALARS.get(spec_type, Any)


def _object_model(spec: Mapping[str, Any], model_name: str) -> type[BaseModel]:
    required = set(spec.get("required") or [])
    fields: Dict[str, Tuple[Any, Any]] = {}
    for name, prop in (spec.get("properties") or {}).items():
        prop_type = _field_type(prop, f"{model_name}_{_sanitize_name(name)}")
        if name in required:
            fields[name] = (prop_type, Field(...))
        else:
            fields[name] = (Optional[prop_type], None)
    return create_model(
        model_name, __config__=ConfigDict(extra="allow"), **fields
    )


def build_input_model(model_name: str, schema: Mapping[str, FieldSpec]) -> type[BaseModel]:
    fields: Dict[str, Tuple[Any, Any]] = {}
    for name, spec in schema.items():
        field_type = _field_type(spec, f"{model_name}_{_sanitize_name(name)}")
        constraints = {
            "ge": spec.get("minimum"),
            "le": spec.get("maximum"),
            "min_length": spec.get("minItems"),
            "max_length": spec.get("maxItems"),
        }
        constraints = {key: value for key, value in constraints.items() if value is not None}
        if spec.get("required"):
            fields[name] = (field_type, Field(..., **constraints))
        elif "default" in spec:
            fields[name] = (field_type, Field(spec["default"], **constraints))
        else:
            fields[name] = (Optional[field_type], Field(None, **constraints))

    model_config = ConfigDict(extra="allow")
    return create_model(f"{_sanitize_name(model_name)}Input", __config__=model_config, **fields)


def _path(loc: Tuple[Any, ...]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif not path:
            path = str(part)
        elif str(part).startswith(("literal[", "list[", "dict[")):
            continue
        else:
            path += f".{part}"
    return path


def _describe(error: Mapping[str, Any], schema: Mapping[str, FieldSpec]) -> str:
    loc = tuple(error.get("loc") or ())
    path = _path(loc)
    error_type = error.get("type", "")
    top = schema.get(str(loc[0])) if loc else None

    explicit_null = len(loc) == 1 and error.get("input") is None and (top or {}).get("required")
    if error_type == "missing" or explicit_null:
        return f"Required field missing: {path}"
    if error_type in _TYPE_NAMES:
        return f"Invalid type for field {path}: expected {_TYPE_NAMES[error_type]}"
    return f"Invalid value for field {path}: {error.get('msg', 'invalid')}"


def validate_input(
    model: type[BaseModel], schema: Mapping[str, FieldSpec], payload: Optional[Mapping[str, Any]]
) -> Dict[str, Any]:
    """Validate ``payload`` and return a new dict with defaults applied."""
    data = dict(payload) if isinstance(payload, Mapping) else {}
    # Explicit nulls on optional fields behave like absent fields.
    for name, spec in schema.items():
        if name in data and data[name] is None and not spec.get("required"):
            del data[name]

    try:
        validated = model.model_validate(data)
    except ValidationError as exc:
        errors = exc.errors()
        message = _describe(errors[0], schema)
        raise InputValidationError(message, {"errors": [_describe(e, schema) for e in errors]}) from exc

    result = validated.model_dump(exclude_unset=True)
    for name, spec in schema.items():
        if name not in result and "default" in spec:
            result[name] = spec["default"]
    return result
