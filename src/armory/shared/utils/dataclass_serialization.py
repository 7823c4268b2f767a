"""Dataclass serialization utilities for Armory.

Cached payloads are stored as JSON text, so every model that passes through
the cache orchestration layer is flattened with ``to_dict`` on write and
rebuilt with ``from_dict`` on read.

Design Principles:
- Type-safe round trips for nested dataclasses, lists and dicts
- Unknown keys are ignored by default (cached payloads may predate a field)
- datetime values travel as ISO 8601 strings
"""

from __future__ import annotations

from dataclasses import MISSING, fields, is_dataclass
from datetime import datetime
from typing import Any, get_args, get_origin, get_type_hints


def to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass to dictionary.

    Supports:
    - Nested dataclasses, including dataclasses inside lists and dicts
    - datetime -> ISO 8601 string

    Args:
        obj: Dataclass instance to convert

    Returns:
        Dictionary representation of the dataclass

    Raises:
        TypeError: If obj is not a dataclass

    Example:
        >>> @dataclass
        ... class Realm:
        ...     slug: str
        ...     id: int
        >>> to_dict(Realm(slug="stormrage", id=60))
        {'slug': 'stormrage', 'id': 60}
    """
    if not is_dataclass(obj) or isinstance(obj, type):
        error_msg = f"{type(obj).__name__} is not a dataclass"
        raise TypeError(error_msg)

    return {field.name: _convert_to_dict_recursive(getattr(obj, field.name)) for field in fields(obj)}


def _convert_to_dict_recursive(obj: Any) -> Any:
    """Recursively convert objects to JSON-serializable format.

    Args:
        obj: Object to convert

    Returns:
        JSON-serializable representation
    """
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj

    if isinstance(obj, datetime):
        return obj.isoformat()

    if is_dataclass(obj) and not isinstance(obj, type):
        return to_dict(obj)

    if isinstance(obj, dict):
        return {key: _convert_to_dict_recursive(value) for key, value in obj.items()}

    if isinstance(obj, (list, tuple)):
        return [_convert_to_dict_recursive(item) for item in obj]

    return str(obj)


def from_dict(cls: type, data: dict[str, Any], extra: str = "ignore") -> Any:
    """Create dataclass instance from dictionary.

    Supports:
    - Nested dataclasses
    - List/Dict types with dataclass items
    - Optional fields (``T | None``)
    - extra='forbid' mode

    Args:
        cls: Dataclass class to instantiate
        data: Dictionary with field values
        extra: How to handle extra fields - "ignore" (default) or "forbid"

    Returns:
        Dataclass instance

    Raises:
        TypeError: If cls is not a dataclass or if extra='forbid' and extra fields found
        KeyError: If a required field is missing from data
    """
    if not is_dataclass(cls):
        error_msg = f"{cls.__name__} is not a dataclass"
        raise TypeError(error_msg)

    type_hints = get_type_hints(cls)

    if extra == "forbid":
        allowed_keys = {f.name for f in fields(cls)}
        extra_keys = set(data.keys()) - allowed_keys
        if extra_keys:
            error_msg = f"Extra fields not allowed: {sorted(extra_keys)}"
            raise TypeError(error_msg)

    result: dict[str, Any] = {}

    for field in fields(cls):
        if field.name not in data:
            if field.default is not MISSING or field.default_factory is not MISSING:
                continue
            raise KeyError(f"Missing required field: {field.name}")

        value = data[field.name]
        field_type = type_hints.get(field.name)

        if field_type is None or value is None:
            result[field.name] = value
            continue

        origin = get_origin(field_type)
        args = get_args(field_type) if origin is not None else ()

        # Optional[T] / T | None -> T
        if origin is not None and origin not in (list, dict):
            actual_types = [a for a in args if a is not type(None)]
            if actual_types:
                field_type = actual_types[0]
                origin = get_origin(field_type)
                args = get_args(field_type) if origin is not None else ()

        if field_type is datetime and isinstance(value, str):
            result[field.name] = datetime.fromisoformat(value)
        elif is_dataclass(field_type) and isinstance(value, dict):
            result[field.name] = from_dict(field_type, value)
        elif origin is list and isinstance(value, list):
            item_type = args[0] if args else None
            if item_type is not None and is_dataclass(item_type):
                result[field.name] = [from_dict(item_type, item) for item in value]
            else:
                result[field.name] = value
        elif origin is dict and isinstance(value, dict):
            value_type = args[1] if len(args) > 1 else None
            if value_type is not None and is_dataclass(value_type):
                result[field.name] = {k: from_dict(value_type, v) for k, v in value.items()}
            else:
                result[field.name] = value
        else:
            result[field.name] = value

    return cls(**result)


__all__ = ["from_dict", "to_dict"]
