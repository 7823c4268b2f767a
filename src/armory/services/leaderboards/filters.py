"""Validation of caller-supplied leaderboard filters."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from armory.services.leaderboards.classes import (
    find_spec_across_classes,
    get_class_by_slug,
    get_spec_by_slugs,
)
from armory.services.leaderboards.fields import normalize_faction, normalize_role, to_slug
from armory.shared.errors import ClientInputError, ErrorCode, create_client_input_error


@dataclass
class ClassSpecFilter:
    """Resolved class/spec filter.

    ``inferred_class_name`` is set when the class was derived from an
    unambiguous spec slug rather than requested.
    """

    class_id: int | None = None
    class_slug: str | None = None
    spec_id: int | None = None
    spec_slug: str | None = None
    inferred_class_name: str | None = None


def invalid_filter(code: ErrorCode, message: str, operation: str, **details: Any) -> ClientInputError:
    return create_client_input_error(code, message, operation=operation, details=details or None)


def resolve_class_spec_filter(
    class_value: str | None,
    spec_value: str | None,
    operation: str = "normalize_filters",
) -> ClassSpecFilter:
    """Validate a class and/or spec filter against the reference table.

    Raises:
        ClientInputError: ``invalid_class``, ``invalid_spec`` or ``ambiguous_spec``
    """
    resolved = ClassSpecFilter()

    class_slug: str | None = None
    if class_value:
        class_slug = to_slug(class_value)
        playable = get_class_by_slug(class_slug)
        if playable is None:
            raise invalid_filter(
                ErrorCode.INVALID_CLASS,
                f"Unsupported class filter: {class_value}",
                operation,
                **{"class": class_value},
            )
        resolved.class_id = playable.id
        resolved.class_slug = playable.slug

    if spec_value:
        spec_slug = to_slug(spec_value)
        if class_slug:
            match = get_spec_by_slugs(class_slug, spec_slug)
            if match is None:
                raise invalid_filter(
                    ErrorCode.INVALID_SPEC,
                    f"Spec {spec_value} is not available for class {class_value}",
                    operation,
                    spec=spec_value,
                    **{"class": class_value},
                )
        else:
            match = find_spec_across_classes(spec_slug)
            if match is None:
                raise invalid_filter(
                    ErrorCode.INVALID_SPEC,
                    f"Unsupported specialization filter: {spec_value}",
                    operation,
                    spec=spec_value,
                )
            if match.multiple:
                raise invalid_filter(
                    ErrorCode.AMBIGUOUS_SPEC,
                    f"Spec {spec_value} is available for multiple classes; include a class filter",
                    operation,
                    spec=spec_value,
                )
            resolved.class_id = match.playable_class.id
            resolved.class_slug = match.playable_class.slug
            resolved.inferred_class_name = match.playable_class.name
        resolved.spec_id = match.spec.id
        resolved.spec_slug = match.spec.slug

    return resolved


def validate_faction(value: str | None, operation: str = "normalize_filters") -> str | None:
    """Normalize a faction filter.

    Raises:
        ClientInputError: ``invalid_faction`` for anything but alliance/horde
    """
    if not value:
        return None
    faction = normalize_faction(value)
    if faction is None:
        raise invalid_filter(ErrorCode.INVALID_FACTION, f"Unsupported faction filter: {value}", operation, faction=value)
    return faction


def validate_role(value: str | None, operation: str = "normalize_filters") -> str | None:
    """Normalize a role filter (tank, healer, dps or damage)."""
    if not value:
        return None
    role = normalize_role(value)
    if role is None:
        raise invalid_filter(ErrorCode.INVALID_ROLE, f"Unsupported role filter: {value}", operation, role=value)
    return role


def validate_positive_int(
    value: Any,
    code: ErrorCode,
    name: str,
    operation: str = "normalize_filters",
) -> int | None:
    """Validate an optional positive integer id.

    Raises:
        ClientInputError: With ``code`` if the value is not a positive integer
    """
    if value is None:
        return None

    number: float | None = None
    if isinstance(value, bool):
        number = None
    elif isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            number = None

    if number is None or not math.isfinite(number) or number <= 0 or not number.is_integer():
        raise invalid_filter(code, f"{name} must be a positive integer", operation, **{name: str(value)})
    return int(number)
