from __future__ import annotations

from typing import Any, Iterable, Mapping


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level integrity conflict (e.g., duplicate owner email)."""


def require_fields(data: Mapping[str, Any], fields: Iterable[str], *, label: str) -> None:
    """
    Raise ValidationError naming every required field that is missing or blank.

    label prefixes the message so callers can tell tenant and owner input apart.
    """
    missing = []
    for field in fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(field)
    if missing:
        raise ValidationError(f"{label}: missing required field(s): {', '.join(missing)}")
