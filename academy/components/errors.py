"""
Validation error shared by all components.

Services return ``(value, errors)``; an empty error list means success.
Error codes follow a naming convention the API layer maps to HTTP status:
``*_not_found`` -> 404, ``*_taken`` -> 409, everything else -> 400 unless
listed in the API's explicit table.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ComponentError:
    code: str
    message: str
    field: str | None = None

    def as_dict(self) -> dict[str, str | None]:
        return {"code": self.code, "message": self.message, "field": self.field}


def fail(code: str, message: str, field: str | None = None) -> list[ComponentError]:
    return [ComponentError(code=code, message=message, field=field)]


def require(value: object, field: str, label: str | None = None) -> list[ComponentError]:
    """Error list for a missing/blank required value."""
    if value is None or (isinstance(value, str) and not value.strip()):
        name = label or field.replace("_", " ").capitalize()
        return fail(f"{field}_required", f"{name} is required", field)
    return []


def reject_nulls(updates: dict[str, object], fields: tuple[str, ...]) -> list[ComponentError]:
    """Errors for partial-update fields sent as an explicit null that cannot be cleared."""
    return [
        ComponentError(f"{name}_required", f"{name.replace('_', ' ').capitalize()} cannot be null", name)
        for name in fields
        if name in updates and updates[name] is None
    ]
