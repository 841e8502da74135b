"""
Incident Engine Errors

Error taxonomy shared by the validation layers.

- FieldError: one field failed a rule (collected, never short-circuited)
- IllegalTransition: requested status change is not permitted
- ImmutableFieldViolation: write-once field changed, or any field on a CLOSED record
- MalformedTemporalValue: date/time input could not be parsed in either wire shape

Only MalformedTemporalValue is raised; the others travel as values inside
AssemblyResult so callers can show every problem at once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class IncidentError(Exception):
    """Base class for incident engine errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


class MalformedTemporalValue(IncidentError, ValueError):
    """Date/time value could not be parsed as ISO string or component array."""

    def __init__(self, kind: str, value: Any, reason: str) -> None:
        super().__init__(f"Malformed {kind} value {value!r}: {reason}", code="MALFORMED_TEMPORAL")
        self.kind = kind
        self.value = value
        self.reason = reason


class IllegalTransition(IncidentError):
    """Status change not permitted from the record's current status."""

    def __init__(self, current: str, requested: str, message: str) -> None:
        super().__init__(message, code="ILLEGAL_TRANSITION")
        self.current = current
        self.requested = requested

    def to_dict(self) -> dict[str, str]:
        return {"current": self.current, "requested": self.requested, "message": self.message}


class ImmutableFieldViolation(IncidentError):
    """Attempt to change write-once fields, or any field of a CLOSED record."""

    def __init__(self, fields: list[str], message: str) -> None:
        super().__init__(message, code="IMMUTABLE_FIELD")
        self.fields = sorted(fields)

    def to_dict(self) -> dict[str, Any]:
        return {"fields": self.fields, "message": self.message}


@dataclass(frozen=True)
class FieldError:
    """A single field that failed one rule.

    Attributes:
        field: Wire name of the field (camelCase, e.g. "immediateAction")
        code: Machine-readable rule name (required, minLength, pattern, ...)
        message: Human-readable message shown next to the form field
    """

    field: str
    code: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


@dataclass
class FieldErrors:
    """Exhaustive collection of field errors, at most one per field.

    The first error recorded for a field wins, matching the per-field
    evaluation order of the rule set.
    """

    errors: dict[str, FieldError] = field(default_factory=dict)

    def add(self, error: FieldError | None) -> None:
        if error is not None and error.field not in self.errors:
            self.errors[error.field] = error

    def extend(self, errors: FieldErrors) -> None:
        for error in errors:
            self.add(error)

    def __iter__(self):  # type: ignore[no-untyped-def]
        return iter(self.errors.values())

    def __len__(self) -> int:
        return len(self.errors)

    def __bool__(self) -> bool:
        return bool(self.errors)

    def __contains__(self, field_name: object) -> bool:
        return field_name in self.errors

    def __getitem__(self, field_name: str) -> FieldError:
        return self.errors[field_name]

    def messages(self) -> dict[str, str]:
        """Field name → message map, the shape the form layer renders."""
        return {name: error.message for name, error in self.errors.items()}

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {name: error.to_dict() for name, error in self.errors.items()}
