"""
Cross-field consistency rules.

Checks that depend on more than one field of the form:
- follow-up frequency goes with the follow-up flag
- resolver goes with the RESOLVED / CLOSED status
- involved students exclude blanks, duplicates and the primary subject
- GRAVE severity needs a heightened confirmation from the caller
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from conducta.config import settings
from conducta.core.errors import FieldError, FieldErrors
from conducta.core.schemas.incidents import IncidentStatus, SeverityLevel
from conducta.core.validation import is_blank

RESOLUTION_STATUSES = frozenset({IncidentStatus.RESOLVED, IncidentStatus.CLOSED})


def validate_follow_up(
    follow_up_required: bool | None, frequency: str | None
) -> FieldError | None:
    """followUpFrequency is required if and only if followUpRequired is set."""
    if follow_up_required:
        if is_blank(frequency):
            return FieldError(
                "followUpFrequency",
                "required",
                "Debe indicar la frecuencia de seguimiento",
            )
    elif not is_blank(frequency):
        return FieldError(
            "followUpFrequency",
            "notAllowed",
            "La frecuencia de seguimiento solo aplica cuando se requiere seguimiento",
        )
    return None


def validate_resolution(status: str | None, resolved_by: str | None) -> FieldError | None:
    """resolvedBy is required if and only if the target status is RESOLVED or CLOSED."""
    if status in RESOLUTION_STATUSES:
        if is_blank(resolved_by):
            return FieldError(
                "resolvedBy",
                "required",
                "Se requiere especificar quien resolvió el incidente",
            )
    elif not is_blank(resolved_by):
        return FieldError(
            "resolvedBy",
            "notAllowed",
            "Solo se indica quien resolvió cuando el incidente está resuelto o cerrado",
        )
    return None


def validate_parent_notification(
    severity: str | None,
    status: str | None,
    parents_notified: bool | None,
    enforce: bool | None = None,
) -> FieldError | None:
    """Optional policy: GRAVE incidents need parents notified before resolution.

    Disabled unless GRAVE_REQUIRES_PARENT_NOTIFICATION is set (or
    ``enforce`` is passed explicitly).
    """
    if enforce is None:
        enforce = settings.GRAVE_REQUIRES_PARENT_NOTIFICATION
    if not enforce:
        return None
    if severity == SeverityLevel.GRAVE and status in RESOLUTION_STATUSES and not parents_notified:
        return FieldError(
            "parentsNotified",
            "required",
            "Un incidente GRAVE requiere notificar a los padres antes de resolverlo",
        )
    return None


def clean_involved_students(entries: Iterable[str] | None, student_id: str | None) -> list[str]:
    """Drop blank slots, duplicates, and the primary student; keep first-seen order.

    Blank entries are transient empty slots in the form and are not errors.
    """
    primary = (student_id or "").strip()
    seen: set[str] = set()
    cleaned: list[str] = []
    for entry in entries or ():
        if entry is None:
            continue
        identifier = entry.strip()
        if not identifier or identifier == primary or identifier in seen:
            continue
        seen.add(identifier)
        cleaned.append(identifier)
    return cleaned


def requires_heightened_confirmation(severity: str | None) -> bool:
    """GRAVE incidents need an explicit extra confirmation before the write."""
    return severity == SeverityLevel.GRAVE


def validate_cross_fields(
    values: Mapping[str, Any], *, enforce_parent_notification: bool | None = None
) -> FieldErrors:
    """Run every cross-field rule over the effective form values.

    Args:
        values: Wire field name → value (status already resolved to the target)
        enforce_parent_notification: Override for the GRAVE notification policy

    Returns:
        All cross-field errors found
    """
    errors = FieldErrors()
    errors.add(validate_follow_up(values.get("followUpRequired"), values.get("followUpFrequency")))
    errors.add(validate_resolution(values.get("status"), values.get("resolvedBy")))
    errors.add(
        validate_parent_notification(
            values.get("severityLevel"),
            values.get("status"),
            values.get("parentsNotified"),
            enforce=enforce_parent_notification,
        )
    )
    return errors
