"""
Field validation rules for incident forms.

All validation functions follow the pattern:
1. Accept the raw form value (string, int, list, ...)
2. Check it against the field's declarative rule
3. Return None when valid, or exactly one FieldError

Rules live in FIELD_RULES so the create and edit flows share them.
validate_fields never short-circuits across fields: every field is
checked and all errors come back together.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Any

from conducta.config import settings
from conducta.core.errors import FieldError, FieldErrors, MalformedTemporalValue
from conducta.core.schemas.incidents import IncidentStatus, IncidentType, SeverityLevel
from conducta.core.temporal import normalize_date, normalize_time, normalize_timestamp

# Letters (Spanish diacritics included), digits, whitespace and .,;:()-
SAFE_TEXT_PATTERN = re.compile(r"^[a-zA-Z0-9áéíóúÁÉÍÓÚüÜñÑ\s.,;:()\-]+$")


@dataclass(frozen=True)
class FieldRule:
    """Declarative rule for one text field.

    Attributes:
        label: Field name as shown to the user (Spanish)
        required: Blank or missing value is an error
        min_length: Minimum length (checked on the trimmed value)
        max_length: Maximum length (checked on the trimmed value)
        pattern: Allow-list, matched against the untrimmed value
        trim_before_check: Measure lengths after stripping whitespace
    """

    label: str
    required: bool = False
    min_length: int | None = None
    max_length: int | None = None
    pattern: re.Pattern[str] | None = None
    trim_before_check: bool = True


FIELD_RULES: dict[str, FieldRule] = {
    "description": FieldRule("descripción", required=True, min_length=5, max_length=1000),
    "location": FieldRule("ubicación", required=True, min_length=5, max_length=200),
    "witnesses": FieldRule("testigos", min_length=5, max_length=500, pattern=SAFE_TEXT_PATTERN),
    "immediateAction": FieldRule(
        "acción inmediata",
        required=True,
        min_length=5,
        max_length=500,
        pattern=SAFE_TEXT_PATTERN,
    ),
    "followUpFrequency": FieldRule("frecuencia de seguimiento", max_length=100),
    "studentId": FieldRule("estudiante", required=True),
    "reportedBy": FieldRule("usuario que reporta", required=True),
    "resolvedBy": FieldRule("usuario que resuelve"),
}

# Text fields whose rules apply on both create and edit
NARRATIVE_FIELDS = ("description", "location", "witnesses", "immediateAction")

CHOICE_FIELDS: dict[str, tuple[str, type[StrEnum]]] = {
    "incidentType": ("tipo de incidente", IncidentType),
    "severityLevel": ("nivel de severidad", SeverityLevel),
    "status": ("estado", IncidentStatus),
}


def is_blank(value: Any) -> bool:
    """True for None, empty strings and whitespace-only strings."""
    return value is None or (isinstance(value, str) and not value.strip())


def clean_text(value: str | None) -> str | None:
    """Trim a free-text value; whitespace-only becomes None (absent)."""
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


# ============================================================================
# Text Fields
# ============================================================================


def validate_text_field(
    field: str, value: str | None, rule: FieldRule | None = None
) -> FieldError | None:
    """Validate one free-text field against its rule.

    Evaluation order:
    1. required and blank → "required"
    2. trimmed length below min_length → "minLength"
    3. trimmed length above max_length → "maxLength"
    4. untrimmed value outside the pattern → "pattern"

    An optional field that is blank is treated as absent and passes.

    Args:
        field: Wire field name (e.g. "immediateAction")
        value: Raw form value
        rule: Rule override (defaults to FIELD_RULES[field])

    Returns:
        The first failing rule as a FieldError, or None
    """
    rule = rule or FIELD_RULES[field]

    if value is None or not value.strip():
        if rule.required:
            return FieldError(field, "required", f"El campo {rule.label} es obligatorio")
        return None

    measured = value.strip() if rule.trim_before_check else value

    if rule.min_length is not None and len(measured) < rule.min_length:
        return FieldError(
            field,
            "minLength",
            f"El campo {rule.label} debe tener al menos {rule.min_length} caracteres",
        )

    if rule.max_length is not None and len(measured) > rule.max_length:
        return FieldError(
            field,
            "maxLength",
            f"El campo {rule.label} no puede exceder {rule.max_length} caracteres",
        )

    if rule.pattern is not None and not rule.pattern.fullmatch(value):
        return FieldError(
            field,
            "pattern",
            f"El campo {rule.label} solo puede contener letras, números "
            "y signos de puntuación básicos",
        )

    return None


# ============================================================================
# Temporal and Numeric Fields
# ============================================================================


def validate_incident_date(value: Any, today: date | None = None) -> FieldError | None:
    """Incident date is required, parseable, and not after today."""
    if is_blank(value) or value == []:
        return FieldError("incidentDate", "required", "La fecha del incidente es obligatoria")

    try:
        incident_date = normalize_date(value)
    except MalformedTemporalValue:
        return FieldError("incidentDate", "invalid", "La fecha del incidente no es válida")

    if incident_date > (today or settings.today()):
        return FieldError(
            "incidentDate",
            "futureDate",
            "La fecha del incidente no puede ser posterior a la fecha actual",
        )
    return None


def validate_incident_time(value: Any) -> FieldError | None:
    """Incident time is required and must be HH:MM[:SS] or [hour, minute]."""
    if is_blank(value) or value == []:
        return FieldError("incidentTime", "required", "La hora del incidente es obligatoria")

    try:
        normalize_time(value)
    except MalformedTemporalValue:
        return FieldError("incidentTime", "invalid", "La hora del incidente no es válida")
    return None


def parse_academic_year(value: int | str | None) -> int | None:
    """Convert the form's academic year to int, or None if not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    text = value.strip()
    if not (text.isascii() and text.isdigit()):
        return None
    return int(text)


def validate_academic_year(
    value: int | str | None, today: date | None = None
) -> FieldError | None:
    """Academic year must be an integer between MIN_ACADEMIC_YEAR and the current year."""
    if is_blank(value):
        return FieldError("academicYear", "required", "El año académico es obligatorio")

    year = parse_academic_year(value)
    if year is None:
        return FieldError("academicYear", "invalid", "El año académico debe ser un número")

    current_year = (today or settings.today()).year
    if year < settings.MIN_ACADEMIC_YEAR or year > current_year:
        return FieldError(
            "academicYear",
            "outOfRange",
            f"El año académico debe estar entre {settings.MIN_ACADEMIC_YEAR} y {current_year}",
        )
    return None


def validate_notification_date(value: Any) -> FieldError | None:
    """Optional notification timestamp must parse when present."""
    if is_blank(value) or value == []:
        return None
    try:
        normalize_timestamp(value)
    except MalformedTemporalValue:
        return FieldError("notificationDate", "invalid", "La fecha de notificación no es válida")
    return None


def validate_choice(field: str, value: str | None, required: bool = True) -> FieldError | None:
    """Value must be one of the enum members registered for the field."""
    label, choices = CHOICE_FIELDS[field]
    if value is None or not value.strip():
        if required:
            return FieldError(field, "required", f"El campo {label} es obligatorio")
        return None

    if value.strip() not in choices.__members__:
        allowed = ", ".join(choices.__members__)
        return FieldError(field, "invalidChoice", f"El campo {label} debe ser uno de: {allowed}")
    return None


# ============================================================================
# Whole Form
# ============================================================================


def validate_fields(
    values: Mapping[str, Any],
    *,
    fields: Iterable[str] | None = None,
    today: date | None = None,
) -> FieldErrors:
    """Run every single-field rule over a form.

    Args:
        values: Wire field name → raw value
        fields: Restrict validation to these fields (default: all create fields)
        today: Reference date for the future-date and academic-year checks

    Returns:
        All field errors found (empty when the form is valid)
    """
    selected = set(fields) if fields is not None else None

    def wanted(name: str) -> bool:
        return selected is None or name in selected

    errors = FieldErrors()

    for name in ("studentId", *NARRATIVE_FIELDS, "followUpFrequency", "reportedBy", "resolvedBy"):
        if wanted(name):
            errors.add(validate_text_field(name, values.get(name)))

    if wanted("incidentDate"):
        errors.add(validate_incident_date(values.get("incidentDate"), today=today))
    if wanted("incidentTime"):
        errors.add(validate_incident_time(values.get("incidentTime")))
    if wanted("academicYear"):
        errors.add(validate_academic_year(values.get("academicYear"), today=today))
    if wanted("notificationDate"):
        errors.add(validate_notification_date(values.get("notificationDate")))

    for name in ("incidentType", "severityLevel"):
        if wanted(name):
            errors.add(validate_choice(name, values.get(name)))
    if wanted("status"):
        errors.add(validate_choice("status", values.get("status"), required=False))

    return errors
