"""
Incident Record Assembler

Turns raw form input into the exact request body sent to the incident
store, or into the complete list of problems with the submission.

Order of checks:
1. single-field rules (validation)
2. cross-field rules (consistency)
3. for updates, status transition and field mutability (lifecycle)

Updates run field validation even when the state check fails, so the form
can show every problem at once. Nothing here performs I/O: calling
prepare_update twice with the same inputs (and the same ``now``) yields the
same result, so the store client may retry freely.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Generic, TypeVar, cast

from pydantic import ValidationError

from conducta.config import settings
from conducta.core.consistency import (
    RESOLUTION_STATUSES,
    clean_involved_students,
    requires_heightened_confirmation,
    validate_cross_fields,
)
from conducta.core.errors import (
    FieldError,
    FieldErrors,
    IllegalTransition,
    ImmutableFieldViolation,
    MalformedTemporalValue,
)
from conducta.core.lifecycle import (
    EDITABLE_FIELDS,
    WRITE_ONCE_FIELDS,
    can_transition,
    check_mutations,
    is_terminal,
)
from conducta.core.schemas.incidents import (
    DISPLAY_NAME_FIELDS,
    CreatePayload,
    IncidentFormInput,
    IncidentRecord,
    IncidentStatus,
    IncidentType,
    SeverityLevel,
    UpdatePayload,
)
from conducta.core.temporal import (
    normalize_date,
    normalize_time,
    to_wire_date,
    to_wire_time,
    to_wire_timestamp,
)
from conducta.core.validation import (
    NARRATIVE_FIELDS,
    clean_text,
    is_blank,
    parse_academic_year,
    validate_fields,
)

logger = logging.getLogger(__name__)

P = TypeVar("P", CreatePayload, UpdatePayload)

# Single-field rules re-checked on every update
UPDATE_VALIDATED_FIELDS = (
    *NARRATIVE_FIELDS,
    "followUpFrequency",
    "resolvedBy",
    "notificationDate",
    "status",
)


@dataclass
class AssemblyResult(Generic[P]):
    """Outcome of preparing a create or update request.

    Attributes:
        payload: Validated request body (None when anything failed)
        errors: Field-level errors, at most one per field
        transition_error: Set when the requested status change is illegal
        immutable_violation: Set when write-once fields (or any field of a
            CLOSED record) were changed
        requires_confirmation: GRAVE severity, caller must ask for an
            explicit heightened confirmation before writing
    """

    payload: P | None = None
    errors: FieldErrors = field(default_factory=FieldErrors)
    transition_error: IllegalTransition | None = None
    immutable_violation: ImmutableFieldViolation | None = None
    requires_confirmation: bool = False

    @property
    def ok(self) -> bool:
        return self.payload is not None

    def to_dict(self) -> dict[str, Any]:
        """Response body for the HTTP surface."""
        body: dict[str, Any] = {
            "ok": self.ok,
            "requiresConfirmation": self.requires_confirmation,
        }
        if self.payload is not None:
            body["payload"] = self.payload.to_wire()
        if self.errors:
            body["errors"] = self.errors.to_dict()
        if self.transition_error is not None:
            body["transitionError"] = self.transition_error.to_dict()
        if self.immutable_violation is not None:
            body["immutableViolation"] = self.immutable_violation.to_dict()
        return body


def _coerce_form(raw: IncidentFormInput | Mapping[str, Any]) -> IncidentFormInput:
    if isinstance(raw, IncidentFormInput):
        return raw
    return IncidentFormInput.model_validate(raw)


def _schema_errors(exc: ValidationError) -> FieldErrors:
    """Turn a pydantic parse failure into field errors keyed by wire name."""
    errors = FieldErrors()
    for detail in exc.errors():
        name = str(detail["loc"][0]) if detail["loc"] else "record"
        if detail["type"] == "missing":
            errors.add(FieldError(name, "required", f"El campo {name} es obligatorio"))
        else:
            errors.add(FieldError(name, "invalid", f"El campo {name} no es válido"))
    return errors


def _optional_timestamp(value: Any) -> str | None:
    if is_blank(value) or value == []:
        return None
    return to_wire_timestamp(value)


# ============================================================================
# Create
# ============================================================================


def prepare_create(
    raw: IncidentFormInput | Mapping[str, Any],
    *,
    today: date | None = None,
    enforce_parent_notification: bool | None = None,
) -> AssemblyResult[CreatePayload]:
    """Validate a create form and build the store request body.

    Args:
        raw: Form values (model or camelCase mapping)
        today: Reference date for the future-date and academic-year rules
        enforce_parent_notification: Override for the GRAVE notification policy

    Returns:
        AssemblyResult with a CreatePayload, or with every field error found
    """
    try:
        form = _coerce_form(raw)
    except ValidationError as e:
        logger.debug("Rejected incident create: unparseable form")
        return AssemblyResult(errors=_schema_errors(e))
    values = form.model_dump(by_alias=True)

    errors = validate_fields(values, today=today)

    requested_status = clean_text(values.get("status"))
    if requested_status is not None and requested_status != IncidentStatus.OPEN:
        errors.add(
            FieldError("status", "notAllowed", "Un incidente nuevo se registra como Abierto")
        )

    cross_values = {
        **values,
        "status": IncidentStatus.OPEN,
        "severityLevel": clean_text(values.get("severityLevel")),
    }
    errors.extend(
        validate_cross_fields(cross_values, enforce_parent_notification=enforce_parent_notification)
    )

    result: AssemblyResult[CreatePayload] = AssemblyResult(
        requires_confirmation=requires_heightened_confirmation(cross_values["severityLevel"])
    )

    if errors:
        logger.debug("Rejected incident create: fields %s", sorted(errors.errors))
        result.errors = errors
        return result

    # Both passed the required rules above
    student_id = cast(str, clean_text(form.student_id))
    academic_year = cast(int, parse_academic_year(form.academic_year))

    result.payload = CreatePayload(
        student_id=student_id,
        incident_date=to_wire_date(form.incident_date),  # type: ignore[arg-type]
        incident_time=to_wire_time(form.incident_time),  # type: ignore[arg-type]
        academic_year=academic_year,
        incident_type=IncidentType(clean_text(form.incident_type)),
        severity_level=SeverityLevel(clean_text(form.severity_level)),
        description=clean_text(form.description),
        location=clean_text(form.location),
        witnesses=clean_text(form.witnesses),
        other_students_involved=clean_involved_students(form.other_students_involved, student_id)
        or None,
        immediate_action=clean_text(form.immediate_action),
        follow_up_required=bool(form.follow_up_required),
        follow_up_frequency=clean_text(form.follow_up_frequency),
        parents_notified=form.parents_notified,
        notification_date=_optional_timestamp(form.notification_date),
        reported_by=clean_text(form.reported_by),
    )
    logger.info("Assembled incident create payload for student %s", student_id)
    return result


# ============================================================================
# Update
# ============================================================================


def _record_values(record: IncidentRecord) -> dict[str, Any]:
    """Current record as a wire-keyed mapping of its writable fields."""
    return {
        "studentId": record.student_id,
        "incidentDate": record.incident_date,
        "incidentTime": record.incident_time,
        "academicYear": record.academic_year,
        "incidentType": record.incident_type.value,
        "severityLevel": record.severity_level.value,
        "reportedBy": record.reported_by,
        "description": record.description,
        "location": record.location,
        "witnesses": record.witnesses,
        "otherStudentsInvolved": list(record.other_students_involved),
        "immediateAction": record.immediate_action,
        "followUpRequired": record.follow_up_required,
        "followUpFrequency": record.follow_up_frequency,
        "parentsNotified": record.parents_notified,
        "notificationDate": record.notification_date,
        "status": record.status.value,
        "resolvedBy": record.resolved_by,
    }


def submitted_fields(form: IncidentFormInput) -> set[str]:
    """Wire names of fields the form actually carries a value for.

    None, blank strings and lists holding only blank slots count as not
    submitted; booleans (including False) count as submitted. Display-name
    decoration is ignored.
    """
    submitted = set()
    for name, value in form.model_dump(by_alias=True).items():
        if name in DISPLAY_NAME_FIELDS or is_blank(value):
            continue
        if isinstance(value, list) and all(is_blank(item) for item in value):
            continue
        submitted.add(name)
    return submitted


def _minute_precision(value: Any) -> bool:
    """True when a submitted time carries no seconds ("HH:MM" or [hour, minute])."""
    if isinstance(value, str):
        return value.strip().count(":") == 1
    return isinstance(value, list) and len(value) == 2


def _write_once_differs(record_values: Mapping[str, Any], name: str, value: Any) -> bool:
    current = record_values[name]
    try:
        if name == "incidentDate":
            return normalize_date(value) != current
        if name == "incidentTime":
            # The form shows HH:MM, so stored seconds are not compared against it
            if _minute_precision(value):
                current = current.replace(second=0, microsecond=0)
            return normalize_time(value) != current
    except MalformedTemporalValue:
        return True
    if name == "academicYear":
        return parse_academic_year(value) != current
    return clean_text(value) != current


def prepare_update(
    current: IncidentRecord | Mapping[str, Any],
    raw: IncidentFormInput | Mapping[str, Any],
    *,
    now: datetime | None = None,
    enforce_parent_notification: bool | None = None,
) -> AssemblyResult[UpdatePayload]:
    """Validate an edit form against the stored record and build the update body.

    Fields missing from ``raw`` keep their current value. Write-once fields
    may be resubmitted unchanged while the record is OPEN or RESOLVED; any
    submitted field of a CLOSED record is a violation.

    Args:
        current: Record as loaded from the store (either temporal wire shape)
        raw: Form values (model or camelCase mapping)
        now: Instant stamped as resolvedAt on OPEN → RESOLVED
        enforce_parent_notification: Override for the GRAVE notification policy

    Returns:
        AssemblyResult with an UpdatePayload, or with field errors and/or the
        transition and immutability errors
    """
    try:
        record = (
            current
            if isinstance(current, IncidentRecord)
            else IncidentRecord.model_validate(current)
        )
        form = _coerce_form(raw)
    except ValidationError as e:
        logger.debug("Rejected incident update: unparseable record or form")
        return AssemblyResult(errors=_schema_errors(e))
    submitted = submitted_fields(form)
    form_values = form.model_dump(by_alias=True)

    # 1. Effective values: stored record overlaid with the editable fields sent
    record_values = _record_values(record)
    effective = dict(record_values)
    for name in EDITABLE_FIELDS:
        if form_values.get(name) is not None:
            effective[name] = form_values[name]

    requested = clean_text(effective.get("status")) or record.status.value
    effective["status"] = requested

    # 2. Field and cross-field rules
    errors = validate_fields(effective, fields=UPDATE_VALIDATED_FIELDS)

    cross_values = dict(effective)
    if "resolvedBy" not in submitted and requested not in RESOLUTION_STATUSES:
        # A resolver carried over from the stored record is not the caller's input
        cross_values["resolvedBy"] = None
    errors.extend(
        validate_cross_fields(
            cross_values, enforce_parent_notification=enforce_parent_notification
        )
    )

    # 3. Lifecycle rules
    if is_terminal(record.status):
        attempted = submitted
    else:
        attempted = (submitted & EDITABLE_FIELDS) | {
            name
            for name in submitted & WRITE_ONCE_FIELDS
            if _write_once_differs(record_values, name, form_values[name])
        }
    immutable_violation = check_mutations(record.status, attempted)

    transition_error = None
    if "status" not in errors:
        transition_error = can_transition(record.status, requested)

    result: AssemblyResult[UpdatePayload] = AssemblyResult(
        errors=errors,
        transition_error=transition_error,
        immutable_violation=immutable_violation,
        requires_confirmation=requires_heightened_confirmation(record.severity_level),
    )

    if errors or transition_error or immutable_violation:
        logger.debug(
            "Rejected incident %s update: fields=%s transition=%s immutable=%s",
            record.id,
            sorted(errors.errors),
            transition_error is not None,
            immutable_violation.fields if immutable_violation else [],
        )
        return result

    target = IncidentStatus(requested)
    if record.status is IncidentStatus.OPEN and target is IncidentStatus.RESOLVED:
        resolved_at: str | None = to_wire_timestamp(now or settings.now())
    elif record.resolved_at is not None:
        resolved_at = to_wire_timestamp(record.resolved_at)
    else:
        resolved_at = None

    result.payload = UpdatePayload(
        description=clean_text(effective["description"]),
        location=clean_text(effective["location"]),
        witnesses=clean_text(effective["witnesses"]),
        other_students_involved=clean_involved_students(
            effective["otherStudentsInvolved"], record.student_id
        ),
        immediate_action=clean_text(effective["immediateAction"]),
        follow_up_required=bool(effective["followUpRequired"]),
        follow_up_frequency=clean_text(effective["followUpFrequency"]),
        parents_notified=effective["parentsNotified"],
        notification_date=_optional_timestamp(effective["notificationDate"]),
        status=target,
        resolved_by=clean_text(effective["resolvedBy"]),
        resolved_at=resolved_at,
    )
    logger.info("Assembled incident %s update payload (status %s)", record.id, target)
    return result
