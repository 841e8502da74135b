"""
Incident Pydantic Schemas

Stored record (read side), raw form input, and outbound create/update
payloads. Wire keys are camelCase; Python attributes are snake_case.
"""

from __future__ import annotations

from datetime import date, datetime, time
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from conducta.core.temporal import normalize_date, normalize_time, normalize_timestamp


class IncidentType(StrEnum):
    ACCIDENTE = "ACCIDENTE"
    CONFLICTO = "CONFLICTO"
    COMPORTAMIENTO = "COMPORTAMIENTO"
    EMOCIONAL = "EMOCIONAL"
    SALUD = "SALUD"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class SeverityLevel(StrEnum):
    LEVE = "LEVE"
    MODERADO = "MODERADO"
    GRAVE = "GRAVE"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class IncidentStatus(StrEnum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    IncidentStatus.OPEN: "Abierto",
    IncidentStatus.RESOLVED: "Resuelto",
    IncidentStatus.CLOSED: "Cerrado",
}


class WireModel(BaseModel):
    """Base for models exchanged with the store and the form layer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# ============================================================================
# Read side
# ============================================================================


class IncidentRecord(WireModel):
    """Incident as loaded from the store.

    Temporal fields accept either wire shape (ISO string or component
    array) and hold canonical values after validation.
    """

    id: str
    student_id: str
    student_name: str | None = None
    classroom_id: str | None = None
    institution_id: str | None = None

    incident_date: date
    incident_time: time
    academic_year: int
    reported_at: datetime | None = None

    incident_type: IncidentType
    severity_level: SeverityLevel

    description: str
    location: str
    witnesses: str | None = None
    immediate_action: str | None = None

    other_students_involved: list[str] = Field(default_factory=list)
    other_students_names: list[str] | None = None

    follow_up_required: bool = False
    follow_up_frequency: str | None = None
    parents_notified: bool | None = None
    notification_date: datetime | None = None

    status: IncidentStatus = IncidentStatus.OPEN
    reported_by: str
    reported_by_name: str | None = None
    resolved_by: str | None = None
    resolved_by_name: str | None = None
    resolved_at: datetime | None = None

    @field_validator("incident_date", mode="before")
    @classmethod
    def parse_incident_date(cls, v: Any) -> date:
        return normalize_date(v)

    @field_validator("incident_time", mode="before")
    @classmethod
    def parse_incident_time(cls, v: Any) -> time:
        return normalize_time(v)

    @field_validator("reported_at", "notification_date", "resolved_at", mode="before")
    @classmethod
    def parse_timestamps(cls, v: Any) -> datetime | None:
        if v is None or v == "":
            return None
        return normalize_timestamp(v)

    @field_validator("other_students_involved", mode="before")
    @classmethod
    def parse_involved(cls, v: Any) -> list[str]:
        return [] if v is None else v


# ============================================================================
# Form input (caller side, raw and unvalidated)
# ============================================================================


class IncidentFormInput(WireModel):
    """Raw values gathered by a create or edit form.

    Every field is optional here; which ones are required is decided by
    the rule set, so a missing field becomes a FieldError rather than a
    schema failure. Display names (studentName, reportedByName, ...) are
    accepted as decoration and never validated.
    """

    student_id: str | None = None
    student_name: str | None = None
    incident_date: str | list[int] | None = None
    incident_time: str | list[int] | None = None
    academic_year: int | str | None = None
    incident_type: str | None = None
    severity_level: str | None = None

    description: str | None = None
    location: str | None = None
    witnesses: str | None = None
    immediate_action: str | None = None

    other_students_involved: list[str] | None = None
    other_students_names: list[str] | None = None

    follow_up_required: bool | None = None
    follow_up_frequency: str | None = None
    parents_notified: bool | None = None
    notification_date: str | list[int] | None = None

    status: str | None = None
    reported_by: str | None = None
    reported_by_name: str | None = None
    resolved_by: str | None = None
    resolved_by_name: str | None = None


# Decoration fields the engine carries but never validates or compares
DISPLAY_NAME_FIELDS = frozenset(
    {"studentName", "otherStudentsNames", "reportedByName", "resolvedByName"}
)


# ============================================================================
# Outbound payloads (write side, ISO strings only)
# ============================================================================


class OutboundPayload(WireModel):
    """Payload sent to the store. Absent optional values are None and
    dropped from the wire body."""

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class CreatePayload(OutboundPayload):
    """Request body for creating an incident."""

    student_id: str
    incident_date: str
    incident_time: str
    academic_year: int
    incident_type: IncidentType
    severity_level: SeverityLevel
    description: str
    location: str
    witnesses: str | None = None
    other_students_involved: list[str] | None = None
    immediate_action: str
    follow_up_required: bool = False
    follow_up_frequency: str | None = None
    parents_notified: bool | None = None
    notification_date: str | None = None
    reported_by: str


class UpdatePayload(OutboundPayload):
    """Request body for updating an incident (mutable fields only)."""

    description: str
    location: str
    witnesses: str | None = None
    other_students_involved: list[str] = Field(default_factory=list)
    immediate_action: str
    follow_up_required: bool = False
    follow_up_frequency: str | None = None
    parents_notified: bool | None = None
    notification_date: str | None = None
    status: IncidentStatus
    resolved_by: str | None = None
    resolved_at: str | None = None
