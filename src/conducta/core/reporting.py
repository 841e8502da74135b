"""
Incident Display and Statistics

Read-side helpers: render a stored record for the detail view, count
records for the dashboard, and word the confirmation asked before a write.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import tzinfo
from typing import Any

from pydantic import Field

from conducta.core.consistency import requires_heightened_confirmation
from conducta.core.schemas.incidents import (
    IncidentRecord,
    IncidentStatus,
    IncidentType,
    SeverityLevel,
    WireModel,
)
from conducta.core.temporal import render_date, render_time, render_timestamp


class IncidentDisplay(WireModel):
    """Stored record with every temporal field rendered for humans."""

    id: str
    student_id: str
    student_name: str | None = None
    incident_date: str
    incident_time: str
    academic_year: int
    incident_type: str
    severity_level: str
    status: str
    description: str
    location: str
    witnesses: str | None = None
    immediate_action: str | None = None
    other_students_involved: list[str] = Field(default_factory=list)
    follow_up_required: bool
    parents_notified: bool | None = None
    notification_date: str | None = None
    reported_by: str
    reported_by_name: str | None = None
    reported_at: str | None = None
    resolved_by: str | None = None
    resolved_by_name: str | None = None
    resolved_at: str | None = None


class IncidentSummary(WireModel):
    """Incident counts for the dashboard."""

    total: int = 0
    by_type: dict[str, int] = Field(default_factory=dict)
    by_severity: dict[str, int] = Field(default_factory=dict)
    by_status: dict[str, int] = Field(default_factory=dict)


@dataclass(frozen=True)
class ConfirmationPrompt:
    """Text of the dialog shown before a create or update is sent.

    Attributes:
        title: Dialog title
        message: Dialog body
        heightened: GRAVE incident, the caller must require an explicit confirmation
    """

    title: str
    message: str
    heightened: bool


def _record(value: IncidentRecord | Mapping[str, Any]) -> IncidentRecord:
    if isinstance(value, IncidentRecord):
        return value
    return IncidentRecord.model_validate(value)


def format_incident_for_display(
    incident: IncidentRecord | Mapping[str, Any], tz: tzinfo | None = None
) -> IncidentDisplay:
    """Render a stored incident (either temporal wire shape) for the detail view.

    Dates render as "D-mon-YYYY", times as "HH:MM", instants as
    "D-mon-YYYY HH:MM" in the institution timezone. Enumerations render as
    their Spanish labels.
    """
    record = _record(incident)

    def instant(value: Any) -> str | None:
        return render_timestamp(value, tz=tz) if value is not None else None

    return IncidentDisplay(
        id=record.id,
        student_id=record.student_id,
        student_name=record.student_name,
        incident_date=render_date(record.incident_date),
        incident_time=render_time(record.incident_time),
        academic_year=record.academic_year,
        incident_type=record.incident_type.label,
        severity_level=record.severity_level.label,
        status=record.status.label,
        description=record.description,
        location=record.location,
        witnesses=record.witnesses,
        immediate_action=record.immediate_action,
        other_students_involved=record.other_students_names or record.other_students_involved,
        follow_up_required=record.follow_up_required,
        parents_notified=record.parents_notified,
        notification_date=instant(record.notification_date),
        reported_by=record.reported_by,
        reported_by_name=record.reported_by_name,
        reported_at=instant(record.reported_at),
        resolved_by=record.resolved_by,
        resolved_by_name=record.resolved_by_name,
        resolved_at=instant(record.resolved_at),
    )


def summarize_incidents(
    incidents: Iterable[IncidentRecord | Mapping[str, Any]],
) -> IncidentSummary:
    """Count incidents by type, severity and status.

    Every enumeration member appears in its breakdown, with 0 when unused.
    """
    records = [_record(incident) for incident in incidents]
    by_type = Counter(record.incident_type.value for record in records)
    by_severity = Counter(record.severity_level.value for record in records)
    by_status = Counter(record.status.value for record in records)

    return IncidentSummary(
        total=len(records),
        by_type={member.value: by_type[member.value] for member in IncidentType},
        by_severity={member.value: by_severity[member.value] for member in SeverityLevel},
        by_status={member.value: by_status[member.value] for member in IncidentStatus},
    )


def confirmation_prompt(
    severity: str,
    *,
    incident_type: str | None = None,
    status: str | None = None,
    incident_id: str | None = None,
) -> ConfirmationPrompt:
    """Word the dialog shown before writing.

    Without ``incident_id`` the prompt is for a create; with it, for an
    update to ``status``. GRAVE incidents get the heightened wording.
    """
    heightened = requires_heightened_confirmation(severity)

    if incident_id is None:
        return ConfirmationPrompt(
            title="¿Crear incidente GRAVE?" if heightened else "¿Crear incidente?",
            message=(
                f"Se creará un incidente de tipo {incident_type} con severidad {severity}. "
                + (
                    "ATENCIÓN: la severidad es GRAVE. ¿Está seguro de que desea continuar?"
                    if heightened
                    else "¿Desea continuar?"
                )
            ),
            heightened=heightened,
        )

    if heightened:
        return ConfirmationPrompt(
            title="¿Actualizar incidente GRAVE?",
            message=(
                "ATENCIÓN: Este es un incidente de severidad GRAVE. "
                f"Se actualizará con estado: {status}. "
                "¿Está seguro de que desea continuar?"
            ),
            heightened=True,
        )
    return ConfirmationPrompt(
        title="¿Actualizar incidente?",
        message=(
            f"Se actualizará el incidente con ID: {incident_id[:8]}... "
            f"Estado: {status}. ¿Desea continuar?"
        ),
        heightened=False,
    )
