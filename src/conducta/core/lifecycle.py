"""
Incident Lifecycle State Machine

OPEN (initial) → RESOLVED → CLOSED (terminal).

Status only moves forward. A CLOSED record is frozen: no transition (not
even CLOSED → CLOSED) and no field mutation is accepted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from conducta.core.errors import IllegalTransition, ImmutableFieldViolation
from conducta.core.schemas.incidents import IncidentStatus

logger = logging.getLogger(__name__)

# Settable at creation only
WRITE_ONCE_FIELDS = frozenset(
    {
        "studentId",
        "incidentDate",
        "incidentTime",
        "academicYear",
        "incidentType",
        "severityLevel",
        "reportedBy",
    }
)

# Editable while the record is OPEN or RESOLVED
EDITABLE_FIELDS = frozenset(
    {
        "description",
        "location",
        "witnesses",
        "otherStudentsInvolved",
        "immediateAction",
        "followUpRequired",
        "followUpFrequency",
        "parentsNotified",
        "notificationDate",
        "resolvedBy",
        "status",
    }
)

TRANSITIONS: dict[IncidentStatus, frozenset[IncidentStatus]] = {
    IncidentStatus.OPEN: frozenset({IncidentStatus.OPEN, IncidentStatus.RESOLVED}),
    IncidentStatus.RESOLVED: frozenset({IncidentStatus.RESOLVED, IncidentStatus.CLOSED}),
    IncidentStatus.CLOSED: frozenset(),
}

_ORDER = (IncidentStatus.OPEN, IncidentStatus.RESOLVED, IncidentStatus.CLOSED)


def is_terminal(status: IncidentStatus | str) -> bool:
    return IncidentStatus(status) is IncidentStatus.CLOSED


def can_transition(
    current: IncidentStatus | str, requested: IncidentStatus | str
) -> IllegalTransition | None:
    """Check a status change.

    Args:
        current: Status of the stored record
        requested: Status the caller asks for

    Returns:
        None if the change is legal, otherwise an IllegalTransition describing it
    """
    current = IncidentStatus(current)
    requested = IncidentStatus(requested)

    if requested in TRANSITIONS[current]:
        return None

    if current is IncidentStatus.CLOSED:
        message = "No se puede modificar un incidente cerrado"
    elif _ORDER.index(requested) < _ORDER.index(current):
        message = f'No se puede cambiar de "{current.label}" a "{requested.label}"'
    else:
        message = f'El incidente debe estar "{IncidentStatus.RESOLVED.label}" antes de cerrarse'

    logger.debug("Rejected status transition %s -> %s", current, requested)
    return IllegalTransition(current.value, requested.value, message)


def allowed_targets(current: IncidentStatus | str) -> tuple[IncidentStatus, ...]:
    """Statuses a record in ``current`` may move to, in lifecycle order."""
    targets = TRANSITIONS[IncidentStatus(current)]
    return tuple(status for status in _ORDER if status in targets)


def mutable_fields(status: IncidentStatus | str) -> frozenset[str]:
    """Fields an update may change while the record is in ``status``.

    Write-once fields are never included; a CLOSED record has none.
    """
    if is_terminal(status):
        return frozenset()
    return EDITABLE_FIELDS


def check_mutations(
    status: IncidentStatus | str, attempted: Iterable[str]
) -> ImmutableFieldViolation | None:
    """Reject attempts to change fields outside ``mutable_fields(status)``.

    Args:
        status: Current status of the record
        attempted: Wire names of the fields the caller tries to change

    Returns:
        None if every field may change, otherwise an ImmutableFieldViolation
    """
    allowed = mutable_fields(status)
    blocked = sorted(set(attempted) - allowed)
    if not blocked:
        return None

    if is_terminal(status):
        message = "No se puede modificar un incidente cerrado"
    else:
        message = "Los siguientes campos no se pueden modificar: " + ", ".join(blocked)
    return ImmutableFieldViolation(blocked, message)
