"""
Incident Validation API

Endpoints the form layer calls before sending a create or update to the
incident store, plus read-side rendering and statistics.
"""

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from conducta.core.assembler import AssemblyResult, prepare_create, prepare_update
from conducta.core.lifecycle import allowed_targets, is_terminal, mutable_fields
from conducta.core.reporting import (
    confirmation_prompt,
    format_incident_for_display,
    summarize_incidents,
)
from conducta.core.schemas.incidents import (
    IncidentFormInput,
    IncidentRecord,
    IncidentStatus,
    WireModel,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class UpdateValidationRequest(WireModel):
    """Stored record plus the edit form values.

    ``requestedAt`` is the instant stamped as resolvedAt on OPEN → RESOLVED.
    Clients that retry should send the same value each time; without it the
    server clock is used and each retry gets a new resolvedAt.
    """

    current: IncidentRecord
    changes: IncidentFormInput
    requested_at: datetime | None = None


def _respond(result: AssemblyResult[Any], prompt: dict[str, Any]) -> JSONResponse:
    body = result.to_dict()
    body["confirmation"] = prompt
    return JSONResponse(status_code=200 if result.ok else 422, content=body)


@router.post("/validate", response_model=None)
async def validate_create(form: IncidentFormInput) -> JSONResponse:
    """
    Validate a create form.

    Returns 200 with the store request body, or 422 with every field error.
    """
    result = prepare_create(form)
    prompt = confirmation_prompt(
        (form.severity_level or "").strip(),
        incident_type=(form.incident_type or "").strip(),
    )
    return _respond(result, asdict(prompt))


@router.post("/{incident_id}/validate-update", response_model=None)
async def validate_update(incident_id: str, body: UpdateValidationRequest) -> JSONResponse:
    """
    Validate an edit form against the stored record.

    Returns 200 with the update body, or 422 with field errors, the
    illegal-transition error and/or the immutable-field violation.
    """
    if body.current.id != incident_id:
        logger.warning("Update validation for %s received record %s", incident_id, body.current.id)
        raise HTTPException(status_code=400, detail="Incident id does not match the record")

    result = prepare_update(body.current, body.changes, now=body.requested_at)
    target = (body.changes.status or "").strip() or body.current.status.value
    prompt = confirmation_prompt(
        body.current.severity_level.value,
        status=target,
        incident_id=incident_id,
    )
    return _respond(result, asdict(prompt))


@router.get("/transitions/{status}")
async def get_transitions(status: IncidentStatus) -> dict[str, Any]:
    """Statuses reachable from ``status`` and the fields editable in it."""
    return {
        "status": status.value,
        "terminal": is_terminal(status),
        "allowedTargets": [target.value for target in allowed_targets(status)],
        "mutableFields": sorted(mutable_fields(status)),
    }


@router.post("/display")
async def display_incident(record: IncidentRecord) -> dict[str, Any]:
    """Render a stored incident for the detail view."""
    return format_incident_for_display(record).model_dump(by_alias=True)


@router.post("/summary")
async def incident_summary(records: list[IncidentRecord]) -> dict[str, Any]:
    """Count incidents by type, severity and status."""
    return summarize_incidents(records).model_dump(by_alias=True)
