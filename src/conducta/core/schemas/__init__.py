"""
Pydantic Schemas

Wire models for incidents: stored records, form input and outbound payloads.
"""

from .incidents import (
    CreatePayload,
    IncidentFormInput,
    IncidentRecord,
    IncidentStatus,
    IncidentType,
    SeverityLevel,
    UpdatePayload,
)

__all__ = [
    "CreatePayload",
    "IncidentFormInput",
    "IncidentRecord",
    "IncidentStatus",
    "IncidentType",
    "SeverityLevel",
    "UpdatePayload",
]
