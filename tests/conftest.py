"""
Pytest Configuration and Fixtures

Shared fixtures: a fixed reference date, a valid create form, and stored
records in both temporal wire shapes.
"""

from datetime import UTC, date, datetime
from typing import Any

import pytest

TODAY = date(2025, 6, 15)


@pytest.fixture
def today() -> date:
    """Fixed reference date for future-date and academic-year rules."""
    return TODAY


@pytest.fixture
def now() -> datetime:
    """Fixed instant used as resolvedAt."""
    return datetime(2025, 6, 15, 14, 30, tzinfo=UTC)


@pytest.fixture
def valid_form() -> dict[str, Any]:
    """Create form that passes every rule."""
    return {
        "studentId": "stu-001",
        "studentName": "Ana Quispe",
        "incidentDate": "2025-06-10",
        "incidentTime": "10:30",
        "academicYear": 2025,
        "incidentType": "CONFLICTO",
        "severityLevel": "MODERADO",
        "description": "A valid incident description.",
        "location": "Patio principal",
        "witnesses": "",
        "otherStudentsInvolved": [],
        "immediateAction": "Se separó a los estudiantes.",
        "followUpRequired": False,
        "reportedBy": "usr-100",
    }


@pytest.fixture
def make_record():
    """Factory for stored records, as the store returns them (array shapes)."""

    def _make(**overrides: Any) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": "9f1c2d3e-0000-4000-8000-000000000001",
            "studentId": "stu-001",
            "studentName": "Ana Quispe",
            "classroomId": "cls-10",
            "institutionId": "inst-1",
            "incidentDate": [2025, 6, 10],
            "incidentTime": [10, 30],
            "academicYear": 2025,
            "incidentType": "CONFLICTO",
            "severityLevel": "MODERADO",
            "description": "Discusión entre estudiantes en el recreo.",
            "location": "Patio principal",
            "witnesses": None,
            "otherStudentsInvolved": ["stu-002"],
            "immediateAction": "Se separó a los estudiantes.",
            "followUpRequired": False,
            "parentsNotified": None,
            "notificationDate": None,
            "status": "OPEN",
            "reportedBy": "usr-100",
            "reportedAt": [2025, 6, 10, 11, 5, 42, 123000000],
            "resolvedBy": None,
            "resolvedAt": None,
        }
        record.update(overrides)
        return record

    return _make
