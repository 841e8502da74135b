"""
Unit tests for incident display formatting, statistics and confirmation prompts.
"""

from zoneinfo import ZoneInfo

from conducta.core.reporting import (
    confirmation_prompt,
    format_incident_for_display,
    summarize_incidents,
)

LIMA = ZoneInfo("America/Lima")


class TestFormatIncidentForDisplay:
    """Stored records rendered for the detail view."""

    def test_renders_temporal_fields(self, make_record):
        display = format_incident_for_display(make_record(), tz=LIMA)

        assert display.incident_date == "10-jun-2025"
        assert display.incident_time == "10:30"
        assert display.reported_at == "10-jun-2025 11:05"
        assert display.resolved_at is None

    def test_iso_and_array_shapes_render_alike(self, make_record):
        from_arrays = format_incident_for_display(make_record(), tz=LIMA)
        from_strings = format_incident_for_display(
            make_record(
                incidentDate="2025-06-10",
                incidentTime="10:30:00",
                reportedAt="2025-06-10T16:05:42Z",
            ),
            tz=LIMA,
        )
        assert from_strings == from_arrays

    def test_labels(self, make_record):
        display = format_incident_for_display(
            make_record(status="RESOLVED", resolvedBy="usr-200", resolvedAt=[2025, 6, 12, 9, 0]),
            tz=LIMA,
        )

        assert display.incident_type == "Conflicto"
        assert display.severity_level == "Moderado"
        assert display.status == "Resuelto"
        assert display.resolved_at == "12-jun-2025 09:00"

    def test_names_replace_ids(self, make_record):
        display = format_incident_for_display(
            make_record(otherStudentsNames=["Luis Mamani"]), tz=LIMA
        )
        assert display.other_students_involved == ["Luis Mamani"]

    def test_camel_case_dump(self, make_record):
        data = format_incident_for_display(make_record(), tz=LIMA).model_dump(by_alias=True)
        assert data["incidentDate"] == "10-jun-2025"
        assert data["studentName"] == "Ana Quispe"


class TestSummarizeIncidents:
    """Dashboard counts."""

    def test_counts(self, make_record):
        summary = summarize_incidents(
            [
                make_record(),
                make_record(id="b", incidentType="SALUD", severityLevel="GRAVE"),
                make_record(id="c", status="RESOLVED", resolvedBy="usr-200"),
            ]
        )

        assert summary.total == 3
        assert summary.by_type["CONFLICTO"] == 2
        assert summary.by_type["SALUD"] == 1
        assert summary.by_severity == {"LEVE": 0, "MODERADO": 2, "GRAVE": 1}
        assert summary.by_status == {"OPEN": 2, "RESOLVED": 1, "CLOSED": 0}

    def test_empty(self):
        summary = summarize_incidents([])

        assert summary.total == 0
        assert set(summary.by_type.values()) == {0}
        assert len(summary.by_type) == 5


class TestConfirmationPrompt:
    """Dialog text before a write."""

    def test_create(self):
        prompt = confirmation_prompt("LEVE", incident_type="ACCIDENTE")

        assert prompt.title == "¿Crear incidente?"
        assert "ACCIDENTE" in prompt.message
        assert prompt.heightened is False

    def test_create_grave(self):
        prompt = confirmation_prompt("GRAVE", incident_type="SALUD")

        assert prompt.title == "¿Crear incidente GRAVE?"
        assert "ATENCIÓN" in prompt.message
        assert prompt.heightened is True

    def test_update(self):
        prompt = confirmation_prompt(
            "MODERADO", status="RESOLVED", incident_id="9f1c2d3e-0000-4000-8000-000000000001"
        )

        assert prompt.title == "¿Actualizar incidente?"
        assert "9f1c2d3e..." in prompt.message
        assert "RESOLVED" in prompt.message

    def test_update_grave(self):
        prompt = confirmation_prompt("GRAVE", status="CLOSED", incident_id="abc")

        assert prompt.title == "¿Actualizar incidente GRAVE?"
        assert prompt.heightened is True
