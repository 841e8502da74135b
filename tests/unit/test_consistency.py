"""
Unit tests for cross-field consistency rules.
"""

import pytest

from conducta.core.consistency import (
    clean_involved_students,
    requires_heightened_confirmation,
    validate_cross_fields,
    validate_follow_up,
    validate_parent_notification,
    validate_resolution,
)


class TestFollowUp:
    """followUpFrequency goes with followUpRequired."""

    def test_required_when_flag_set(self):
        """Flag set without frequency is an error."""
        error = validate_follow_up(True, None)
        assert error.field == "followUpFrequency"
        assert error.code == "required"

    def test_blank_frequency_counts_as_missing(self):
        """Whitespace-only frequency is missing."""
        assert validate_follow_up(True, "   ").code == "required"

    def test_flag_with_frequency(self):
        """Flag set with frequency is fine."""
        assert validate_follow_up(True, "Semanal") is None

    def test_frequency_without_flag(self):
        """Frequency without the flag is not allowed."""
        assert validate_follow_up(False, "Semanal").code == "notAllowed"

    def test_neither(self):
        """No flag and no frequency is fine."""
        assert validate_follow_up(False, None) is None
        assert validate_follow_up(None, "") is None


class TestResolution:
    """resolvedBy goes with RESOLVED / CLOSED."""

    @pytest.mark.parametrize("status", ["RESOLVED", "CLOSED"])
    def test_required_for_resolution_statuses(self, status):
        """Resolution statuses need a resolver."""
        error = validate_resolution(status, "  ")
        assert error.field == "resolvedBy"
        assert error.code == "required"
        assert error.message == "Se requiere especificar quien resolvió el incidente"

    def test_resolved_with_resolver(self):
        """Resolver present is fine."""
        assert validate_resolution("RESOLVED", "usr-200") is None

    def test_open_with_resolver(self):
        """An OPEN incident cannot carry a resolver."""
        assert validate_resolution("OPEN", "usr-200").code == "notAllowed"

    def test_open_without_resolver(self):
        """OPEN without resolver is fine."""
        assert validate_resolution("OPEN", None) is None


class TestParentNotification:
    """Optional policy for GRAVE incidents."""

    def test_disabled_by_default(self):
        """Policy is off unless enabled."""
        assert validate_parent_notification("GRAVE", "RESOLVED", None, enforce=False) is None

    def test_enforced_requires_notification(self):
        """GRAVE resolution without notification fails when enforced."""
        error = validate_parent_notification("GRAVE", "RESOLVED", False, enforce=True)
        assert error.field == "parentsNotified"
        assert error.code == "required"

    def test_enforced_with_notification(self):
        """Notified parents satisfy the policy."""
        assert validate_parent_notification("GRAVE", "CLOSED", True, enforce=True) is None

    def test_enforced_only_for_grave(self):
        """Lower severities are not affected."""
        assert validate_parent_notification("MODERADO", "RESOLVED", None, enforce=True) is None

    def test_enforced_only_on_resolution(self):
        """OPEN GRAVE incidents are not affected."""
        assert validate_parent_notification("GRAVE", "OPEN", None, enforce=True) is None


class TestInvolvedStudents:
    """Cleaning of the other-students list."""

    def test_drops_primary_duplicates_and_blanks(self):
        """Primary student, duplicates and blank slots are removed."""
        assert clean_involved_students(["stu-001", "s2", "s2", ""], "stu-001") == ["s2"]

    def test_keeps_first_seen_order(self):
        """Order of first appearance is kept."""
        assert clean_involved_students(["s3", "s1", "s3", "s2"], "x") == ["s3", "s1", "s2"]

    def test_trims_entries(self):
        """Entries are trimmed before comparison."""
        assert clean_involved_students([" s2 ", "s2", " stu-001"], "stu-001") == ["s2"]

    def test_none_list(self):
        """Missing list becomes empty."""
        assert clean_involved_students(None, "stu-001") == []


class TestHeightenedConfirmation:
    """GRAVE needs the extra confirmation."""

    def test_grave(self):
        assert requires_heightened_confirmation("GRAVE") is True

    @pytest.mark.parametrize("severity", ["LEVE", "MODERADO", None])
    def test_other_severities(self, severity):
        assert requires_heightened_confirmation(severity) is False


class TestValidateCrossFields:
    """All cross-field rules together."""

    def test_collects_every_error(self):
        """Follow-up and resolution errors are both reported."""
        errors = validate_cross_fields(
            {
                "followUpRequired": True,
                "followUpFrequency": None,
                "status": "RESOLVED",
                "resolvedBy": "",
                "severityLevel": "LEVE",
            },
            enforce_parent_notification=False,
        )
        assert {e.field: e.code for e in errors} == {
            "followUpFrequency": "required",
            "resolvedBy": "required",
        }

    def test_consistent_values(self):
        """A consistent OPEN form has no errors."""
        errors = validate_cross_fields(
            {"followUpRequired": False, "status": "OPEN", "severityLevel": "GRAVE"},
            enforce_parent_notification=True,
        )
        assert not errors
