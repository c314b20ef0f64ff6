# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the license application lifecycle.
"""

import re
import random
import pytest
from datetime import datetime
from pydantic import ValidationError as PydanticValidationError

from domain import lifecycle
from domain.errors import ValidationException
from models.enums import ApplicationStatus, LicenseTestResult, PaymentStatus
from models.requests import UpdateLicenseApplicationRequest

NOW = datetime(2024, 6, 15, 14, 30, 0)
LICENSE_NUMBER = re.compile(r'^DL-\d{4}-\d{5}$')


def passed_application(make_application, status=ApplicationStatus.FINAL_REVIEW):
    application = make_application("New License", status=status)
    for _, record in application.tests.records():
        record.result = LicenseTestResult.PASS
    return application


class TestDeriveStatus:

    def test_all_passed_means_final_review(self, make_application):
        application = passed_application(make_application, ApplicationStatus.TESTS_IN_PROGRESS)

        assert lifecycle.derive_status(application) == ApplicationStatus.FINAL_REVIEW

    def test_fail_after_final_review_returns_to_testing(self, make_application):
        application = passed_application(make_application)
        application.tests.practical.result = LicenseTestResult.FAIL

        status = lifecycle.derive_status(application, LicenseTestResult.FAIL)

        assert status == ApplicationStatus.TESTS_IN_PROGRESS

    @pytest.mark.parametrize("status", sorted(lifecycle.DECIDED_STATUSES))
    def test_decided_statuses_are_kept(self, make_application, status):
        application = make_application("New License", status=status)

        assert lifecycle.derive_status(application, LicenseTestResult.FAIL) == status

    def test_early_approval_reopens_when_tests_pass(self, make_application):
        application = passed_application(make_application, ApplicationStatus.APPROVED)

        assert lifecycle.derive_status(application) == ApplicationStatus.FINAL_REVIEW

    def test_issued_approval_is_kept(self, make_application):
        application = passed_application(make_application)
        approved = lifecycle.admin_set_status(
            application, ApplicationStatus.APPROVED, license_number="DL-2024-00042", now=NOW
        )

        assert lifecycle.derive_status(approved) == ApplicationStatus.APPROVED

    def test_auto_advance_returns_copy(self, make_application):
        application = passed_application(make_application, ApplicationStatus.TESTS_SCHEDULED)

        updated = lifecycle.auto_advance(application)

        assert updated.status == ApplicationStatus.FINAL_REVIEW
        assert application.status == ApplicationStatus.TESTS_SCHEDULED


class TestStatusTransitionValidation:

    def test_forward_transition_has_no_warnings(self):
        result = lifecycle.validate_status_transition(
            ApplicationStatus.FINAL_REVIEW, ApplicationStatus.APPROVED
        )

        assert result.is_valid is True
        assert result.warnings == []

    def test_regression_is_allowed_with_warning(self):
        result = lifecycle.validate_status_transition(
            ApplicationStatus.FINAL_REVIEW, ApplicationStatus.PENDING
        )

        assert result.is_valid is True
        assert any("regresses" in warning for warning in result.warnings)

    def test_leaving_terminal_state_warns(self):
        result = lifecycle.validate_status_transition(
            ApplicationStatus.REJECTED, ApplicationStatus.FINAL_REVIEW
        )

        assert any("terminal" in warning for warning in result.warnings)

    def test_premature_approval_warns(self):
        result = lifecycle.validate_status_transition(
            ApplicationStatus.TESTS_SCHEDULED, ApplicationStatus.APPROVED, all_tests_passed=False
        )

        assert any("no license number" in warning for warning in result.warnings)

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationException) as exc_info:
            lifecycle.parse_status("Archived")

        assert exc_info.value.field == "status"


class TestLicenseNumber:

    def test_format(self):
        number = lifecycle.generate_license_number(2024, random.Random(3))

        assert LICENSE_NUMBER.match(number)
        assert number.startswith("DL-2024-")

    def test_zero_padded(self):
        rng = random.Random()
        rng.randint = lambda low, high: 42

        assert lifecycle.generate_license_number(2025, rng) == "DL-2025-00042"

    def test_add_years_handles_leap_day(self):
        assert lifecycle.add_years(datetime(2024, 2, 29), 5) == datetime(2029, 2, 28)
        assert lifecycle.add_years(NOW, 5) == datetime(2029, 6, 15, 14, 30, 0)


class TestAdminSetStatus:
    """Test explicit administrator status changes."""

    def test_approval_issues_license(self, make_application):
        application = passed_application(make_application)

        updated = lifecycle.admin_set_status(
            application, ApplicationStatus.APPROVED, "admin-1", "DL-2024-01234", NOW
        )

        assert updated.status == ApplicationStatus.APPROVED
        assert updated.license_details.license_number == "DL-2024-01234"
        assert updated.license_details.issue_date == NOW
        assert updated.license_details.expiry_date == datetime(2029, 6, 15, 14, 30, 0)
        assert updated.approval_date == NOW
        assert updated.review_date == NOW
        assert updated.updated_by == "admin-1"

    def test_generates_number_when_not_supplied(self, make_application):
        updated = lifecycle.admin_set_status(
            passed_application(make_application), ApplicationStatus.APPROVED, now=NOW
        )

        assert LICENSE_NUMBER.match(updated.license_details.license_number)

    def test_premature_approval_issues_nothing(self, make_application):
        application = make_application("New License", status=ApplicationStatus.TESTS_IN_PROGRESS)

        updated = lifecycle.admin_set_status(application, ApplicationStatus.APPROVED, now=NOW)

        assert updated.status == ApplicationStatus.APPROVED
        assert updated.license_details is None
        assert updated.approval_date is None
        assert updated.review_date == NOW

    def test_existing_number_never_replaced(self, make_application):
        application = passed_application(make_application)
        approved = lifecycle.admin_set_status(
            application, ApplicationStatus.APPROVED, license_number="DL-2024-00001", now=NOW
        )
        reopened = lifecycle.admin_set_status(approved, ApplicationStatus.FINAL_REVIEW, now=NOW)

        reapproved = lifecycle.admin_set_status(
            reopened, ApplicationStatus.APPROVED, license_number="DL-2024-99999", now=NOW
        )

        assert reapproved.license_details.license_number == "DL-2024-00001"

    def test_license_issued_sets_issue_date_once(self, make_application):
        application = make_application("Replacement", status=ApplicationStatus.APPROVED)
        later = datetime(2024, 7, 1)

        issued = lifecycle.admin_set_status(application, ApplicationStatus.LICENSE_ISSUED, now=NOW)
        reverted = lifecycle.admin_set_status(issued, ApplicationStatus.APPROVED, now=later)
        reissued = lifecycle.admin_set_status(reverted, ApplicationStatus.LICENSE_ISSUED, now=later)

        assert issued.issue_date == NOW
        assert reissued.issue_date == NOW

    def test_same_status_is_a_no_op(self, make_application):
        application = make_application(status=ApplicationStatus.FINAL_REVIEW)

        updated = lifecycle.admin_set_status(application, ApplicationStatus.FINAL_REVIEW, now=NOW)

        assert updated.review_date is None

    def test_rejection_needs_no_tests(self, make_application):
        application = make_application("New License")

        updated = lifecycle.admin_set_status(application, ApplicationStatus.REJECTED, now=NOW)

        assert updated.status == ApplicationStatus.REJECTED
        assert updated.license_details is None


class TestApplyPatch:
    """Test field updates from an update request."""

    def test_owner_fields_applied(self, make_application):
        application = make_application()
        patch = UpdateLicenseApplicationRequest.model_validate({
            "licenseClass": "Class 4",
            "emergencyContact": {"name": "Ana Costa", "relationship": "Sister", "phone": "555-0101"}
        })

        updated = lifecycle.apply_patch(application, patch, application.user_id, NOW)

        assert updated.license_class == "Class 4"
        assert updated.emergency_contact.name == "Ana Costa"
        assert application.license_class == "Class 3"

    def test_required_field_cannot_be_cleared(self, make_application):
        patch = UpdateLicenseApplicationRequest.model_validate({"emergencyContact": None})

        with pytest.raises(ValidationException) as exc_info:
            lifecycle.apply_patch(make_application(), patch, "user", NOW)

        assert exc_info.value.field == "emergency_contact"

    def test_fee_change_recomputes_total(self, make_application):
        application = make_application("Renewal")
        patch = UpdateLicenseApplicationRequest.model_validate({"fees": {"penaltyFee": 25}})

        updated = lifecycle.apply_patch(application, patch, "admin", NOW)

        assert updated.fees.penalty_fee == 25
        assert updated.fees.total_fee == 275
        assert updated.fees.application_fee == 50

    def test_paid_sets_payment_date(self, make_application):
        patch = UpdateLicenseApplicationRequest.model_validate({"fees": {"paymentStatus": "Paid"}})

        updated = lifecycle.apply_patch(make_application(), patch, "admin", NOW)

        assert updated.fees.payment_status == PaymentStatus.PAID
        assert updated.fees.payment_date == NOW

    def test_total_fee_not_patchable(self):
        with pytest.raises(PydanticValidationError):
            UpdateLicenseApplicationRequest.model_validate({"fees": {"totalFee": 1}})

    def test_license_details_require_issued_license(self, make_application):
        patch = UpdateLicenseApplicationRequest.model_validate(
            {"licenseDetails": {"restrictions": ["Corrective lenses"]}}
        )

        with pytest.raises(ValidationException):
            lifecycle.apply_patch(make_application(), patch, "admin", NOW)

    def test_license_details_restrictions(self, make_application):
        application = lifecycle.admin_set_status(
            passed_application(make_application), ApplicationStatus.APPROVED,
            license_number="DL-2024-00007", now=NOW
        )
        patch = UpdateLicenseApplicationRequest.model_validate(
            {"licenseDetails": {"restrictions": ["Corrective lenses"], "endorsements": ["Motorcycle"]}}
        )

        updated = lifecycle.apply_patch(application, patch, "admin", NOW)

        assert updated.license_details.restrictions == ["Corrective lenses"]
        assert updated.license_details.endorsements == ["Motorcycle"]
        assert updated.license_details.license_number == "DL-2024-00007"


class TestAdminNotes:

    def test_note_appended_without_mutating_input(self, make_application):
        application = make_application(status=ApplicationStatus.LICENSE_ISSUED)

        first = lifecycle.add_note(application, "Documents verified", "admin-1", NOW)
        second = lifecycle.add_note(first, "  Called applicant  ", "admin-2", NOW)

        assert application.admin_notes == []
        assert len(first.admin_notes) == 1
        assert [note.text for note in second.admin_notes] == ["Documents verified", "Called applicant"]
        assert second.admin_notes[1].author == "admin-2"
        assert second.admin_notes[1].timestamp == NOW
        assert second.status == ApplicationStatus.LICENSE_ISSUED

    def test_empty_note_rejected(self, make_application):
        with pytest.raises(ValidationException):
            lifecycle.add_note(make_application(), "   ", "admin-1", NOW)
