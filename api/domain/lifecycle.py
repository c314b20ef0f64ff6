# SPDX-License-Identifier: Apache-2.0

"""
License application lifecycle.

This module holds the state machine of an application: automatic status
derivation from test outcomes, explicit administrator status changes with
their issuance side effects, owner patches and administrator notes. All
functions are pure and return updated copies.
"""

import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from models.entities import AdminNote, LicenseApplication, LicenseDetails
from models.enums import ApplicationStatus, LicenseTestResult, PaymentStatus
from models.requests import UpdateLicenseApplicationRequest
from .errors import ValidationException

LICENSE_VALIDITY_YEARS = 5
LICENSE_NUMBER_PREFIX = "DL"

# Statuses reached by an administrator decision; test activity no longer moves them
DECIDED_STATUSES = frozenset({
    ApplicationStatus.APPROVED,
    ApplicationStatus.REJECTED,
    ApplicationStatus.LICENSE_ISSUED,
})

TERMINAL_STATUSES = frozenset({
    ApplicationStatus.REJECTED,
    ApplicationStatus.LICENSE_ISSUED,
})

STATUS_RANK = {
    ApplicationStatus.PENDING: 0,
    ApplicationStatus.DOCUMENTS_REVIEW: 1,
    ApplicationStatus.TESTS_SCHEDULED: 1,
    ApplicationStatus.TESTS_IN_PROGRESS: 2,
    ApplicationStatus.MEDICAL_EXAMINATION: 2,
    ApplicationStatus.FINAL_REVIEW: 3,
    ApplicationStatus.APPROVED: 4,
    ApplicationStatus.REJECTED: 4,
    ApplicationStatus.LICENSE_ISSUED: 5,
}

OWNER_EDITABLE_FIELDS = (
    'license_type',
    'license_class',
    'current_license',
    'emergency_contact',
    'medical_info',
    'documents',
)

_NON_NULLABLE_FIELDS = ('license_type', 'license_class', 'emergency_contact', 'medical_info', 'documents')


@dataclass
class ValidationResult:
    """Result of a status transition check."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def parse_status(value) -> ApplicationStatus:
    try:
        return ApplicationStatus(value)
    except ValueError:
        raise ValidationException(f"Invalid application status: {value}", field="status")


def derive_status(
    application: LicenseApplication,
    last_result: Optional[LicenseTestResult] = None
) -> ApplicationStatus:
    """
    Derive the status implied by the test state.

    Once every required test passes the application is ready for final
    review; a failed attempt otherwise keeps it in testing. Administrator
    decisions are kept, except an approval given before the tests passed:
    it returns to final review once they do, so approving again issues the
    license number.
    """
    current = ApplicationStatus(application.status)
    all_passed = application.tests.all_required_passed()

    if (current == ApplicationStatus.APPROVED and all_passed
            and not application.has_license_number()):
        return ApplicationStatus.FINAL_REVIEW
    if current in DECIDED_STATUSES:
        return current

    if all_passed:
        return ApplicationStatus.FINAL_REVIEW
    if last_result == LicenseTestResult.FAIL:
        return ApplicationStatus.TESTS_IN_PROGRESS
    return current


def auto_advance(
    application: LicenseApplication,
    last_result: Optional[LicenseTestResult] = None
) -> LicenseApplication:
    """Return a copy whose status reflects the current test outcomes."""
    status = derive_status(application, last_result)
    updated = application.model_copy(deep=True)
    updated.status = status
    return updated


def validate_status_transition(
    current_status: ApplicationStatus,
    new_status: ApplicationStatus,
    all_tests_passed: bool = True
) -> ValidationResult:
    """
    Check an administrator status change.

    Administrators may set any status, so the result is always valid; the
    warnings flag overrides worth logging.
    """
    current = ApplicationStatus(current_status)
    new = ApplicationStatus(new_status)
    warnings = []

    if current in TERMINAL_STATUSES and new != current:
        warnings.append(f"Status leaves terminal state {current.value}")
    elif STATUS_RANK[new] < STATUS_RANK[current]:
        warnings.append(f"Status regresses from {current.value} to {new.value}")

    if new == ApplicationStatus.APPROVED and not all_tests_passed:
        warnings.append("Approved before all required tests passed; no license number issued")

    return ValidationResult(is_valid=True, warnings=warnings)


def generate_license_number(year: Optional[int] = None, rng: Optional[random.Random] = None) -> str:
    """
    Generate a candidate license number ``DL-<year>-<5 digits>``.

    The number is random and may collide; uniqueness is enforced by the
    store and collisions are retried by the caller.
    """
    year = year or datetime.utcnow().year
    rng = rng or random
    return f"{LICENSE_NUMBER_PREFIX}-{year}-{rng.randint(0, 99999):05d}"


def add_years(moment: datetime, years: int) -> datetime:
    """Add calendar years; Feb 29 rolls back to Feb 28 in non-leap years."""
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:
        return moment.replace(year=moment.year + years, day=28)


def should_issue_license(application: LicenseApplication, new_status) -> bool:
    """Approval issues a number only once, and only when all required tests passed."""
    return (
        ApplicationStatus(new_status) == ApplicationStatus.APPROVED
        and application.tests.all_required_passed()
        and not application.has_license_number()
    )


def admin_set_status(
    application: LicenseApplication,
    new_status,
    admin_id: Optional[str] = None,
    license_number: Optional[str] = None,
    now: Optional[datetime] = None
) -> LicenseApplication:
    """
    Apply an explicit administrator status change.

    Args:
        application: Application to update
        new_status: Target status; any status is accepted
        admin_id: Administrator performing the change
        license_number: Number to assign if this change issues a license;
            generated when omitted
        now: Clock override

    Returns:
        Updated copy of the application
    """
    status = parse_status(new_status)
    now = now or datetime.utcnow()
    updated = application.model_copy(deep=True)

    if status == application.status:
        return updated

    updated.status = status
    updated.review_date = now

    if should_issue_license(application, status):
        updated.license_details = LicenseDetails(
            license_number=license_number or generate_license_number(now.year),
            issue_date=now,
            expiry_date=add_years(now, LICENSE_VALIDITY_YEARS)
        )
        updated.approval_date = now

    if status == ApplicationStatus.LICENSE_ISSUED and updated.issue_date is None:
        updated.issue_date = now

    if admin_id:
        updated.update_timestamp(admin_id)
    return updated


def apply_patch(
    application: LicenseApplication,
    patch: UpdateLicenseApplicationRequest,
    user_id: str,
    now: Optional[datetime] = None
) -> LicenseApplication:
    """
    Apply the field changes of an update request.

    Status changes are not handled here; they go through ``admin_set_status``.
    Authorization is the caller's responsibility.
    """
    now = now or datetime.utcnow()
    updated = application.model_copy(deep=True)
    fields_set = patch.model_fields_set

    for name in OWNER_EDITABLE_FIELDS:
        if name not in fields_set:
            continue
        value = getattr(patch, name)
        if value is None and name in _NON_NULLABLE_FIELDS:
            raise ValidationException(f"Field '{name}' cannot be empty", field=name)
        setattr(updated, name, value)

    if patch.fees is not None:
        for key, value in patch.fees.model_dump(exclude_unset=True).items():
            if value is None and key != 'payment_date':
                continue
            setattr(updated.fees, key, value)
        if updated.fees.payment_status == PaymentStatus.PAID and updated.fees.payment_date is None:
            updated.fees.payment_date = now

    if patch.license_details is not None:
        if updated.license_details is None:
            raise ValidationException(
                "License details can only be changed after a license number is issued",
                field="licenseDetails"
            )
        for key, value in patch.license_details.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(updated.license_details, key, value)

    updated.update_timestamp(user_id)
    return updated


def add_note(
    application: LicenseApplication,
    text: str,
    author: str,
    now: Optional[datetime] = None
) -> LicenseApplication:
    """
    Append an administrator note.

    The returned copy carries a new notes list; the input's list is not
    mutated. Notes may be added at any status and never change it.
    """
    if not text or not text.strip():
        raise ValidationException("Note cannot be empty", field="note")

    note = AdminNote(text=text.strip(), author=author, timestamp=now or datetime.utcnow())
    updated = application.model_copy(deep=True)
    updated.admin_notes = [*application.admin_notes, note]
    updated.update_timestamp(author)
    return updated
