# SPDX-License-Identifier: Apache-2.0

"""
Test scheduling and result recording.

Functions here are pure: they take an application and return an updated copy,
leaving the input untouched. Status side effects are delegated to the
lifecycle module.
"""

from datetime import datetime
from typing import Any, Optional, Union

from models.entities import LicenseApplication
from models.enums import ApplicationStatus, LicenseTestKind, LicenseTestResult
from .errors import (
    InvalidTestKindException, InvalidTestResultException, TestNotRequiredException
)
from . import lifecycle

RECORDABLE_RESULTS = (LicenseTestResult.PASS, LicenseTestResult.FAIL)


def parse_test_kind(value: Union[str, LicenseTestKind]) -> LicenseTestKind:
    """Validate a test kind name."""
    try:
        return LicenseTestKind(value)
    except ValueError:
        raise InvalidTestKindException(str(value))


def parse_test_result(value: Any) -> LicenseTestResult:
    """Validate a recordable result; only Pass and Fail are accepted."""
    try:
        result = LicenseTestResult(value)
    except ValueError:
        raise InvalidTestResultException(value)

    if result not in RECORDABLE_RESULTS:
        raise InvalidTestResultException(value)
    return result


def all_required_passed(application: LicenseApplication) -> bool:
    """
    Check whether every required test has been passed.

    Tests that are not required count as passed whatever their stored result.
    """
    return application.tests.all_required_passed()


def schedule_test(
    application: LicenseApplication,
    test_kind: Union[str, LicenseTestKind],
    scheduled_date: datetime,
    instructor: Optional[str] = None,
    user_id: Optional[str] = None
) -> LicenseApplication:
    """
    Schedule a test for an application.

    Args:
        application: Application to update
        test_kind: theory, practical or medical
        scheduled_date: Requested test date
        instructor: Instructor name, kept for practical tests only
        user_id: Administrator performing the action

    Returns:
        Updated copy of the application

    Raises:
        InvalidTestKindException: Unknown test kind
        TestNotRequiredException: The test is not required for this application
    """
    kind = parse_test_kind(test_kind)

    if not application.tests.get(kind).required:
        raise TestNotRequiredException(kind.value)

    updated = application.model_copy(deep=True)
    record = updated.tests.get(kind)
    record.scheduled = scheduled_date
    if kind == LicenseTestKind.PRACTICAL and instructor:
        record.instructor = instructor

    # Scheduling only moves a fresh application forward
    if updated.status == ApplicationStatus.PENDING:
        updated.status = ApplicationStatus.TESTS_SCHEDULED

    if user_id:
        updated.update_timestamp(user_id)
    return updated


def record_result(
    application: LicenseApplication,
    test_kind: Union[str, LicenseTestKind],
    result: Any,
    score: Optional[float] = None,
    notes: Optional[str] = None,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None
) -> LicenseApplication:
    """
    Record the outcome of a test attempt.

    Every call counts as one attempt; there is no cap on retakes. The status
    is then re-derived from the test state.

    Raises:
        InvalidTestKindException: Unknown test kind
        InvalidTestResultException: Result other than Pass or Fail
    """
    kind = parse_test_kind(test_kind)
    outcome = parse_test_result(result)
    now = now or datetime.utcnow()

    updated = application.model_copy(deep=True)
    record = updated.tests.get(kind)
    record.result = outcome
    record.completed = now
    record.attempts = record.attempts + 1

    if score is not None:
        record.score = score
    if kind == LicenseTestKind.MEDICAL and notes:
        record.notes = notes

    if user_id:
        updated.update_timestamp(user_id)
    return lifecycle.auto_advance(updated, last_result=outcome)
