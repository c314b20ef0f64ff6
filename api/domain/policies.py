# SPDX-License-Identifier: Apache-2.0

"""
Fee schedule and test requirement policy.

Both are deterministic lookups keyed by application type and are evaluated
once, at submission. The stored values are authoritative afterwards, so a
later correction of the application type does not change historical fees or
test requirements.
"""

from typing import Dict, NamedTuple, Tuple

from models.entities import Fees, LicenseTestRecord, LicenseTests
from models.enums import ApplicationType, LicenseTestResult, PaymentStatus


class FeeTriple(NamedTuple):
    """Base fees charged for an application type."""
    application_fee: float
    test_fee: float
    license_fee: float


BASE_FEES: Dict[str, FeeTriple] = {
    ApplicationType.NEW_LICENSE.value: FeeTriple(100, 200, 300),
    ApplicationType.RENEWAL.value: FeeTriple(50, 0, 200),
    ApplicationType.REPLACEMENT.value: FeeTriple(30, 0, 100),
    ApplicationType.UPGRADE.value: FeeTriple(80, 150, 250),
    ApplicationType.INTERNATIONAL.value: FeeTriple(150, 0, 400),
}

# (theory, practical, medical) required flags
_ALL_REQUIRED = (True, True, True)
_MEDICAL_ONLY = (False, False, True)
_NONE_REQUIRED = (False, False, False)

TEST_REQUIREMENTS: Dict[str, Tuple[bool, bool, bool]] = {
    ApplicationType.NEW_LICENSE.value: _ALL_REQUIRED,
    ApplicationType.UPGRADE.value: _ALL_REQUIRED,
    ApplicationType.RENEWAL.value: _MEDICAL_ONLY,
}


def _type_key(application_type) -> str:
    return application_type.value if isinstance(application_type, ApplicationType) else str(application_type)


def base_fees_for(application_type) -> FeeTriple:
    """
    Look up the base fee triple for an application type.

    Unrecognized types fall back to the New License triple.
    """
    return BASE_FEES.get(_type_key(application_type), BASE_FEES[ApplicationType.NEW_LICENSE.value])


def initial_fees(application_type) -> Fees:
    """Build the fee block stored at submission."""
    triple = base_fees_for(application_type)
    return Fees(
        application_fee=triple.application_fee,
        test_fee=triple.test_fee,
        license_fee=triple.license_fee,
        penalty_fee=0,
        payment_status=PaymentStatus.PENDING
    )


def required_tests_for(application_type) -> Tuple[bool, bool, bool]:
    """Required flags for (theory, practical, medical)."""
    return TEST_REQUIREMENTS.get(_type_key(application_type), _NONE_REQUIRED)


def initial_tests(application_type) -> LicenseTests:
    """
    Build the initial test map for an application type.

    Required tests start Pending; tests that are not required start as Pass
    so they never block approval.
    """
    theory, practical, medical = required_tests_for(application_type)

    def record(required: bool) -> LicenseTestRecord:
        return LicenseTestRecord(
            required=required,
            result=LicenseTestResult.PENDING if required else LicenseTestResult.PASS
        )

    return LicenseTests(
        theory=record(theory),
        practical=record(practical),
        medical=record(medical)
    )
