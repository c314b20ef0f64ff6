# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import os
import random
import pytest
from datetime import datetime
from unittest.mock import MagicMock
from bson import ObjectId

# Set test environment before the app module reads it
os.environ['ENVIRONMENT'] = 'test'
os.environ['MONGODB_DATABASE'] = 'transport_portal_test'
os.environ['JWT_SECRET'] = 'test-secret-key-for-license-portal-tests'
os.environ['OTEL_ENABLED'] = 'false'

from domain.policies import initial_fees, initial_tests
from models.entities import LicenseApplication, UserContext
from models.enums import ApplicationStatus, UserRole
from services.licensing import LicenseApplicationService
from services.mongodb import MongoDBService

OWNER_ID = str(ObjectId())
OTHER_USER_ID = str(ObjectId())
ADMIN_ID = str(ObjectId())


@pytest.fixture
def owner_context():
    """Applicant who owns the sample applications."""
    return UserContext(user_id=OWNER_ID, role=UserRole.PUBLIC, email="applicant@example.com")


@pytest.fixture
def other_user_context():
    return UserContext(user_id=OTHER_USER_ID, role=UserRole.PUBLIC)


@pytest.fixture
def admin_context():
    return UserContext(user_id=ADMIN_ID, role=UserRole.ADMIN, email="admin@example.com")


@pytest.fixture
def emergency_contact_data():
    return {
        "name": "Maria Silva",
        "relationship": "Spouse",
        "phone": "+1 (555) 010-2030"
    }


@pytest.fixture
def submit_payload(emergency_contact_data):
    """Build a submission payload for the given application type."""
    def _payload(application_type="New License", **overrides):
        payload = {
            "applicationType": application_type,
            "licenseType": "Private",
            "licenseClass": "Class 3",
            "emergencyContact": emergency_contact_data,
            "medicalInfo": {"wearsGlasses": True, "bloodType": "O+"}
        }
        payload.update(overrides)
        return payload
    return _payload


@pytest.fixture
def make_application(emergency_contact_data):
    """Build a stored-looking application with policy-derived fees and tests."""
    def _make(application_type="New License", status=ApplicationStatus.PENDING,
              user_id=OWNER_ID, **overrides):
        fields = dict(
            id=str(ObjectId()),
            user_id=user_id,
            application_type=application_type,
            license_type="Private",
            license_class="Class 3",
            emergency_contact=emergency_contact_data,
            fees=initial_fees(application_type),
            tests=initial_tests(application_type),
            status=status,
            submission_date=datetime(2024, 3, 1, 9, 0, 0),
            created_by=user_id,
            version=3
        )
        fields.update(overrides)
        return LicenseApplication(**fields)
    return _make


@pytest.fixture
def mock_mongodb():
    """MagicMock-backed persistence."""
    mongodb = MagicMock(spec=MongoDBService)
    mongodb.create.return_value = str(ObjectId())
    mongodb.replace_versioned.return_value = True
    mongodb.hard_delete.return_value = True
    return mongodb


@pytest.fixture
def license_service(mock_mongodb):
    return LicenseApplicationService(
        mock_mongodb,
        max_license_number_attempts=3,
        rng=random.Random(1234)
    )


def stored(mock_mongodb, application):
    """Make the mock store return the given application."""
    mock_mongodb.find_one.return_value = application.to_document()
    return application


def last_written(mock_mongodb):
    """The application passed to the most recent versioned replace."""
    args, _ = mock_mongodb.replace_versioned.call_args
    return LicenseApplication.from_document({**args[2], "_id": ObjectId(args[1])})
