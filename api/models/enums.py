# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the transport services portal.
"""

from enum import Enum


class ApplicationStatus(str, Enum):
    """License application lifecycle status."""
    PENDING = "Pending"
    DOCUMENTS_REVIEW = "Documents Review"
    TESTS_SCHEDULED = "Tests Scheduled"
    TESTS_IN_PROGRESS = "Tests In Progress"
    MEDICAL_EXAMINATION = "Medical Examination"
    FINAL_REVIEW = "Final Review"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    LICENSE_ISSUED = "License Issued"


class ApplicationType(str, Enum):
    """Kind of license request being made."""
    NEW_LICENSE = "New License"
    RENEWAL = "Renewal"
    REPLACEMENT = "Replacement"
    UPGRADE = "Upgrade"
    INTERNATIONAL = "International"


class LicenseType(str, Enum):
    """Vehicle category the license covers."""
    PRIVATE = "Private"
    COMMERCIAL = "Commercial"
    MOTORCYCLE = "Motorcycle"
    HEAVY_VEHICLE = "Heavy Vehicle"
    PUBLIC_TRANSPORT = "Public Transport"
    TAXI = "Taxi"


class LicenseClass(str, Enum):
    """License class."""
    CLASS_1 = "Class 1"
    CLASS_2 = "Class 2"
    CLASS_3 = "Class 3"
    CLASS_4 = "Class 4"
    CLASS_5 = "Class 5"
    CLASS_6 = "Class 6"


class LicenseTestKind(str, Enum):
    """Tests an applicant may have to pass."""
    THEORY = "theory"
    PRACTICAL = "practical"
    MEDICAL = "medical"


class LicenseTestResult(str, Enum):
    """Outcome of a single test."""
    PENDING = "Pending"
    PASS = "Pass"
    FAIL = "Fail"


class PaymentStatus(str, Enum):
    """Fee payment bookkeeping status."""
    PENDING = "Pending"
    PAID = "Paid"
    WAIVED = "Waived"


class BloodType(str, Enum):
    A_POSITIVE = "A+"
    A_NEGATIVE = "A-"
    B_POSITIVE = "B+"
    B_NEGATIVE = "B-"
    AB_POSITIVE = "AB+"
    AB_NEGATIVE = "AB-"
    O_POSITIVE = "O+"
    O_NEGATIVE = "O-"


class DocumentType(str, Enum):
    """Supporting document categories."""
    NATIONAL_ID = "National ID"
    PASSPORT_PHOTO = "Passport Photo"
    MEDICAL_CERTIFICATE = "Medical Certificate"
    VISION_TEST = "Vision Test"
    TRAINING_CERTIFICATE = "Training Certificate"
    PREVIOUS_LICENSE = "Previous License"
    OTHER = "Other"


class UserRole(str, Enum):
    """Portal account roles."""
    PUBLIC = "Public"
    ADMIN = "Admin"
