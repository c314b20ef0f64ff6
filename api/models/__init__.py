# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the license engine.
"""

# Base models
from .base import BaseEntity, DocumentModel

# Enumerations
from .enums import (
    ApplicationStatus,
    ApplicationType,
    LicenseType,
    LicenseClass,
    LicenseTestKind,
    LicenseTestResult,
    PaymentStatus,
    BloodType,
    DocumentType,
    UserRole
)

# Core entities
from .entities import (
    EmergencyContact,
    MedicalInfo,
    CurrentLicense,
    ApplicationDocument,
    LicenseTestRecord,
    LicenseTests,
    Fees,
    LicenseDetails,
    AdminNote,
    LicenseApplication,
    UserContext
)

# Request models
from .requests import (
    SubmitLicenseApplicationRequest,
    UpdateLicenseApplicationRequest,
    FeesPatch,
    LicenseDetailsPatch,
    ScheduleTestRequest,
    RecordTestResultRequest,
    AddAdminNoteRequest,
    LicenseApplicationFilters,
    PaginationParams
)

# Response models
from .responses import (
    ErrorResponse,
    PaginationInfo,
    LicenseApplicationCollection,
    PassCounts,
    LicenseStatsResponse
)

__all__ = [
    # Base models
    "BaseEntity",
    "DocumentModel",

    # Enumerations
    "ApplicationStatus",
    "ApplicationType",
    "LicenseType",
    "LicenseClass",
    "LicenseTestKind",
    "LicenseTestResult",
    "PaymentStatus",
    "BloodType",
    "DocumentType",
    "UserRole",

    # Core entities
    "EmergencyContact",
    "MedicalInfo",
    "CurrentLicense",
    "ApplicationDocument",
    "LicenseTestRecord",
    "LicenseTests",
    "Fees",
    "LicenseDetails",
    "AdminNote",
    "LicenseApplication",
    "UserContext",

    # Request models
    "SubmitLicenseApplicationRequest",
    "UpdateLicenseApplicationRequest",
    "FeesPatch",
    "LicenseDetailsPatch",
    "ScheduleTestRequest",
    "RecordTestResultRequest",
    "AddAdminNoteRequest",
    "LicenseApplicationFilters",
    "PaginationParams",

    # Response models
    "ErrorResponse",
    "PaginationInfo",
    "LicenseApplicationCollection",
    "PassCounts",
    "LicenseStatsResponse"
]
