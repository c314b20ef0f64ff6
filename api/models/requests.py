# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for license application operations.
"""

from datetime import datetime
from typing import ClassVar, List, Optional, Tuple
from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from .entities import (
    EmergencyContact, MedicalInfo, CurrentLicense, ApplicationDocument
)
from .enums import (
    ApplicationStatus, ApplicationType, LicenseType, LicenseClass,
    PaymentStatus
)


class RequestModel(BaseModel):
    """Base for inbound payloads; accepts camelCase or snake_case keys."""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        alias_generator=to_camel,
        extra='forbid'
    )


class SubmitLicenseApplicationRequest(RequestModel):
    """Request model for submitting a new application."""

    application_type: ApplicationType = Field(..., description="Kind of license request")
    license_type: LicenseType = Field(..., description="License type")
    license_class: LicenseClass = Field(..., description="License class")
    emergency_contact: EmergencyContact = Field(..., description="Emergency contact")
    medical_info: Optional[MedicalInfo] = Field(None, description="Medical information")
    current_license: Optional[CurrentLicense] = Field(None, description="Existing license")
    documents: List[ApplicationDocument] = Field(default_factory=list)


class FeesPatch(RequestModel):
    """Administrator fee adjustments; the total is always derived."""

    application_fee: Optional[float] = Field(None, ge=0)
    test_fee: Optional[float] = Field(None, ge=0)
    license_fee: Optional[float] = Field(None, ge=0)
    penalty_fee: Optional[float] = Field(None, ge=0)
    payment_status: Optional[PaymentStatus] = None
    payment_date: Optional[datetime] = None


class LicenseDetailsPatch(RequestModel):
    """Administrator adjustments to an issued license."""

    restrictions: Optional[List[str]] = None
    endorsements: Optional[List[str]] = None


class UpdateLicenseApplicationRequest(RequestModel):
    """Partial update of an application."""

    license_type: Optional[LicenseType] = None
    license_class: Optional[LicenseClass] = None
    current_license: Optional[CurrentLicense] = None
    emergency_contact: Optional[EmergencyContact] = None
    medical_info: Optional[MedicalInfo] = None
    documents: Optional[List[ApplicationDocument]] = None

    # Administrator-only fields
    status: Optional[ApplicationStatus] = None
    fees: Optional[FeesPatch] = None
    license_details: Optional[LicenseDetailsPatch] = None

    ADMIN_ONLY_FIELDS: ClassVar[Tuple[str, ...]] = ('status', 'fees', 'license_details')

    def admin_fields_set(self) -> List[str]:
        """Names of administrator-only fields present in the patch."""
        return [name for name in self.ADMIN_ONLY_FIELDS if name in self.model_fields_set]


class ScheduleTestRequest(RequestModel):
    """Request model for scheduling a test."""

    scheduled_date: datetime = Field(..., description="Requested test date")
    instructor: Optional[str] = Field(None, max_length=200, description="Practical test instructor")


class RecordTestResultRequest(RequestModel):
    """Request model for recording a test result."""

    result: str = Field(..., description="Pass or Fail")
    score: Optional[float] = Field(None, description="Test score")
    notes: Optional[str] = Field(None, max_length=2000, description="Medical examiner notes")


class AddAdminNoteRequest(RequestModel):
    """Request model for adding an administrator note."""

    note: str = Field(..., min_length=1, max_length=2000, description="Note text")

    @field_validator('note')
    @classmethod
    def validate_note(cls, v):
        if not v.strip():
            raise ValueError('Note cannot be empty')
        return v.strip()


class LicenseApplicationFilters(RequestModel):
    """Filters for application listing."""

    user_id: Optional[str] = Field(None, description="Owner filter (administrators only)")
    status: Optional[ApplicationStatus] = None
    application_type: Optional[ApplicationType] = None
    license_type: Optional[LicenseType] = None
    search: Optional[str] = Field(None, max_length=100, description="License number, type or class")


class PaginationParams(RequestModel):
    """Pagination parameters."""

    page: int = Field(default=1, ge=1, description="Page number")
    limit: int = Field(default=10, ge=1, le=100, description="Items per page")
