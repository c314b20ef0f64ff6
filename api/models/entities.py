# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the driver's license application engine.
"""

import re
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, computed_field, ConfigDict
from .base import BaseEntity, DocumentModel
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

PHONE_PATTERN = re.compile(r'^\+?[\d\s\-()]+$')


class EmergencyContact(DocumentModel):
    """Person to contact on the applicant's behalf."""

    name: str = Field(..., min_length=2, max_length=100, description="Contact full name")
    relationship: str = Field(..., min_length=1, description="Relationship to applicant")
    phone: str = Field(..., min_length=1, description="Contact phone number")

    @field_validator('name', 'relationship')
    @classmethod
    def validate_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Emergency contact fields cannot be empty')
        return v.strip()

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v):
        """Validate phone number format."""
        if not PHONE_PATTERN.match(v):
            raise ValueError('Please provide a valid emergency contact phone number')
        return v


class MedicalInfo(DocumentModel):
    """Self-declared medical information."""

    has_vision_problems: bool = False
    wears_glasses: bool = False
    has_hearing_problems: bool = False
    has_medical_conditions: bool = False
    medical_conditions: List[str] = Field(default_factory=list)
    blood_type: Optional[BloodType] = None
    organ_donor: bool = False


class CurrentLicense(DocumentModel):
    """Existing license held by the applicant (renewals and upgrades)."""

    number: Optional[str] = None
    expiry_date: Optional[datetime] = None
    issuing_authority: Optional[str] = None
    restrictions: List[str] = Field(default_factory=list)


class ApplicationDocument(DocumentModel):
    """Reference to an uploaded supporting document."""

    name: str = Field(..., min_length=1, description="Document display name")
    type: DocumentType = Field(..., description="Document category")
    url: Optional[str] = Field(None, description="Storage location")
    upload_date: datetime = Field(default_factory=datetime.utcnow)
    verified: bool = False


class LicenseTestRecord(DocumentModel):
    """Scheduling and outcome of one test kind."""

    required: bool = Field(default=True, description="Whether the test must be passed")
    scheduled: Optional[datetime] = Field(None, description="Requested test date")
    completed: Optional[datetime] = Field(None, description="When the last result was recorded")
    result: LicenseTestResult = Field(default=LicenseTestResult.PENDING)
    attempts: int = Field(default=0, ge=0, description="Number of recorded results")
    score: Optional[float] = None
    instructor: Optional[str] = Field(None, description="Practical test instructor")
    notes: Optional[str] = Field(None, description="Medical examiner notes")

    def is_satisfied(self) -> bool:
        """A test that is not required counts as passed."""
        return not self.required or self.result == LicenseTestResult.PASS


class LicenseTests(DocumentModel):
    """Per-kind test records of an application."""

    theory: LicenseTestRecord = Field(default_factory=LicenseTestRecord)
    practical: LicenseTestRecord = Field(default_factory=LicenseTestRecord)
    medical: LicenseTestRecord = Field(default_factory=LicenseTestRecord)

    def get(self, kind: LicenseTestKind) -> LicenseTestRecord:
        return getattr(self, LicenseTestKind(kind).value)

    def records(self):
        """Yield (kind, record) pairs in a stable order."""
        for kind in LicenseTestKind:
            yield kind, self.get(kind)

    def all_required_passed(self) -> bool:
        """True iff every required test has result Pass."""
        return all(record.is_satisfied() for _, record in self.records())


class Fees(DocumentModel):
    """Fee components and payment bookkeeping."""

    application_fee: float = Field(default=0, ge=0)
    test_fee: float = Field(default=0, ge=0)
    license_fee: float = Field(default=0, ge=0)
    penalty_fee: float = Field(default=0, ge=0)
    payment_status: PaymentStatus = Field(default=PaymentStatus.PENDING)
    payment_date: Optional[datetime] = None

    @computed_field(alias="totalFee")
    @property
    def total_fee(self) -> float:
        """Always the sum of the four components."""
        return self.application_fee + self.test_fee + self.license_fee + self.penalty_fee


class LicenseDetails(DocumentModel):
    """Issued license data; present only after issuance."""

    license_number: str = Field(..., pattern=r'^DL-\d{4}-\d{5}$')
    issue_date: datetime
    expiry_date: datetime
    restrictions: List[str] = Field(default_factory=list)
    endorsements: List[str] = Field(default_factory=list)


class AdminNote(DocumentModel):
    """Administrator annotation."""

    text: str = Field(..., min_length=1, max_length=2000)
    author: str = Field(..., description="Administrator user ID")
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class LicenseApplication(BaseEntity):
    """Driver's license application aggregate."""

    user_id: str = Field(..., description="Applicant account ID")
    application_type: ApplicationType
    license_type: LicenseType
    license_class: LicenseClass
    current_license: Optional[CurrentLicense] = None
    emergency_contact: EmergencyContact
    medical_info: MedicalInfo = Field(default_factory=MedicalInfo)
    tests: LicenseTests = Field(default_factory=LicenseTests)
    status: ApplicationStatus = Field(default=ApplicationStatus.PENDING)
    submission_date: datetime = Field(default_factory=datetime.utcnow)
    review_date: Optional[datetime] = None
    approval_date: Optional[datetime] = None
    issue_date: Optional[datetime] = None
    documents: List[ApplicationDocument] = Field(default_factory=list)
    license_details: Optional[LicenseDetails] = None
    fees: Fees = Field(default_factory=Fees)
    admin_notes: List[AdminNote] = Field(default_factory=list)

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id

    def has_license_number(self) -> bool:
        return self.license_details is not None and bool(self.license_details.license_number)


class UserContext(BaseModel):
    """Requester identity for engine operations."""

    user_id: str = Field(..., description="Authenticated user ID")
    role: UserRole = Field(default=UserRole.PUBLIC, description="Account role")
    email: Optional[str] = Field(None, description="User email")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client user agent")

    model_config = ConfigDict(
        use_enum_values=True
    )

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
