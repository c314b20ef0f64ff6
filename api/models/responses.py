# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Response models for API endpoints.
"""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel


class ErrorResponse(BaseModel):
    """Error response model following RFC 7807."""

    type: str = Field(..., description="Error type URI")
    title: str = Field(..., description="Error title")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Error detail")
    instance: str = Field(..., description="Request instance")
    field: Optional[str] = Field(None, description="Offending input field")
    errors: Optional[List[Dict[str, Any]]] = Field(None, description="Validation errors")


class ResponseModel(BaseModel):
    """Base for response bodies serialized with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class PaginationInfo(ResponseModel):
    """Pagination block of a collection response."""

    current_page: int
    total_pages: int
    has_next: bool
    has_prev: bool


class LicenseApplicationCollection(ResponseModel):
    """Paginated list of applications."""

    count: int = Field(..., description="Items on this page")
    total: int = Field(..., description="Total matching items")
    pagination: PaginationInfo
    licenses: List[Dict[str, Any]] = Field(default_factory=list)


class PassCounts(ResponseModel):
    """Pass counts per test kind."""

    theory_pass: int = 0
    practical_pass: int = 0
    medical_pass: int = 0


class LicenseStatsResponse(ResponseModel):
    """Aggregate application statistics."""

    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    issued: int = 0
    revenue: float = 0
    status_breakdown: Dict[str, int] = Field(default_factory=dict)
    license_type_breakdown: Dict[str, int] = Field(default_factory=dict)
    application_type_breakdown: Dict[str, int] = Field(default_factory=dict)
    test_stats: PassCounts = Field(default_factory=PassCounts)
