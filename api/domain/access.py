# SPDX-License-Identifier: Apache-2.0

"""
Access rules for license applications.

Applicants see and edit only their own applications, and edit or delete them
only while they are still Pending. Administrators may act on any application
at any status.
"""

import re
from typing import Any, Dict, Optional

from models.entities import LicenseApplication, UserContext
from models.enums import ApplicationStatus
from models.requests import LicenseApplicationFilters, UpdateLicenseApplicationRequest
from .errors import AuthorizationException


def check_read_access(application: LicenseApplication, user_context: UserContext) -> None:
    """Raise unless the requester owns the application or is an administrator."""
    if user_context.is_admin() or application.is_owned_by(user_context.user_id):
        return
    raise AuthorizationException("Not authorized to access this license application")


def check_admin(user_context: UserContext, action: str) -> None:
    if not user_context.is_admin():
        raise AuthorizationException(f"Only administrators may {action}")


def _check_owner_mutation(application: LicenseApplication, user_context: UserContext, verb: str) -> None:
    if not application.is_owned_by(user_context.user_id):
        raise AuthorizationException(f"Not authorized to {verb} this license application")
    if application.status != ApplicationStatus.PENDING:
        raise AuthorizationException(
            f"Cannot {verb} application after it has been reviewed",
            field="status"
        )


def check_update_access(
    application: LicenseApplication,
    patch: UpdateLicenseApplicationRequest,
    user_context: UserContext
) -> None:
    """
    Enforce update rules.

    Raises:
        AuthorizationException: Requester is not the owner, the application
            has left Pending, or the patch touches administrator-only fields
    """
    if user_context.is_admin():
        return

    _check_owner_mutation(application, user_context, "update")

    admin_fields = patch.admin_fields_set()
    if admin_fields:
        raise AuthorizationException(
            f"Only administrators may change: {', '.join(admin_fields)}",
            field=admin_fields[0]
        )


def check_delete_access(application: LicenseApplication, user_context: UserContext) -> None:
    """Owners may delete only while Pending; administrators always."""
    if user_context.is_admin():
        return
    _check_owner_mutation(application, user_context, "delete")


def build_list_query(
    filters: Optional[LicenseApplicationFilters],
    user_context: UserContext
) -> Dict[str, Any]:
    """
    Build the store query for an application listing.

    Non-administrators are always scoped to their own applications; the
    owner filter is honoured for administrators only.
    """
    filters = filters or LicenseApplicationFilters()
    query: Dict[str, Any] = {}

    if not user_context.is_admin():
        query["userId"] = user_context.user_id
    elif filters.user_id:
        query["userId"] = filters.user_id

    if filters.status:
        query["status"] = filters.status
    if filters.application_type:
        query["applicationType"] = filters.application_type
    if filters.license_type:
        query["licenseType"] = filters.license_type

    if filters.search and filters.search.strip():
        pattern = {"$regex": re.escape(filters.search.strip()), "$options": "i"}
        query["$or"] = [
            {"licenseDetails.licenseNumber": pattern},
            {"licenseType": pattern},
            {"licenseClass": pattern},
        ]

    return query
