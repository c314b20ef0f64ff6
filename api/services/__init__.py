# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - External integrations and side effects.
"""

from .mongodb import MongoDBService, PaginationResult
from .licensing import LicenseApplicationService
from .auth import AuthService, TokenValidationError

__all__ = [
    "MongoDBService",
    "PaginationResult",
    "LicenseApplicationService",
    "AuthService",
    "TokenValidationError"
]
