# SPDX-License-Identifier: Apache-2.0

"""
Domain exception hierarchy.

Every engine failure is raised as a ``CustomException`` subclass carrying an
HTTP status code, a problem type identifier and, where a single input is at
fault, the offending field name.
"""

from typing import Any, Dict, List, Optional


class CustomException(Exception):
    """Base class for custom application exceptions."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_type: str = "application-error",
        field: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        self.field = field


class ValidationException(CustomException):
    """Malformed or missing input."""

    def __init__(self, message: str, validation_errors: List[Dict[str, Any]] = None,
                 field: Optional[str] = None):
        super().__init__(message, 400, "validation-error", field)
        self.validation_errors = validation_errors or []

    @classmethod
    def from_pydantic(cls, error, message: str = "Validation failed") -> "ValidationException":
        """Convert a pydantic ValidationError into per-field error details."""
        details = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())),
                "message": err.get("msg"),
                "type": err.get("type")
            }
            for err in error.errors()
        ]
        return cls(message, details, field=details[0]["field"] if details else None)


class InvalidTestKindException(ValidationException):
    """Test kind is not one of theory, practical or medical."""

    def __init__(self, test_kind: str):
        super().__init__(f"Invalid test type: {test_kind}", field="testType")
        self.error_type = "invalid-test-kind"


class InvalidTestResultException(ValidationException):
    """Recorded result is neither Pass nor Fail."""

    def __init__(self, result: Any):
        super().__init__(f"Invalid test result '{result}'. Must be Pass or Fail", field="result")
        self.error_type = "invalid-test-result"


class AuthorizationException(CustomException):
    """Ownership, role or state rule forbids the operation."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, 403, "forbidden", field)


class TestNotRequiredException(AuthorizationException):
    """Scheduling a test the application does not require."""

    def __init__(self, test_kind: str):
        super().__init__(f"{test_kind} test is not required for this application", field="testType")
        self.error_type = "test-not-required"


class NotFoundException(CustomException):
    """Exception for resource not found errors."""

    def __init__(self, message: str):
        super().__init__(message, 404, "resource-not-found")


class ConflictException(CustomException):
    """Exception for resource conflict errors."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, 409, "resource-conflict", field)


class DuplicateKeyException(ConflictException):
    """Unique index violation reported by the document store."""

    def __init__(self, message: str, key_pattern: Optional[Dict[str, Any]] = None):
        key_pattern = key_pattern or {}
        super().__init__(message, field=next(iter(key_pattern), None))
        self.key_pattern = key_pattern

    def involves(self, key: str) -> bool:
        return key in self.key_pattern
