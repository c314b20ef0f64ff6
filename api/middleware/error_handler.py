# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Error handling middleware with RFC 7807 problem responses.
Provides centralized error handling and formatting for Flask applications.
"""

from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException
from pydantic import ValidationError
from typing import Any, Dict, List, Optional, Tuple
from opentelemetry import trace
import logging

from domain.errors import CustomException, ValidationException
from models.responses import ErrorResponse

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

PROBLEM_BASE = "https://api.transport-portal.org/problems"

TITLES = {
    400: "Bad Request",
    401: "Authentication Required",
    403: "Forbidden",
    404: "Resource Not Found",
    405: "Method Not Allowed",
    409: "Resource Conflict",
    500: "Internal Server Error",
}


def build_problem(
    error_type: str,
    status: int,
    detail: str,
    title: Optional[str] = None,
    field: Optional[str] = None,
    errors: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    """Build an RFC 7807 problem document for the current request."""
    return ErrorResponse(
        type=f"{PROBLEM_BASE}/{error_type}",
        title=title or TITLES.get(status, "Error"),
        status=status,
        detail=detail,
        instance=request.path,
        field=field,
        errors=errors or None
    ).model_dump(exclude_none=True)


class ErrorHandlerMiddleware:
    """Centralized error handling middleware with problem response formatting."""

    def __init__(self, app: Flask):
        self.app = app
        self.register_error_handlers()

    @property
    def is_production(self) -> bool:
        return self.app.config.get('ENVIRONMENT') == 'production'

    def register_error_handlers(self):
        """Register error handlers with Flask application."""

        @self.app.errorhandler(CustomException)
        def handle_custom_exception(error: CustomException):
            return self.handle_custom_exception(error)

        @self.app.errorhandler(ValidationError)
        def handle_pydantic_error(error: ValidationError):
            return self.handle_custom_exception(ValidationException.from_pydantic(error))

        @self.app.errorhandler(HTTPException)
        def handle_http_exception(error: HTTPException):
            if error.code and error.code >= 500:
                return self.handle_server_error(error)
            return self.handle_client_error(error)

        @self.app.errorhandler(Exception)
        def handle_generic_exception(error):
            return self.handle_unexpected_error(error)

    def handle_custom_exception(self, error: CustomException) -> Tuple[Any, int]:
        """Map a domain exception to its problem response."""
        with tracer.start_as_current_span("error_handler.custom_exception") as span:
            span.set_attributes({
                "error.type": error.error_type,
                "error.status": error.status_code,
                "http.method": request.method,
                "http.path": request.path
            })

            logger.warning(
                f"Custom exception: {error.error_type}",
                extra={
                    "error_type": error.error_type,
                    "status_code": error.status_code,
                    "error_message": error.message,
                    "field": error.field,
                    "path": request.path,
                    "method": request.method
                }
            )

            detail = error.message
            if error.status_code >= 500 and self.is_production:
                detail = "An internal server error occurred"

            problem = build_problem(
                error.error_type,
                error.status_code,
                detail,
                field=error.field,
                errors=getattr(error, "validation_errors", None)
            )
            return jsonify(problem), error.status_code

    def handle_client_error(self, error: HTTPException) -> Tuple[Any, int]:
        """Handle client errors (4xx status codes)."""
        title = TITLES.get(error.code, error.name)
        error_type = title.lower().replace(' ', '-')
        detail = str(error.description) if error.description else title

        logger.warning(
            f"Client error: {title}",
            extra={
                "error_type": error_type,
                "status_code": error.code,
                "detail": detail,
                "path": request.path,
                "method": request.method,
                "ip_address": request.remote_addr
            }
        )
        return jsonify(build_problem(error_type, error.code, detail, title)), error.code

    def handle_server_error(self, error: HTTPException) -> Tuple[Any, int]:
        """Handle server errors (5xx status codes)."""
        detail = str(error.description) if error.description else error.name

        logger.error(
            f"Server error: {error.name}",
            extra={
                "status_code": error.code,
                "detail": detail,
                "path": request.path,
                "method": request.method
            },
            exc_info=True
        )

        # Don't expose internal error details in production
        if self.is_production:
            detail = "An internal server error occurred"

        return jsonify(build_problem("internal-server-error", error.code, detail)), error.code

    def handle_unexpected_error(self, error: Exception) -> Tuple[Any, int]:
        """Handle unexpected exceptions not caught by specific handlers."""
        with tracer.start_as_current_span("error_handler.unexpected_error") as span:
            span.set_attributes({
                "error.type": "unexpected-error",
                "error.class": error.__class__.__name__,
                "http.method": request.method,
                "http.path": request.path
            })
            span.record_exception(error)

            logger.error(
                f"Unexpected error: {error.__class__.__name__}",
                extra={
                    "error_type": "unexpected-error",
                    "error_class": error.__class__.__name__,
                    "error_message": str(error),
                    "path": request.path,
                    "method": request.method
                },
                exc_info=True
            )

            detail = "An unexpected error occurred"
            if not self.is_production:
                detail = f"{error.__class__.__name__}: {str(error)}"

            return jsonify(build_problem("internal-server-error", 500, detail)), 500
