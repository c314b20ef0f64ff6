# SPDX-License-Identifier: Apache-2.0

"""
Authentication middleware for JWT token validation and user context extraction.

This module provides Flask middleware for validating JWT tokens and building
the user context passed to protected views.
"""

from functools import wraps
from flask import request, jsonify, g, current_app
from typing import Optional, Dict, Any, Callable
from opentelemetry import trace
import logging

from models.entities import UserContext
from models.enums import UserRole
from services.auth import TokenValidationError

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

PROBLEM_BASE = "https://api.transport-portal.org/problems"


class AuthMiddleware:
    """
    JWT authentication middleware for Flask applications.

    Handles token extraction, validation and user context building for
    protected endpoints.
    """

    def __init__(self, auth_service):
        self.auth_service = auth_service

    def extract_token_from_request(self) -> Optional[str]:
        """
        Extract JWT token from request headers.

        Returns:
            JWT token string or None if not found
        """
        auth_header = request.headers.get('Authorization', '')

        if not auth_header:
            return None

        # Handle "Bearer <token>" format
        if auth_header.startswith('Bearer '):
            return auth_header[7:]

        return auth_header

    def build_user_context(self, token_payload: Dict[str, Any], request_info: Dict[str, Any]) -> UserContext:
        return UserContext(
            user_id=token_payload["sub"],
            role=token_payload.get("role", UserRole.PUBLIC.value),
            email=token_payload.get("email"),
            ip_address=request_info.get("ip_address"),
            user_agent=request_info.get("user_agent")
        )

    def get_request_info(self) -> Dict[str, Any]:
        return {
            "ip_address": request.remote_addr,
            "user_agent": request.headers.get('User-Agent', ''),
            "request_id": request.headers.get('X-Request-ID')
        }


def _unauthorized(error_type: str, title: str, detail: str):
    return jsonify({
        "type": f"{PROBLEM_BASE}/{error_type}",
        "title": title,
        "status": 401,
        "detail": detail,
        "instance": request.path
    }), 401


def require_auth(f: Callable) -> Callable:
    """
    Decorator to require JWT authentication for Flask routes.

    The view is called with the ``UserContext`` as its first argument; the
    middleware instance is looked up on ``current_app.auth_middleware``.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        with tracer.start_as_current_span("auth.middleware.validate_request") as span:
            span.set_attribute("auth.operation", "validate_request")
            auth_middleware: AuthMiddleware = current_app.auth_middleware

            token = auth_middleware.extract_token_from_request()
            if not token:
                span.set_attribute("auth.result", "missing_token")
                logger.warning("Authentication failed: missing token")
                return _unauthorized(
                    "authentication-required", "Authentication Required", "Missing authorization token"
                )

            try:
                token_payload = auth_middleware.auth_service.validate_token(token, "access")
            except TokenValidationError as e:
                span.set_attribute("auth.result", "invalid_token")
                logger.warning(f"Authentication failed: {str(e)}")
                return _unauthorized("invalid-token", "Invalid Token", str(e))

            user_context = auth_middleware.build_user_context(
                token_payload, auth_middleware.get_request_info()
            )
            g.user_context = user_context

            span.set_attributes({
                "auth.result": "success",
                "user.id": user_context.user_id,
                "user.role": user_context.role
            })
            logger.debug(
                "Authentication successful",
                extra={
                    "user_id": user_context.user_id,
                    "role": user_context.role,
                    "ip_address": user_context.ip_address
                }
            )

        return f(user_context, *args, **kwargs)

    return decorated_function
