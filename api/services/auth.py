# SPDX-License-Identifier: Apache-2.0

"""
Authentication service for JWT token issuing and validation.

Tokens are signed with HS256 using the shared ``JWT_SECRET``. The ``sub``
claim carries the user ID and the ``role`` claim the account role.
"""

import os
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from opentelemetry import trace
import logging

from models.enums import UserRole

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class TokenValidationError(Exception):
    """Raised when token validation fails."""
    pass


class AuthService:
    """
    JWT authentication service with HS256 signing.
    """

    def __init__(self, secret: Optional[str] = None, access_token_expire_seconds: int = 900):
        """
        Initialize the authentication service.

        Args:
            secret: Shared signing secret; read from JWT_SECRET when omitted
            access_token_expire_seconds: Lifetime of issued access tokens
        """
        self.secret = secret or os.getenv("JWT_SECRET")
        if not self.secret:
            logger.warning("No JWT_SECRET found, using development secret")
            self.secret = "dev-secret-key"
        self.algorithm = "HS256"
        self.access_token_expire_seconds = access_token_expire_seconds

    def create_access_token(self, user_id: str, role: str = UserRole.PUBLIC.value,
                            email: Optional[str] = None) -> str:
        """
        Issue a signed access token.

        Used by the index script and tests; account management lives outside
        this service.
        """
        with tracer.start_as_current_span("auth.create_access_token") as span:
            span.set_attributes({"auth.operation": "create_access_token", "user.id": user_id})

            now = datetime.now(timezone.utc)
            payload = {
                "sub": user_id,
                "role": UserRole(role).value,
                "iat": now,
                "exp": now + timedelta(seconds=self.access_token_expire_seconds),
                "type": "access"
            }
            if email:
                payload["email"] = email

            return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def validate_token(self, token: str, token_type: str = "access") -> Dict[str, Any]:
        """
        Validate and decode a JWT token.

        Args:
            token: JWT token string to validate
            token_type: Expected token type

        Returns:
            Decoded token payload

        Raises:
            TokenValidationError: If token is invalid or expired
        """
        with tracer.start_as_current_span("auth.validate_token") as span:
            span.set_attributes({
                "auth.operation": "validate_token",
                "auth.token_type": token_type
            })

            try:
                payload = jwt.decode(
                    token,
                    self.secret,
                    algorithms=[self.algorithm],
                    options={"verify_exp": True, "require": ["sub", "exp"]}
                )
            except jwt.ExpiredSignatureError:
                span.set_attribute("auth.validation_result", "expired")
                logger.warning("Token validation failed: token expired")
                raise TokenValidationError("Token has expired")
            except jwt.InvalidTokenError as e:
                span.set_attribute("auth.validation_result", "invalid")
                logger.warning(f"Token validation failed: {str(e)}")
                raise TokenValidationError(f"Invalid token: {str(e)}")

            if payload.get("type", token_type) != token_type:
                raise TokenValidationError(f"Invalid token type. Expected {token_type}")

            role = payload.get("role", UserRole.PUBLIC.value)
            if role not in {r.value for r in UserRole}:
                raise TokenValidationError(f"Unknown role: {role}")

            span.set_attributes({
                "auth.validation_result": "success",
                "user.id": payload.get("sub")
            })
            logger.debug(
                "Token validated successfully",
                extra={"user_id": payload.get("sub"), "role": role}
            )
            return payload
