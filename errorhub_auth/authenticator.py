# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Credential extraction and permission checks for incoming requests."""

import logging

import jwt

from .api_keys import ApiKeyStore
from .exceptions import AuthenticationError, PermissionDeniedError
from .jwt_manager import JWTManager
from .models import Principal

logger = logging.getLogger(__name__)


class Authenticator:
    """Accepts either a bearer JWT or an API key.

    A bearer token takes precedence when both are presented.

    Args:
        jwt_manager: Validates bearer tokens; None disables JWT auth
        api_key_store: Verifies API keys; None disables API key auth
        audience: Required ``aud`` claim for bearer tokens
    """

    def __init__(
        self,
        jwt_manager: JWTManager | None,
        api_key_store: ApiKeyStore | None,
        audience: str,
    ):
        self.jwt_manager = jwt_manager
        self.api_key_store = api_key_store
        self.audience = audience

    def authenticate(self, authorization: str | None, api_key: str | None) -> Principal:
        """Resolve request credentials to a principal.

        Args:
            authorization: Value of the Authorization header, if any
            api_key: Value of the X-API-Key header, if any

        Raises:
            AuthenticationError: If no usable credential is present or it is invalid
        """
        if authorization:
            scheme, _, token = authorization.partition(" ")
            if scheme.lower() != "bearer" or not token.strip():
                raise AuthenticationError("Authorization header must use the Bearer scheme")
            return self._authenticate_jwt(token.strip())

        if api_key:
            if self.api_key_store is None:
                raise AuthenticationError("API key authentication is not enabled")
            return self.api_key_store.verify(api_key)

        raise AuthenticationError("Authentication required")

    def _authenticate_jwt(self, token: str) -> Principal:
        if self.jwt_manager is None:
            raise AuthenticationError("Bearer token authentication is not enabled")

        try:
            claims = self.jwt_manager.validate_token(token, audience=self.audience)
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            logger.debug(f"Authenticator: rejected token - {e}")
            raise AuthenticationError("Invalid token") from e

        return Principal(
            id=claims["sub"],
            auth_method="jwt",
            email=claims.get("email"),
            name=claims.get("name"),
            roles=list(claims.get("roles", [])),
            permissions=list(claims.get("permissions", [])),
        )

    @staticmethod
    def authorize(principal: Principal, permission: str) -> None:
        """Require ``permission`` of ``principal``.

        Raises:
            PermissionDeniedError: If the principal lacks it
        """
        if not principal.has_permission(permission):
            raise PermissionDeniedError(
                f"Missing required permission: {permission}",
                required_permission=permission,
            )
