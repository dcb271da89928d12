# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""JWT token minting and validation.

Supports RSA (RS256) and HMAC (HS256) signing. errorhub only validates
tokens in production; minting exists for tooling and tests.
"""

import secrets
import time
from pathlib import Path
from typing import Any

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .models import Principal


class JWTManager:
    """Manages JWT token minting, validation, and key loading.

    Attributes:
        issuer: Expected/issued ``iss`` claim, or None to skip issuer checks
        algorithm: JWT signing algorithm ("RS256" or "HS256")
        private_key: Signing key (RSA private key or HMAC secret), may be None for RS256
        public_key: Verification key (RSA public key or HMAC secret)
        key_id: Key ID placed in the JWT header
        default_expiry: Default token lifetime in seconds
    """

    def __init__(
        self,
        issuer: str | None = None,
        algorithm: str = "RS256",
        private_key_path: Path | None = None,
        public_key_path: Path | None = None,
        secret_key: str | None = None,
        key_id: str | None = None,
        default_expiry: int = 1800,  # 30 minutes
    ):
        """Initialize JWT manager.

        Args:
            issuer: Token issuer identifier
            algorithm: Signing algorithm ("RS256" or "HS256")
            private_key_path: Path to RSA private key (RS256, only needed to mint)
            public_key_path: Path to RSA public key (RS256, required)
            secret_key: HMAC secret (HS256, required)
            key_id: Key identifier for rotation
            default_expiry: Default token lifetime in seconds

        Raises:
            ValueError: If algorithm is unsupported or keys are missing
        """
        self.issuer = issuer
        self.algorithm = algorithm
        self.default_expiry = default_expiry
        self.key_id = key_id or "default"

        if algorithm == "RS256":
            if not public_key_path:
                raise ValueError("RS256 requires public_key_path")

            with open(public_key_path, "rb") as f:
                self.public_key = serialization.load_pem_public_key(f.read())

            self.private_key = None
            if private_key_path:
                with open(private_key_path, "rb") as f:
                    self.private_key = serialization.load_pem_private_key(f.read(), password=None)

        elif algorithm == "HS256":
            if not secret_key:
                raise ValueError("HS256 requires secret_key")

            self.private_key = secret_key
            self.public_key = secret_key

        else:
            raise ValueError(f"Unsupported algorithm: {algorithm}. Use 'RS256' or 'HS256'")

    @staticmethod
    def generate_rsa_keys(
        private_key_path: Path,
        public_key_path: Path,
        key_size: int = 2048,
    ) -> None:
        """Generate an RSA key pair in PEM format."""
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)

        private_key_path.write_bytes(
            private_key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
        )
        public_key_path.write_bytes(
            private_key.public_key().public_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PublicFormat.SubjectPublicKeyInfo,
            )
        )

    def mint_token(
        self,
        principal: Principal,
        audience: str,
        expires_in: int | None = None,
        additional_claims: dict[str, Any] | None = None,
    ) -> str:
        """Mint a JWT token for a principal.

        Args:
            principal: Caller to issue the token for
            audience: Token audience (target service)
            expires_in: Token lifetime in seconds (default: self.default_expiry)
            additional_claims: Additional claims to include

        Returns:
            Signed JWT token string

        Raises:
            ValueError: If no signing key is loaded
        """
        if self.private_key is None:
            raise ValueError("No private key loaded; this manager can only validate tokens")

        now = int(time.time())
        expiry = expires_in or self.default_expiry

        claims: dict[str, Any] = {
            "sub": principal.id,
            "aud": audience,
            "exp": now + expiry,
            "iat": now,
            "nbf": now,
            "jti": secrets.token_urlsafe(16),
        }
        if self.issuer:
            claims["iss"] = self.issuer
        if principal.email:
            claims["email"] = principal.email
        if principal.name:
            claims["name"] = principal.name
        if principal.roles:
            claims["roles"] = principal.roles
        if principal.permissions:
            claims["permissions"] = principal.permissions

        if additional_claims:
            claims.update(additional_claims)

        return jwt.encode(
            claims,
            self.private_key,
            algorithm=self.algorithm,
            headers={"kid": self.key_id},
        )

    def validate_token(
        self,
        token: str,
        audience: str,
        max_skew_seconds: int = 90,
    ) -> dict[str, Any]:
        """Validate and decode a JWT token.

        Args:
            token: JWT token string
            audience: Expected audience
            max_skew_seconds: Clock skew tolerance in seconds

        Returns:
            Decoded token claims

        Raises:
            jwt.InvalidTokenError: If token is invalid, expired, or has wrong audience/issuer
        """
        options = {"require": ["exp", "sub"]}
        return jwt.decode(
            token,
            self.public_key,
            algorithms=[self.algorithm],
            audience=audience,
            issuer=self.issuer,
            leeway=max_skew_seconds,
            options=options,
        )
