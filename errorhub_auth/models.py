# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Identity models for errorhub callers."""

from dataclasses import dataclass, field
from typing import List

ADMIN_ROLE = "admin"


@dataclass
class Principal:
    """An authenticated caller.

    Attributes:
        id: Subject identifier (JWT ``sub`` or the API key owner's user id)
        auth_method: ``"jwt"`` or ``"api_key"``
        email: Email address, when the credential carries one
        name: Display name, when the credential carries one
        roles: Roles granted to the caller (e.g. ["admin"])
        permissions: Fine-grained permissions (e.g. ["read:error-stats"])
    """
    id: str
    auth_method: str
    email: str | None = None
    name: str | None = None
    roles: List[str] = field(default_factory=list)
    permissions: List[str] = field(default_factory=list)

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_permission(self, permission: str) -> bool:
        """Check whether the caller holds ``permission``; admins hold every permission."""
        return permission in self.permissions or self.has_role(ADMIN_ROLE)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "auth_method": self.auth_method,
            "email": self.email,
            "name": self.name,
            "roles": self.roles,
            "permissions": self.permissions,
        }
