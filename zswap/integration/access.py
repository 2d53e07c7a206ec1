"""
Authorization collaborator.

The exchange never decides who may change parameters; it asks an injected
`AuthorizationService`. `RoleRegistry` is the in-memory implementation used by
tests and the offline demo: the owner holds every role and may grant or revoke
roles for other callers.
"""

from __future__ import annotations

import logging
from typing import Dict, Protocol, Set

from ..errors import Unauthorized
from ..state.balances import Address

logger = logging.getLogger(__name__)


class AuthorizationService(Protocol):
    def require_role(self, caller: Address, role: str) -> None:
        """Return normally if `caller` holds `role`, else raise Unauthorized."""
        ...


class RoleRegistry:
    """In-memory role table with a single owner."""

    def __init__(self, owner: Address) -> None:
        if not owner:
            raise ValueError("owner must be non-empty")
        self.owner = owner
        self._roles: Dict[str, Set[Address]] = {}

    def has_role(self, caller: Address, role: str) -> bool:
        return caller == self.owner or caller in self._roles.get(role, set())

    def require_role(self, caller: Address, role: str) -> None:
        if not self.has_role(caller, role):
            raise Unauthorized(caller, role)

    def grant_role(self, caller: Address, role: str, account: Address) -> None:
        if caller != self.owner:
            raise Unauthorized(caller, "OWNER")
        self._roles.setdefault(role, set()).add(account)
        logger.info("role %s granted to %s", role, account)

    def revoke_role(self, caller: Address, role: str, account: Address) -> None:
        if caller != self.owner:
            raise Unauthorized(caller, "OWNER")
        self._roles.get(role, set()).discard(account)
        logger.info("role %s revoked from %s", role, account)

    def transfer_ownership(self, caller: Address, new_owner: Address) -> None:
        if caller != self.owner:
            raise Unauthorized(caller, "OWNER")
        if not new_owner:
            raise ValueError("new_owner must be non-empty")
        logger.info("ownership transferred from %s to %s", self.owner, new_owner)
        self.owner = new_owner
