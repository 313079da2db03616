"""
In-process identity provider.

Authoritative list of known subjects and their MFA factor enrolments.
Deployments backed by an external directory supply their own object
with the same lookup methods.
"""

from __future__ import annotations

import logging
from typing import Any

from ..exceptions import RegistryError
from ..locks import RWLock
from .models import Identity

logger = logging.getLogger(__name__)


class IdentityRegistry:
    """Central identity registry."""

    def __init__(self):
        self.identities: dict[str, Identity] = {}
        self._lock = RWLock()

    # --- Identity management ---

    def register_identity(self, identity: Identity) -> None:
        with self._lock.write():
            self.identities[identity.identity_id] = identity
        logger.debug("Registered identity %s", identity.identity_id)

    def get_identity(self, identity_id: str) -> Identity | None:
        with self._lock.read():
            return self.identities.get(identity_id)

    def find_by_role(self, role: str) -> list[Identity]:
        with self._lock.read():
            return [i for i in self.identities.values() if role in i.roles]

    def _require(self, identity_id: str) -> Identity:
        ident = self.identities.get(identity_id)
        if ident is None:
            raise RegistryError(f"unknown identity: {identity_id}")
        return ident

    def block(self, identity_id: str) -> None:
        with self._lock.write():
            self._require(identity_id).blocked = True
        logger.warning("Identity %s blocked", identity_id)

    def unblock(self, identity_id: str) -> None:
        with self._lock.write():
            self._require(identity_id).blocked = False
        logger.info("Identity %s unblocked", identity_id)

    def disable_identity(self, identity_id: str) -> bool:
        with self._lock.write():
            ident = self.identities.get(identity_id)
            if ident:
                ident.enabled = False
                return True
        return False

    def enroll_factor(self, identity_id: str, factor: str) -> None:
        with self._lock.write():
            self._require(identity_id).mfa_factors.add(factor.lower())

    def remove_factor(self, identity_id: str, factor: str) -> None:
        with self._lock.write():
            self._require(identity_id).mfa_factors.discard(factor.lower())

    # --- IdentityProvider lookups ---

    def is_known_subject(self, subject_id: str) -> bool:
        with self._lock.read():
            return subject_id in self.identities

    def is_blocked(self, subject_id: str) -> bool:
        with self._lock.read():
            ident = self.identities.get(subject_id)
            return ident is None or ident.blocked or not ident.enabled

    def registered_factors(self, subject_id: str) -> set[str]:
        with self._lock.read():
            ident = self.identities.get(subject_id)
            return set(ident.mfa_factors) if ident else set()

    # --- Summary ---

    def summary(self) -> dict[str, Any]:
        with self._lock.read():
            idents = list(self.identities.values())
        return {
            "total_identities": len(idents),
            "enabled_identities": sum(1 for i in idents if i.enabled),
            "blocked_identities": sum(1 for i in idents if i.blocked),
            "mfa_enrolled": sum(1 for i in idents if i.mfa_factors),
            "identity_types": {
                t: sum(1 for i in idents if i.identity_type == t)
                for t in ("user", "service", "system")
            },
        }
