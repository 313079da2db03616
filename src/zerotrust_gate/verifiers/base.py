"""
Domain verifier contract.

Each verifier owns its domain registries and a set of default policies.
verify() is a function of the request, the verifier's own registries and
the policy slice handed to it by the engine: business failures come back
as passed=False, hard faults are raised as VerifierFault.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable

from ..access.context import AccessRequest, DomainResult
from ..exceptions import DuplicatePolicyError
from ..locks import RWLock
from ..policy.models import Domain, Policy
from ..policy.registry import PolicyRegistry

logger = logging.getLogger(__name__)


class DomainVerifier(ABC):
    domain: Domain

    def __init__(self):
        self._lock = RWLock()
        self._seeded = False

    @abstractmethod
    def default_policies(self) -> list[Policy]:
        """Policies created when the verifier is first attached to a registry."""

    @abstractmethod
    def verify(self, request: AccessRequest, policies: Iterable[Policy]) -> DomainResult:
        ...

    def seed_policies(self, registry: PolicyRegistry) -> list[Policy]:
        """Register default policies once; ids already present are left alone."""
        if self._seeded:
            return []
        seeded = []
        for policy in self.default_policies():
            try:
                registry.register(policy)
            except DuplicatePolicyError:
                logger.debug("Default policy %s already registered", policy.policy_id)
                continue
            seeded.append(policy)
        self._seeded = True
        return seeded

    @staticmethod
    def enforced(policies: Iterable[Policy]) -> list[Policy]:
        return [p for p in policies if p.enforced]

    def _pass(self, reason_code: str, **details: Any) -> DomainResult:
        return DomainResult(self.domain, True, reason_code, details)

    def _fail(self, reason_code: str, **details: Any) -> DomainResult:
        return DomainResult(self.domain, False, reason_code, details)
