"""Identity domain: known, unblocked principals with recognized MFA evidence."""

from __future__ import annotations

from typing import Iterable

from ..access.context import AccessRequest, DomainResult
from ..identity.registry import IdentityRegistry
from ..policy.models import Domain, EnforcementMethod, Policy, RiskLevel
from ..providers import IdentityProvider
from .base import DomainVerifier


class IdentityVerifier(DomainVerifier):
    domain = Domain.IDENTITY

    def __init__(
        self,
        provider: IdentityProvider | None = None,
        require_mfa: bool = True,
        allowed_factors: Iterable[str] = (),
    ):
        super().__init__()
        self.provider = provider if provider is not None else IdentityRegistry()
        self.require_mfa = require_mfa
        self.allowed_factors = tuple(f.lower() for f in allowed_factors)

    def default_policies(self) -> list[Policy]:
        return [
            Policy(
                policy_id="identity-mfa",
                name="Multi-Factor Authentication",
                domain=self.domain,
                description="Require a recognized second factor on every request",
                risk_level=RiskLevel.HIGH,
                policy_type="Authentication",
                rules={
                    "require_mfa": self.require_mfa,
                    "allowed_factors": list(self.allowed_factors),
                },
                owner="identity-team",
            ),
            Policy(
                policy_id="identity-verification",
                name="Identity Verification",
                domain=self.domain,
                description="Only known, non-blocked principals may request access",
                risk_level=RiskLevel.MEDIUM,
                policy_type="Authentication",
                rules={"require_known_subject": True, "deny_blocked": True},
                enforcement_method=EnforcementMethod.AUTOMATIC,
                owner="identity-team",
            ),
        ]

    def verify(self, request: AccessRequest, policies: Iterable[Policy]) -> DomainResult:
        subject = request.subject_id
        if not self.provider.is_known_subject(subject):
            return self._fail("UnknownSubject", subject_id=subject)
        if self.provider.is_blocked(subject):
            return self._fail("SubjectBlocked", subject_id=subject)

        mfa_policies = [p for p in self.enforced(policies) if p.rule("require_mfa")]
        if not mfa_policies:
            return self._pass("IdentityVerified", subject_id=subject, mfa_required=False)

        allowed: set[str] = set()
        for policy in mfa_policies:
            allowed.update(f.lower() for f in policy.rule("allowed_factors", []))
        if not allowed:
            allowed = set(self.allowed_factors)

        factor = request.get("mfa_factor")
        if not factor:
            return self._fail("MfaRequired", subject_id=subject, policies=[p.policy_id for p in mfa_policies])
        factor = str(factor).lower()
        if factor not in allowed:
            return self._fail("UnrecognizedFactor", factor=factor, allowed=sorted(allowed))
        if factor not in self.provider.registered_factors(subject):
            return self._fail("FactorNotRegistered", factor=factor, subject_id=subject)

        return self._pass("IdentityVerified", subject_id=subject, mfa_required=True, factor=factor)
