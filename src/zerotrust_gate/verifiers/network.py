"""Network domain: default-deny segment transitions."""

from __future__ import annotations

from typing import Iterable

from ..access.context import AccessRequest, DomainResult
from ..microseg.segments import SegmentManager
from ..policy.models import Domain, Policy, RiskLevel
from ..providers import NetworkPolicySource
from .base import DomainVerifier


class NetworkVerifier(DomainVerifier):
    domain = Domain.NETWORK

    def __init__(self, source: NetworkPolicySource | None = None):
        super().__init__()
        self.source = source if source is not None else SegmentManager()

    def default_policies(self) -> list[Policy]:
        return [
            Policy(
                policy_id="network-segmentation",
                name="Network Micro-Segmentation",
                domain=self.domain,
                description="Traffic may only cross segments on the permitted transition list",
                risk_level=RiskLevel.HIGH,
                policy_type="Segmentation",
                rules={"enforce_allow_list": True},
                owner="network-team",
            ),
            Policy(
                policy_id="network-default-deny",
                name="Default Deny",
                domain=self.domain,
                description="Unknown segments and unlisted transitions are denied",
                risk_level=RiskLevel.CRITICAL,
                policy_type="Segmentation",
                rules={"default_deny": True},
                owner="network-team",
            ),
        ]

    def verify(self, request: AccessRequest, policies: Iterable[Policy]) -> DomainResult:
        source = str(request.require("source_segment", self.domain))
        target = str(request.require("target_segment", self.domain))

        known = set(self.source.segment_ids())
        unknown = [s for s in (source, target) if s not in known]
        if unknown:
            return self._fail("UnknownSegment", unknown=unknown, source=source, target=target)

        if not self.source.is_transition_allowed(source, target):
            return self._fail("TransitionNotAllowed", source=source, target=target)
        return self._pass("TransitionAllowed", source=source, target=target)
