"""
Assessment reporter.

Derives a point-in-time risk and compliance snapshot from the policy
registry and recent access decisions. The report is a pure function of
that state: recommendations come from fixed rules, not from generated
text.
"""

from __future__ import annotations

import time
import uuid
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

from ..policy.models import Domain, RiskLevel

if TYPE_CHECKING:
    from ..access.audit import AuditLog
    from ..access.context import AccessDecision
    from ..policy.registry import PolicyRegistry
    from ..providers import NetworkPolicySource

TIER_RECOMMENDATIONS = {
    RiskLevel.CRITICAL: "Continuously monitor critical-risk policies and alert on any enforcement change",
    RiskLevel.HIGH: "Review high-risk policies at least quarterly",
    RiskLevel.MEDIUM: "Validate medium-risk policy rules against observed access patterns",
    RiskLevel.LOW: "Confirm low-risk policies still reflect business requirements",
    RiskLevel.INFO: "Archive informational policies that no longer drive decisions",
}


@dataclass(frozen=True)
class AssessmentReport:
    timestamp: float
    total_policies: int
    enforced_policies: int
    enforcement_ratio: float
    risk_breakdown: dict[str, int]
    per_domain_status: dict[str, dict[str, Any]]
    decision_summary: dict[str, Any]
    recommendations: tuple[str, ...]
    report_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> dict[str, Any]:
        return {
            "report_id": self.report_id,
            "timestamp": self.timestamp,
            "total_policies": self.total_policies,
            "enforced_policies": self.enforced_policies,
            "enforcement_ratio": self.enforcement_ratio,
            "risk_breakdown": dict(self.risk_breakdown),
            "per_domain_status": {k: dict(v) for k, v in self.per_domain_status.items()},
            "decision_summary": dict(self.decision_summary),
            "recommendations": list(self.recommendations),
        }


class AssessmentReporter:
    """Builds AssessmentReports from a registry and an audit log."""

    def __init__(
        self,
        registry: PolicyRegistry,
        audit_log: AuditLog,
        window: int = 500,
        network_source: NetworkPolicySource | None = None,
    ):
        self.registry = registry
        self.audit_log = audit_log
        self.window = window
        self.network_source = network_source

    def generate_report(self, recent: int | None = None) -> AssessmentReport:
        policies = self.registry.list_all()
        decisions = self.audit_log.recent(self.window if recent is None else recent)

        total = len(policies)
        enforced = sum(1 for p in policies if p.enforced)

        risk_counts = Counter(p.risk_level for p in policies)
        risk_breakdown = {level.value: risk_counts.get(level, 0) for level in RiskLevel}

        summary = self._decision_summary(decisions)
        per_domain: dict[str, dict[str, Any]] = {}
        for domain in Domain.ordered():
            in_domain = [p for p in policies if p.domain == domain]
            per_domain[domain.value] = {
                "policies": len(in_domain),
                "enforced": sum(1 for p in in_domain if p.enforced),
                "denials": summary["denials_by_domain"][domain.value],
            }

        # segment graphs that can score themselves report their isolation
        isolation = getattr(self.network_source, "isolation_score", None)
        if callable(isolation):
            per_domain[Domain.NETWORK.value]["isolation_score"] = isolation()

        return AssessmentReport(
            timestamp=time.time(),
            total_policies=total,
            enforced_policies=enforced,
            enforcement_ratio=round(enforced / total, 4) if total else 0.0,
            risk_breakdown=risk_breakdown,
            per_domain_status=per_domain,
            decision_summary=summary,
            recommendations=tuple(self._recommendations(total, enforced, risk_counts, summary)),
        )

    def _decision_summary(self, decisions: tuple[AccessDecision, ...]) -> dict[str, Any]:
        denied = [d for d in decisions if not d.allowed]
        by_domain = {d.value: 0 for d in Domain.ordered()}
        for d in denied:
            by_domain[d.failed_domain.value] += 1

        return {
            "total": len(decisions),
            "allowed": len(decisions) - len(denied),
            "denied": len(denied),
            "faults": sum(1 for d in decisions if d.faulted),
            "high_severity": sum(1 for d in decisions if self.audit_log.severity_for(d) == "high"),
            "deny_rate": round(len(denied) / len(decisions), 4) if decisions else 0.0,
            "denials_by_domain": by_domain,
            "denials_by_reason": dict(sorted(Counter(d.reason_code for d in denied).items())),
            "device_trust": self._device_trust_stats(decisions),
        }

    @staticmethod
    def _device_trust_stats(decisions: tuple[AccessDecision, ...]) -> dict[str, Any]:
        scores = [
            r.details["trust_score"]
            for d in decisions
            for r in d.domain_results
            if r.domain == Domain.DEVICE and "trust_score" in r.details
        ]
        if not scores:
            return {"samples": 0}

        arr = np.array(scores, dtype=float)
        return {
            "samples": int(arr.size),
            "mean": round(float(arr.mean()), 2),
            "min": round(float(arr.min()), 2),
            "max": round(float(arr.max()), 2),
            "std": round(float(arr.std()), 2),
        }

    @staticmethod
    def _recommendations(
        total: int,
        enforced: int,
        risk_counts: Counter,
        summary: dict[str, Any],
    ) -> list[str]:
        recs = []
        if enforced < total:
            recs.append(f"Enforce {total - enforced} remaining policies")

        for level in sorted(RiskLevel, key=lambda lv: lv.rank, reverse=True):
            if risk_counts.get(level, 0) > 0:
                recs.append(TIER_RECOMMENDATIONS[level])

        if summary["faults"]:
            recs.append(f"Investigate {summary['faults']} verifier faults")

        worst, worst_count = None, 0
        for domain in Domain.ordered():
            count = summary["denials_by_domain"][domain.value]
            if count > worst_count:
                worst, worst_count = domain, count
        if worst is not None:
            recs.append(f"Review {worst.value} controls: {worst_count} denials")

        return recs
