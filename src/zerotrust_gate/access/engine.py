"""
Zero trust access decision engine.

Runs every access request through the five domain verifiers in a fixed
order (identity, device, network, application, data). The first failing
domain denies the request; only a request that passes all five is
allowed. Faults inside a verifier resolve to Deny, never to Allow.
"""

from __future__ import annotations

import logging
from typing import Any

from ..assessment.monitor import AssessmentMonitor
from ..assessment.reporter import AssessmentReport, AssessmentReporter
from ..assessment.sink import ReportSink
from ..config import ZeroTrustConfig
from ..exceptions import VerifierFault
from ..microseg.segments import SegmentManager
from ..policy.models import Domain, Policy
from ..policy.registry import PolicyRegistry
from ..providers import IdentityProvider, PostureProvider
from ..verifiers import (
    ApplicationVerifier,
    DataVerifier,
    DeviceVerifier,
    DomainVerifier,
    IdentityVerifier,
    NetworkVerifier,
)
from .audit import AuditLog, DecisionRecorder
from .context import AccessDecision, AccessRequest, DomainResult, Outcome

logger = logging.getLogger(__name__)

FAULT_REASON = "VerifierFault"


class ZeroTrustEngine:
    """
    Orchestrates the verifier chain and owns the policy registry and
    the audit log.
    """

    def __init__(
        self,
        config: ZeroTrustConfig | None = None,
        identity_provider: IdentityProvider | None = None,
        posture_provider: PostureProvider | None = None,
        decision_sink: ReportSink | None = None,
    ):
        self.config = config or ZeroTrustConfig()
        self.registry = PolicyRegistry()
        self.audit_log = AuditLog()

        self.identity = IdentityVerifier(
            provider=identity_provider,
            require_mfa=self.config.require_mfa,
            allowed_factors=self.config.allowed_mfa_factors,
        )
        self.device = DeviceVerifier(
            threshold=self.config.device_trust_threshold,
            scoring=self.config.device_scoring,
            posture_provider=posture_provider,
        )
        self.network = NetworkVerifier(
            SegmentManager.from_config(self.config.segments, self.config.allowed_transitions)
        )
        self.application = ApplicationVerifier()
        self.data = DataVerifier(self.config.classifications)

        self.verifiers: tuple[DomainVerifier, ...] = (
            self.identity,
            self.device,
            self.network,
            self.application,
            self.data,
        )
        for verifier in self.verifiers:
            verifier.seed_policies(self.registry)

        self.reporter = AssessmentReporter(
            self.registry,
            self.audit_log,
            window=self.config.report_window,
            network_source=self.network.source,
        )

        self.recorder: DecisionRecorder | None = None
        if decision_sink is not None:
            sink_cfg = self.config.sink
            self.recorder = DecisionRecorder(
                decision_sink,
                mode=sink_cfg.persistence,
                batch_size=sink_cfg.batch_size,
                retries=sink_cfg.retries,
                backoff_base=sink_cfg.backoff_base,
                backoff_max=sink_cfg.backoff_max,
                max_pending=sink_cfg.max_pending,
            )

    # --- Evaluation ---

    def evaluate(self, request: AccessRequest) -> AccessDecision:
        """
        Evaluate an access request and return the decision.

        Raises ValidationError for malformed requests before any verifier
        runs; such requests are not logged. Every other request produces
        exactly one audit log entry.
        """
        request.validate()
        snapshot = self.registry.snapshot()

        results: list[DomainResult] = []
        for verifier in self.verifiers:
            result = self._run_verifier(verifier, request, snapshot[verifier.domain])
            results.append(result)
            if not result.passed:
                break

        passed_all = len(results) == len(self.verifiers) and results[-1].passed
        outcome = Outcome.ALLOW if passed_all else Outcome.DENY
        decision = AccessDecision(
            request_id=request.request_id,
            subject_id=request.subject_id,
            resource_id=request.resource_id,
            action=request.action,
            outcome=outcome,
            domain_results=tuple(results),
        )
        self.audit_log.append(decision)

        if decision.allowed:
            logger.debug(
                "ALLOW %s -> %s (%s) request=%s",
                decision.subject_id, decision.resource_id, decision.action, decision.request_id,
            )
        else:
            logger.info(
                "DENY %s -> %s (%s) at %s: %s request=%s",
                decision.subject_id, decision.resource_id, decision.action,
                decision.failed_domain.value, decision.reason_code, decision.request_id,
            )

        if self.recorder is not None:
            self.recorder.record(decision)
        return decision

    def _run_verifier(
        self,
        verifier: DomainVerifier,
        request: AccessRequest,
        policies: tuple[Policy, ...],
    ) -> DomainResult:
        try:
            return verifier.verify(request, policies)
        except VerifierFault as e:
            logger.warning("%s verifier fault on request %s: %s", verifier.domain.value, request.request_id, e)
            error = str(e)
        except Exception as e:
            logger.warning(
                "%s verifier raised unexpectedly on request %s",
                verifier.domain.value, request.request_id, exc_info=True,
            )
            error = f"{type(e).__name__}: {e}"
        return DomainResult(
            domain=verifier.domain,
            passed=False,
            reason_code=FAULT_REASON,
            details={"error": error},
            fault=True,
        )

    def flush(self) -> bool:
        """Flush buffered decisions to the decision sink."""
        if self.recorder is None:
            return True
        return self.recorder.flush()

    # --- Policy administration ---

    def define_policy(self, policy: Policy) -> Policy:
        return self.registry.register(policy)

    def update_policy(self, policy_id: str, **changes: Any) -> Policy:
        return self.registry.update(policy_id, **changes)

    def retire_policy(self, policy_id: str) -> Policy:
        return self.registry.retire(policy_id)

    # --- Queries ---

    def recent_decisions(self, n: int = 50) -> list[dict[str, Any]]:
        return [d.to_dict() for d in self.audit_log.recent(n)]

    def decision_stats(self) -> dict[str, Any]:
        stats: dict[str, Any] = {"total": 0, "allow": 0, "deny": 0, "faults": 0}
        by_domain = {d.value: 0 for d in Domain.ordered()}
        for d in self.audit_log.entries():
            stats["total"] += 1
            stats[d.outcome.value] += 1
            if d.faulted:
                stats["faults"] += 1
            if d.failed_domain is not None:
                by_domain[d.failed_domain.value] += 1
        stats["denials_by_domain"] = by_domain
        stats["high_severity_alerts"] = len(self.audit_log.alerts())
        return stats

    # --- Assessment ---

    def generate_report(self, recent: int | None = None) -> AssessmentReport:
        return self.reporter.generate_report(recent)

    def create_monitor(self, sink: ReportSink, interval: float | None = None) -> AssessmentMonitor:
        sink_cfg = self.config.sink
        return AssessmentMonitor(
            self.reporter,
            sink,
            interval=interval or self.config.monitor_interval,
            retries=sink_cfg.retries,
            backoff_base=sink_cfg.backoff_base,
            backoff_max=sink_cfg.backoff_max,
            on_tick=self.flush,
        )
