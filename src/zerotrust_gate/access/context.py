"""
Access request and decision records.

An AccessRequest carries whatever context attributes the five domain
verifiers need; each verifier produces a DomainResult and the engine
folds them into one immutable AccessDecision.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..exceptions import MissingContextError, ValidationError
from ..policy.models import Domain


class Outcome(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


@dataclass
class AccessRequest:
    """One access attempt by a subject against a resource."""
    subject_id: str
    resource_id: str
    action: str = "read"
    context: dict[str, Any] = field(default_factory=dict)
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: float = field(default_factory=time.time)

    def validate(self) -> None:
        missing = [
            name for name in ("subject_id", "resource_id", "action")
            if not isinstance(getattr(self, name), str) or not getattr(self, name).strip()
        ]
        if missing:
            raise ValidationError(f"access request missing: {', '.join(missing)}")
        if not isinstance(self.context, dict):
            raise ValidationError("access request context must be a mapping")

    def get(self, key: str, default: Any = None) -> Any:
        return self.context.get(key, default)

    def require(self, key: str, domain: Domain | None = None) -> Any:
        """Return a context value, treating None and "" as absent."""
        value = self.context.get(key)
        if value is None or value == "":
            raise MissingContextError(key, domain.value if domain else "")
        return value

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccessRequest:
        if not isinstance(data, dict):
            raise ValidationError("access request must be a JSON object")
        context = data.get("context")
        if context is None:
            context = {}
        elif not isinstance(context, dict):
            raise ValidationError("access request context must be a mapping")
        kwargs = {}
        if data.get("request_id"):
            kwargs["request_id"] = data["request_id"]
        return cls(
            subject_id=data.get("subject_id", ""),
            resource_id=data.get("resource_id", ""),
            action=data.get("action", "read"),
            context=dict(context),
            **kwargs,
        )


@dataclass(frozen=True)
class DomainResult:
    domain: Domain
    passed: bool
    reason_code: str
    details: dict[str, Any] = field(default_factory=dict)
    fault: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain.value,
            "passed": self.passed,
            "reason_code": self.reason_code,
            "details": dict(self.details),
            "fault": self.fault,
        }


@dataclass(frozen=True)
class AccessDecision:
    request_id: str
    subject_id: str
    resource_id: str
    action: str
    outcome: Outcome
    domain_results: tuple[DomainResult, ...]
    timestamp: float = field(default_factory=time.time)

    @property
    def allowed(self) -> bool:
        return self.outcome == Outcome.ALLOW

    @property
    def failed_result(self) -> DomainResult | None:
        for result in self.domain_results:
            if not result.passed:
                return result
        return None

    @property
    def failed_domain(self) -> Domain | None:
        failed = self.failed_result
        return failed.domain if failed else None

    @property
    def reason_code(self) -> str:
        failed = self.failed_result
        return failed.reason_code if failed else "Allowed"

    @property
    def faulted(self) -> bool:
        return any(r.fault for r in self.domain_results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "subject_id": self.subject_id,
            "resource_id": self.resource_id,
            "action": self.action,
            "outcome": self.outcome.value,
            "reason_code": self.reason_code,
            "domain_results": [r.to_dict() for r in self.domain_results],
            "timestamp": self.timestamp,
        }
