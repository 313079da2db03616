"""
Policy registry.

Aggregates the policies of every domain verifier for enforcement,
reporting and audit. Policies are replaced on update and retired
rather than deleted.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import Any

import yaml

from ..exceptions import (
    DuplicatePolicyError,
    PolicyNotFoundError,
    PolicyValidationError,
)
from ..locks import RWLock
from .models import Domain, Policy

logger = logging.getLogger(__name__)

_IMMUTABLE_FIELDS = ("policy_id", "domain", "last_updated")


class PolicyRegistry:
    """Thread-safe store of policies keyed by id."""

    def __init__(self):
        self._policies: dict[str, Policy] = {}
        self._lock = RWLock()

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._policies)

    def __contains__(self, policy_id: object) -> bool:
        with self._lock.read():
            return policy_id in self._policies

    # --- Mutation ---

    def register(self, policy: Policy) -> Policy:
        with self._lock.write():
            if policy.policy_id in self._policies:
                raise DuplicatePolicyError(policy.policy_id)
            self._policies[policy.policy_id] = policy
        logger.debug("Registered policy %s (%s)", policy.policy_id, policy.domain.value)
        return policy

    def update(self, policy_id: str, **changes: Any) -> Policy:
        """Apply changes to a policy and stamp last_updated."""
        for name in changes:
            if name in _IMMUTABLE_FIELDS:
                raise PolicyValidationError(f"field '{name}' cannot be updated")

        with self._lock.write():
            current = self._policies.get(policy_id)
            if current is None:
                raise PolicyNotFoundError(policy_id)
            try:
                updated = dataclasses.replace(current, last_updated=time.time(), **changes)
            except TypeError as e:
                raise PolicyValidationError(str(e)) from None
            self._policies[policy_id] = updated

        logger.info("Updated policy %s: %s", policy_id, ", ".join(sorted(changes)) or "touch")
        return updated

    def retire(self, policy_id: str) -> Policy:
        return self.update(policy_id, enforced=False)

    # --- Queries ---

    def get(self, policy_id: str) -> Policy:
        with self._lock.read():
            policy = self._policies.get(policy_id)
        if policy is None:
            raise PolicyNotFoundError(policy_id)
        return policy

    def list_all(self) -> list[Policy]:
        with self._lock.read():
            return list(self._policies.values())

    def list_by_domain(self, domain: Domain | str) -> list[Policy]:
        domain = Domain(domain)
        with self._lock.read():
            return [p for p in self._policies.values() if p.domain == domain]

    def enforcement_ratio(self) -> float:
        with self._lock.read():
            total = len(self._policies)
            if total == 0:
                return 0.0
            enforced = sum(1 for p in self._policies.values() if p.enforced)
        return enforced / total

    def snapshot(self) -> dict[Domain, tuple[Policy, ...]]:
        """Consistent point-in-time view of every domain's policies."""
        with self._lock.read():
            policies = list(self._policies.values())
        return {
            d: tuple(p for p in policies if p.domain == d)
            for d in Domain.ordered()
        }

    # --- YAML interchange ---

    def load_yaml(self, yaml_str: str) -> list[Policy]:
        """Register policies from a YAML document."""
        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, dict):
            raise PolicyValidationError("policy YAML must be a mapping")

        entries = data.get("policies", [data] if "policy_id" in data else [])
        policies = [Policy.from_dict(pdata) for pdata in entries]
        for policy in policies:
            self.register(policy)
        return policies

    def export_yaml(self) -> str:
        data = {"policies": [p.to_dict() for p in self.list_all()]}
        return yaml.dump(data, default_flow_style=False, sort_keys=False)

    def summary(self) -> dict[str, Any]:
        policies = self.list_all()
        return {
            "total_policies": len(policies),
            "enforced_policies": sum(1 for p in policies if p.enforced),
            "enforcement_ratio": round(self.enforcement_ratio(), 4),
            "policies": [
                {
                    "policy_id": p.policy_id,
                    "name": p.name,
                    "domain": p.domain.value,
                    "risk_level": p.risk_level.value,
                    "enforced": p.enforced,
                }
                for p in policies
            ],
        }
