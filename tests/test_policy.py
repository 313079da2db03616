"""Tests for the policy model and registry."""

import pytest

from zerotrust_gate.exceptions import (
    DuplicateIdError,
    DuplicatePolicyError,
    PolicyNotFoundError,
    PolicyValidationError,
)
from zerotrust_gate.policy import Domain, Policy, PolicyRegistry, RiskLevel


def _policy(policy_id="p1", domain=Domain.IDENTITY, **kwargs):
    return Policy(policy_id=policy_id, name=f"Policy {policy_id}", domain=domain, **kwargs)


class TestPolicy:
    def test_string_enums_are_coerced(self):
        p = Policy("p1", "P1", domain="network", risk_level="CRITICAL")
        assert p.domain == Domain.NETWORK
        assert p.risk_level == RiskLevel.CRITICAL

    def test_invalid_domain(self):
        with pytest.raises(PolicyValidationError):
            Policy("p1", "P1", domain="perimeter")

    def test_invalid_risk_level(self):
        with pytest.raises(PolicyValidationError):
            Policy("p1", "P1", domain="data", risk_level="severe")

    def test_empty_id_rejected(self):
        with pytest.raises(PolicyValidationError):
            Policy("", "P1", domain="data")

    def test_risk_ordering(self):
        assert RiskLevel.INFO < RiskLevel.LOW < RiskLevel.MEDIUM < RiskLevel.HIGH < RiskLevel.CRITICAL

    def test_from_dict_missing_field(self):
        with pytest.raises(PolicyValidationError, match="domain"):
            Policy.from_dict({"policy_id": "p1", "name": "P1"})

    def test_from_dict_rejects_non_mapping(self):
        with pytest.raises(PolicyValidationError, match="mapping"):
            Policy.from_dict(["p1", "P1", "identity"])

    def test_enforced_flag_strings(self):
        assert _policy(enforced="false").enforced is False
        assert _policy(enforced="No").enforced is False
        assert _policy(enforced="yes").enforced is True

    def test_enforced_flag_rejects_other_values(self):
        with pytest.raises(PolicyValidationError, match="enforced"):
            _policy(enforced="sometimes")
        with pytest.raises(PolicyValidationError):
            _policy(enforced=None)

    def test_dict_roundtrip(self):
        p = _policy(rules={"min_trust_score": 80}, owner="sec")
        restored = Policy.from_dict(p.to_dict())
        assert restored == p

    def test_frozen(self):
        p = _policy()
        with pytest.raises(Exception):
            p.enforced = False


class TestPolicyRegistry:
    def test_register_and_get(self):
        reg = PolicyRegistry()
        reg.register(_policy())
        assert "p1" in reg
        assert reg.get("p1").name == "Policy p1"
        assert len(reg) == 1

    def test_duplicate_id_leaves_registry_unchanged(self):
        reg = PolicyRegistry()
        original = reg.register(_policy())
        before = len(reg)
        with pytest.raises(DuplicateIdError):
            reg.register(_policy(description="replacement"))
        assert len(reg) == before
        assert reg.get("p1") is original

    def test_duplicate_alias(self):
        assert DuplicateIdError is DuplicatePolicyError

    def test_get_missing(self):
        with pytest.raises(PolicyNotFoundError):
            PolicyRegistry().get("nope")

    def test_update_replaces_and_stamps(self):
        reg = PolicyRegistry()
        original = reg.register(_policy(last_updated=1.0))
        updated = reg.update("p1", risk_level="high", rules={"require_mfa": True})
        assert updated is not original
        assert updated.risk_level == RiskLevel.HIGH
        assert updated.rule("require_mfa") is True
        assert updated.last_updated > original.last_updated
        assert original.risk_level == RiskLevel.MEDIUM

    def test_update_immutable_field(self):
        reg = PolicyRegistry()
        reg.register(_policy())
        with pytest.raises(PolicyValidationError):
            reg.update("p1", domain="data")

    def test_update_unknown_field(self):
        reg = PolicyRegistry()
        reg.register(_policy())
        with pytest.raises(PolicyValidationError):
            reg.update("p1", colour="red")

    def test_update_missing(self):
        with pytest.raises(PolicyNotFoundError):
            PolicyRegistry().update("nope", enforced=False)

    def test_update_enforced_from_string(self):
        reg = PolicyRegistry()
        reg.register(_policy())
        assert reg.update("p1", enforced="false").enforced is False
        with pytest.raises(PolicyValidationError):
            reg.update("p1", enforced="maybe")
        assert reg.get("p1").enforced is False

    def test_retire_keeps_policy(self):
        reg = PolicyRegistry()
        reg.register(_policy())
        retired = reg.retire("p1")
        assert not retired.enforced
        assert "p1" in reg

    def test_enforcement_ratio(self):
        reg = PolicyRegistry()
        assert reg.enforcement_ratio() == 0.0
        reg.register(_policy("a"))
        reg.register(_policy("b"))
        reg.register(_policy("c"))
        reg.register(_policy("d", enforced=False))
        assert reg.enforcement_ratio() == 0.75

    def test_list_by_domain(self):
        reg = PolicyRegistry()
        reg.register(_policy("a", Domain.IDENTITY))
        reg.register(_policy("b", Domain.DATA))
        assert [p.policy_id for p in reg.list_by_domain("data")] == ["b"]
        with pytest.raises(ValueError):
            reg.list_by_domain("perimeter")

    def test_snapshot_is_stable(self):
        reg = PolicyRegistry()
        reg.register(_policy("a", Domain.DEVICE))
        snap = reg.snapshot()
        reg.register(_policy("b", Domain.DEVICE))
        assert [p.policy_id for p in snap[Domain.DEVICE]] == ["a"]
        assert set(snap) == set(Domain)

    def test_yaml_roundtrip(self):
        reg = PolicyRegistry()
        reg.register(_policy("a", Domain.NETWORK, risk_level="critical", rules={"default_deny": True}))
        exported = reg.export_yaml()

        other = PolicyRegistry()
        loaded = other.load_yaml(exported)
        assert len(loaded) == 1
        assert other.get("a").risk_level == RiskLevel.CRITICAL
        assert other.get("a").rule("default_deny") is True

    def test_load_yaml_single_policy(self):
        reg = PolicyRegistry()
        reg.load_yaml("policy_id: solo\nname: Solo\ndomain: device\n")
        assert reg.get("solo").domain == Domain.DEVICE

    def test_load_yaml_rejects_non_mapping(self):
        with pytest.raises(PolicyValidationError):
            PolicyRegistry().load_yaml("- just\n- a list\n")

    def test_summary(self):
        reg = PolicyRegistry()
        reg.register(_policy("a"))
        reg.register(_policy("b", enforced=False))
        s = reg.summary()
        assert s["total_policies"] == 2
        assert s["enforced_policies"] == 1
        assert s["enforcement_ratio"] == 0.5
