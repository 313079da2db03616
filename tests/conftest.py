"""Shared test fixtures for ZeroTrust-Gate."""

import pytest

from zerotrust_gate.access import AccessRequest
from zerotrust_gate.access.engine import ZeroTrustEngine
from zerotrust_gate.assessment import MemorySink
from zerotrust_gate.config import ZeroTrustConfig
from zerotrust_gate.identity import IdentityRegistry
from zerotrust_gate.identity.models import Device, Identity, PostureFlags
from zerotrust_gate.microseg.segments import SegmentManager


class FlakySink(MemorySink):
    """MemorySink that fails a fixed number of writes before succeeding."""

    def __init__(self, failures: int = 1, exc: type = OSError):
        super().__init__()
        self.failures = failures
        self.exc = exc
        self.attempts = 0

    def _maybe_fail(self):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise self.exc("sink unavailable")

    def write_report(self, report):
        self._maybe_fail()
        super().write_report(report)

    def append_decisions(self, decisions):
        self._maybe_fail()
        super().append_decisions(decisions)


@pytest.fixture
def flaky_sink():
    return FlakySink


@pytest.fixture
def no_sleep():
    delays = []
    return delays.append, delays


@pytest.fixture
def identity_registry():
    reg = IdentityRegistry()
    reg.register_identity(Identity("alice", "Alice", "user", "alice@corp.io", "engineering",
                                   ["developer"], {"totp"}))
    reg.register_identity(Identity("bob", "Bob", "user", "bob@corp.io", "finance",
                                   ["analyst"], {"sms"}))
    reg.register_identity(Identity("svc-api", "API Service", "service", roles=["service-account"]))
    return reg


@pytest.fixture
def segment_manager():
    sm = SegmentManager()
    sm.create_segment("web", "Web Tier", trust_level=0.4)
    sm.create_segment("app", "App Tier", trust_level=0.6)
    sm.create_segment("data", "Data Tier", trust_level=0.9)
    sm.allow_transition("web", "app")
    sm.allow_transition("app", "data")
    return sm


@pytest.fixture
def config():
    return ZeroTrustConfig()


@pytest.fixture
def engine(config, identity_registry):
    eng = ZeroTrustEngine(config, identity_provider=identity_registry)
    eng.device.register_device(Device("dev-001", "Alice Laptop", owner_id="alice"))
    eng.device.register_device(Device("dev-002", "Bob Phone", "mobile", owner_id="bob",
                                      posture=PostureFlags(firewall=True)))
    eng.application.register_application("crm", "Customer CRM", users=["alice"])
    eng.data.authorize_subject("Confidential", "alice")
    return eng


@pytest.fixture
def full_context():
    return {
        "mfa_factor": "totp",
        "device_id": "dev-001",
        "device_info": {"antivirus": True, "firewall": True, "disk_encryption": True},
        "source_segment": "External",
        "target_segment": "Internal",
        "time": "09:30",
        "location": "us-east",
        "device": "dev-001",
        "classification": "Confidential",
        "encrypted": True,
    }


@pytest.fixture
def make_request(full_context):
    def _make(subject="alice", resource="crm", action="read", **overrides):
        context = {**full_context, **overrides}
        context = {k: v for k, v in context.items() if v is not None}
        return AccessRequest(subject, resource, action, context=context)
    return _make
