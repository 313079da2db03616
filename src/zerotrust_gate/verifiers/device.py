"""
Device domain.

Registered devices are scored from their declared security posture:
a fixed baseline plus a weight for every present security feature,
clamped to 0-100. The device passes when registered and its trust
score reaches the threshold.
"""

from __future__ import annotations

import time
from typing import Any, Iterable

from ..access.context import AccessRequest, DomainResult
from ..config import DeviceScoring
from ..exceptions import RegistryError, VerifierFault
from ..identity.models import Device, PostureFlags
from ..policy.models import Domain, Policy, RiskLevel
from ..providers import PostureProvider
from .base import DomainVerifier


def trust_score(posture: PostureFlags, scoring: DeviceScoring | None = None) -> int:
    """Bounded 0-100 trust score for a device posture."""
    scoring = scoring or DeviceScoring()
    score = scoring.baseline
    if posture.antivirus:
        score += scoring.antivirus
    if posture.firewall:
        score += scoring.firewall
    if posture.disk_encryption:
        score += scoring.encryption
    if posture.patches_current:
        score += scoring.patches_current
    if posture.biometric_capable:
        score += scoring.biometric
    return max(0, min(100, score))


class DeviceVerifier(DomainVerifier):
    domain = Domain.DEVICE

    def __init__(
        self,
        threshold: int = 70,
        scoring: DeviceScoring | None = None,
        posture_provider: PostureProvider | None = None,
    ):
        super().__init__()
        self.threshold = threshold
        self.scoring = scoring or DeviceScoring()
        self.posture_provider = posture_provider
        self._devices: dict[str, Device] = {}

    def default_policies(self) -> list[Policy]:
        return [
            Policy(
                policy_id="device-compliance",
                name="Device Compliance",
                domain=self.domain,
                description="Device trust score must meet the minimum threshold",
                risk_level=RiskLevel.HIGH,
                policy_type="Compliance",
                rules={
                    "min_trust_score": self.threshold,
                    "checks": ["antivirus", "firewall", "disk_encryption", "patches_current"],
                },
                owner="endpoint-team",
            ),
            Policy(
                policy_id="device-registration",
                name="Device Registration",
                domain=self.domain,
                description="Only registered devices may be used for access",
                risk_level=RiskLevel.MEDIUM,
                policy_type="Registration",
                rules={"require_registration": True},
                owner="endpoint-team",
            ),
        ]

    # --- Device inventory ---

    def register_device(self, device: Device) -> None:
        with self._lock.write():
            self._devices[device.device_id] = device

    def unregister_device(self, device_id: str) -> bool:
        with self._lock.write():
            return self._devices.pop(device_id, None) is not None

    def update_posture(self, device_id: str, posture: PostureFlags) -> None:
        """Record a last-seen compliance snapshot for a registered device."""
        with self._lock.write():
            device = self._devices.get(device_id)
            if device is None:
                raise RegistryError(f"unknown device: {device_id}")
            device.posture = posture
            device.last_seen = time.time()

    def get_device(self, device_id: str) -> Device | None:
        with self._lock.read():
            return self._devices.get(device_id)

    def devices(self) -> list[Device]:
        with self._lock.read():
            return list(self._devices.values())

    # --- Verification ---

    def effective_threshold(self, policies: Iterable[Policy]) -> int:
        thresholds = [
            int(p.rule("min_trust_score"))
            for p in self.enforced(policies)
            if p.rule("min_trust_score") is not None
        ]
        return max(thresholds) if thresholds else self.threshold

    def _resolve_posture(self, request: AccessRequest, device: Device) -> tuple[PostureFlags, str]:
        if self.posture_provider is not None:
            posture = self.posture_provider.get_device_posture(device.device_id)
            if posture is not None:
                return posture, "edr"
        info = request.get("device_info")
        if isinstance(info, PostureFlags):
            return info, "context"
        if isinstance(info, dict):
            return PostureFlags.from_dict(info), "context"
        if device.posture is not None:
            return device.posture, "snapshot"
        raise VerifierFault(f"no posture available for device {device.device_id}")

    def verify(self, request: AccessRequest, policies: Iterable[Policy]) -> DomainResult:
        policies = list(policies)
        device_id = request.require("device_id", self.domain)

        with self._lock.read():
            device = self._devices.get(device_id)
        if device is None:
            return self._fail("UnregisteredDevice", device_id=device_id)

        posture, source = self._resolve_posture(request, device)
        score = trust_score(posture, self.scoring)
        threshold = self.effective_threshold(policies)
        details: dict[str, Any] = {
            "device_id": device_id,
            "trust_score": score,
            "threshold": threshold,
            "posture": posture.to_dict(),
            "posture_source": source,
        }
        if score < threshold:
            return self._fail("InsufficientTrustScore", **details)
        return self._pass("DeviceTrusted", **details)
