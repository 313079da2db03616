"""
Data domain.

Each classification tier maps to a protection profile. A request passes
only when every protection the profile demands can be applied:
encryption, restricted access and a retention policy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from ..access.context import AccessRequest, DomainResult
from ..exceptions import RegistryError
from ..policy.models import Domain, Policy, RiskLevel
from .base import DomainVerifier


@dataclass
class ProtectionProfile:
    classification: str
    encryption_required: bool = False
    restricted_access: bool = False
    authorized_subjects: set[str] = field(default_factory=set)
    retention_days: int = 0

    @classmethod
    def from_dict(cls, classification: str, data: dict[str, Any]) -> ProtectionProfile:
        return cls(
            classification=classification,
            encryption_required=bool(data.get("encryption_required", False)),
            restricted_access=bool(data.get("restricted_access", False)),
            authorized_subjects=set(data.get("authorized_subjects", [])),
            retention_days=int(data.get("retention_days", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "classification": self.classification,
            "encryption_required": self.encryption_required,
            "restricted_access": self.restricted_access,
            "authorized_subjects": sorted(self.authorized_subjects),
            "retention_days": self.retention_days,
        }


class DataVerifier(DomainVerifier):
    domain = Domain.DATA

    def __init__(self, profiles: dict[str, dict[str, Any]] | None = None):
        super().__init__()
        self._profiles: dict[str, ProtectionProfile] = {}
        for name, data in (profiles or {}).items():
            self._profiles[name] = ProtectionProfile.from_dict(name, data)

    def default_policies(self) -> list[Policy]:
        return [
            Policy(
                policy_id="data-classification",
                name="Data Classification",
                domain=self.domain,
                description="Data must carry a known classification tier",
                risk_level=RiskLevel.HIGH,
                policy_type="Classification",
                rules={"tiers": sorted(self._profiles)},
                owner="data-governance",
            ),
            Policy(
                policy_id="data-encryption",
                name="Data Encryption",
                domain=self.domain,
                description="Tiers marked for encryption are only served over encrypted access",
                risk_level=RiskLevel.CRITICAL,
                policy_type="Encryption",
                rules={
                    "encrypted_tiers": sorted(
                        n for n, p in self._profiles.items() if p.encryption_required
                    ),
                },
                owner="data-governance",
            ),
        ]

    # --- Classification table ---

    def define_classification(self, profile: ProtectionProfile) -> None:
        with self._lock.write():
            self._profiles[profile.classification] = profile

    def authorize_subject(self, classification: str, subject_id: str) -> None:
        with self._lock.write():
            profile = self._profiles.get(classification)
            if profile is None:
                raise RegistryError(f"unknown classification: {classification}")
            profile.authorized_subjects.add(subject_id)

    def get_profile(self, classification: str) -> ProtectionProfile | None:
        with self._lock.read():
            return self._profiles.get(classification)

    def classifications(self) -> list[str]:
        with self._lock.read():
            return list(self._profiles)

    # --- Verification ---

    def verify(self, request: AccessRequest, policies: Iterable[Policy]) -> DomainResult:
        classification = str(request.require("classification", self.domain))

        with self._lock.read():
            profile = self._profiles.get(classification)
            authorized = profile is not None and request.subject_id in profile.authorized_subjects
        if profile is None:
            return self._fail("UnknownClassification", classification=classification)

        applied = []
        if profile.encryption_required:
            if not request.get("encrypted"):
                return self._fail("EncryptionRequired", classification=classification)
            applied.append("encryption")
        if profile.restricted_access:
            if not authorized:
                return self._fail(
                    "AccessRestricted",
                    classification=classification,
                    subject_id=request.subject_id,
                )
            applied.append("restricted_access")
        if profile.retention_days <= 0:
            return self._fail("NoRetentionPolicy", classification=classification)
        applied.append("retention")

        return self._pass(
            "DataProtected",
            classification=classification,
            data_id=request.get("data_id", ""),
            protections=applied,
            retention_days=profile.retention_days,
        )
