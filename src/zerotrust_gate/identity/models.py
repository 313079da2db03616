"""Identity, device and posture data models."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

# Accepted spellings for posture flags in request context and EDR payloads.
_POSTURE_ALIASES = {
    "antivirus": ("antivirus", "antivirus_active"),
    "firewall": ("firewall", "firewall_enabled"),
    "disk_encryption": ("disk_encryption", "encryption", "disk_encrypted"),
    "patches_current": ("patches_current", "os_patched", "updates"),
    "biometric_capable": ("biometric_capable", "biometric"),
}


@dataclass
class Identity:
    """A user or service principal."""
    identity_id: str
    name: str
    identity_type: str = "user"  # user, service, system
    email: str = ""
    department: str = ""
    roles: list[str] = field(default_factory=list)
    mfa_factors: set[str] = field(default_factory=set)
    enabled: bool = True
    blocked: bool = False
    created_at: float = field(default_factory=time.time)

    def __post_init__(self):
        self.mfa_factors = {f.lower() for f in self.mfa_factors}

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity_id": self.identity_id,
            "name": self.name,
            "identity_type": self.identity_type,
            "email": self.email,
            "department": self.department,
            "roles": self.roles,
            "mfa_factors": sorted(self.mfa_factors),
            "enabled": self.enabled,
            "blocked": self.blocked,
        }


@dataclass(frozen=True)
class PostureFlags:
    """Declared security posture of an endpoint."""
    antivirus: bool = False
    firewall: bool = False
    disk_encryption: bool = False
    patches_current: bool = False
    biometric_capable: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PostureFlags:
        values = {}
        for name, aliases in _POSTURE_ALIASES.items():
            values[name] = any(bool(data.get(a, False)) for a in aliases)
        return cls(**values)

    def to_dict(self) -> dict[str, bool]:
        return {
            "antivirus": self.antivirus,
            "firewall": self.firewall,
            "disk_encryption": self.disk_encryption,
            "patches_current": self.patches_current,
            "biometric_capable": self.biometric_capable,
        }


@dataclass
class Device:
    """A registered device and its last-seen posture snapshot."""
    device_id: str
    name: str = ""
    device_type: str = "workstation"  # workstation, server, mobile, iot
    owner_id: str = ""
    posture: PostureFlags | None = None
    registered_at: float = field(default_factory=time.time)
    last_seen: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "device_id": self.device_id,
            "name": self.name,
            "device_type": self.device_type,
            "owner_id": self.owner_id,
            "posture": self.posture.to_dict() if self.posture else None,
            "last_seen": self.last_seen,
        }
