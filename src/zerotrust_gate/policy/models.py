"""
Policy data models.

YAML-compatible policy records for the five zero trust domains.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..exceptions import PolicyValidationError


class Domain(str, Enum):
    IDENTITY = "identity"
    DEVICE = "device"
    NETWORK = "network"
    APPLICATION = "application"
    DATA = "data"

    @classmethod
    def ordered(cls) -> tuple[Domain, ...]:
        """Fixed verification order: most foundational checks first."""
        return (cls.IDENTITY, cls.DEVICE, cls.NETWORK, cls.APPLICATION, cls.DATA)


class RiskLevel(str, Enum):
    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(RiskLevel).index(self)

    def __lt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank


class EnforcementMethod(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


_TRUE_STRINGS = ("true", "yes", "on", "1")
_FALSE_STRINGS = ("false", "no", "off", "0")


def _coerce_flag(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise PolicyValidationError(f"invalid {field_name} {value!r} (expected true or false)")


def _coerce(enum_cls, value: Any, field_name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        valid = ", ".join(m.value for m in enum_cls)
        raise PolicyValidationError(
            f"invalid {field_name} {value!r} (expected one of: {valid})"
        ) from None


@dataclass(frozen=True)
class Policy:
    """One enforceable rule record owned by a single domain."""
    policy_id: str
    name: str
    domain: Domain
    description: str = ""
    risk_level: RiskLevel = RiskLevel.MEDIUM
    policy_type: str = ""  # e.g., "Authentication", "Segmentation"
    rules: dict[str, Any] = field(default_factory=dict)
    enforced: bool = True
    enforcement_method: EnforcementMethod = EnforcementMethod.AUTOMATIC
    owner: str = ""
    last_updated: float = field(default_factory=time.time)

    def __post_init__(self):
        if not self.policy_id:
            raise PolicyValidationError("policy_id must not be empty")
        if not self.name:
            raise PolicyValidationError(f"policy {self.policy_id} has no name")
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "domain", _coerce(Domain, self.domain, "domain"))
        object.__setattr__(
            self, "risk_level", _coerce(RiskLevel, self.risk_level, "risk_level")
        )
        object.__setattr__(
            self,
            "enforcement_method",
            _coerce(EnforcementMethod, self.enforcement_method, "enforcement_method"),
        )
        object.__setattr__(self, "rules", dict(self.rules or {}))
        object.__setattr__(self, "enforced", _coerce_flag(self.enforced, "enforced"))

    def rule(self, name: str, default: Any = None) -> Any:
        return self.rules.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        return {
            "policy_id": self.policy_id,
            "name": self.name,
            "domain": self.domain.value,
            "description": self.description,
            "risk_level": self.risk_level.value,
            "policy_type": self.policy_type,
            "rules": dict(self.rules),
            "enforced": self.enforced,
            "enforcement_method": self.enforcement_method.value,
            "owner": self.owner,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Policy:
        if not isinstance(data, dict):
            raise PolicyValidationError("policy must be a mapping")
        try:
            policy_id = data["policy_id"]
            name = data["name"]
            domain = data["domain"]
        except KeyError as e:
            raise PolicyValidationError(f"policy is missing required field: {e.args[0]}") from None

        kwargs: dict[str, Any] = {}
        if "last_updated" in data:
            kwargs["last_updated"] = float(data["last_updated"])

        return cls(
            policy_id=policy_id,
            name=name,
            domain=domain,
            description=data.get("description", ""),
            risk_level=data.get("risk_level", RiskLevel.MEDIUM),
            policy_type=data.get("policy_type", ""),
            rules=data.get("rules", {}),
            enforced=data.get("enforced", True),
            enforcement_method=data.get("enforcement_method", EnforcementMethod.AUTOMATIC),
            owner=data.get("owner", ""),
            **kwargs,
        )
