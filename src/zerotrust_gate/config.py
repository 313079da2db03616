"""
Engine configuration.

All tunables are passed to the engine explicitly; nothing here is read
from module-level state. Configuration can be built in code or loaded
from a YAML document.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError

DEFAULT_MFA_FACTORS = ("password", "sms", "totp", "biometric", "push")

# Segment id -> trust level
DEFAULT_SEGMENTS = {
    "External": 0.1,
    "DMZ": 0.3,
    "Internal": 0.7,
    "Secure": 0.9,
}

DEFAULT_TRANSITIONS = (
    ("External", "DMZ"),
    ("External", "Internal"),
    ("DMZ", "Internal"),
    ("Internal", "Internal"),
    ("Internal", "Secure"),
    ("Secure", "Secure"),
)

DEFAULT_CLASSIFICATIONS = {
    "Public": {
        "encryption_required": False,
        "restricted_access": False,
        "retention_days": 365,
    },
    "Internal": {
        "encryption_required": False,
        "restricted_access": False,
        "retention_days": 1095,
    },
    "Confidential": {
        "encryption_required": True,
        "restricted_access": True,
        "retention_days": 2555,
    },
    "Restricted": {
        "encryption_required": True,
        "restricted_access": True,
        "retention_days": 2555,
    },
}


@dataclass
class DeviceScoring:
    """Device trust score weights (points added to the baseline)."""
    baseline: int = 50
    antivirus: int = 10
    firewall: int = 10
    encryption: int = 15
    patches_current: int = 10
    biometric: int = 5


@dataclass
class SinkSettings:
    retries: int = 3
    backoff_base: float = 0.5  # seconds, doubled per attempt
    backoff_max: float = 30.0
    persistence: str = "sync"  # sync | batched
    batch_size: int = 50
    max_pending: int = 10000  # decisions buffered while the sink is down
    report_dir: str = ""


@dataclass
class ZeroTrustConfig:
    device_trust_threshold: int = 70
    device_scoring: DeviceScoring = field(default_factory=DeviceScoring)
    require_mfa: bool = True
    allowed_mfa_factors: tuple[str, ...] = DEFAULT_MFA_FACTORS
    segments: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_SEGMENTS))
    allowed_transitions: tuple[tuple[str, str], ...] = DEFAULT_TRANSITIONS
    classifications: dict[str, dict[str, Any]] = field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_CLASSIFICATIONS.items()}
    )
    monitor_interval: float = 1800.0
    report_window: int = 500
    sink: SinkSettings = field(default_factory=SinkSettings)

    def __post_init__(self):
        self.allowed_mfa_factors = tuple(str(f).lower() for f in self.allowed_mfa_factors)
        try:
            self.allowed_transitions = tuple(
                (str(src), str(dst)) for src, dst in self.allowed_transitions
            )
        except (TypeError, ValueError):
            raise ConfigError("allowed_transitions must be a list of [source, target] pairs") from None
        self.validate()

    def validate(self) -> None:
        if not 0 <= self.device_trust_threshold <= 100:
            raise ConfigError("device_trust_threshold must be within 0-100")
        if self.monitor_interval <= 0:
            raise ConfigError("monitor_interval must be positive")
        if self.report_window <= 0:
            raise ConfigError("report_window must be positive")
        if self.sink.persistence not in ("sync", "batched"):
            raise ConfigError(f"unknown persistence mode: {self.sink.persistence}")
        if self.sink.retries < 0 or self.sink.batch_size < 1:
            raise ConfigError("sink retries must be >= 0 and batch_size >= 1")
        if self.sink.max_pending < self.sink.batch_size:
            raise ConfigError("sink max_pending must be >= batch_size")
        for src, dst in self.allowed_transitions:
            if src not in self.segments or dst not in self.segments:
                raise ConfigError(f"transition {src}->{dst} references an undefined segment")

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ZeroTrustConfig:
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown configuration keys: {', '.join(unknown)}")

        try:
            if "device_scoring" in data:
                data["device_scoring"] = DeviceScoring(**(data["device_scoring"] or {}))
            if "sink" in data:
                data["sink"] = SinkSettings(**(data["sink"] or {}))
            return cls(**data)
        except TypeError as e:
            raise ConfigError(str(e)) from None

    @classmethod
    def from_yaml(cls, yaml_str: str) -> ZeroTrustConfig:
        try:
            data = yaml.safe_load(yaml_str)
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid configuration YAML: {e}") from None
        if data is not None and not isinstance(data, dict):
            raise ConfigError("configuration YAML must be a mapping")
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: str | Path) -> ZeroTrustConfig:
        try:
            text = Path(path).read_text()
        except OSError as e:
            raise ConfigError(f"cannot read configuration {path}: {e}") from None
        return cls.from_yaml(text)
