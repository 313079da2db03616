"""Domain verifiers for ZeroTrust-Gate."""

from .base import DomainVerifier
from .identity import IdentityVerifier
from .device import DeviceVerifier, trust_score
from .network import NetworkVerifier
from .application import Application, ApplicationVerifier
from .data import DataVerifier, ProtectionProfile

__all__ = [
    "DomainVerifier",
    "IdentityVerifier",
    "DeviceVerifier",
    "NetworkVerifier",
    "ApplicationVerifier",
    "DataVerifier",
    "Application",
    "ProtectionProfile",
    "trust_score",
]
