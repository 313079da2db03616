"""Policy model and registry for ZeroTrust-Gate."""

from .models import Domain, EnforcementMethod, Policy, RiskLevel
from .registry import PolicyRegistry

__all__ = ["PolicyRegistry", "Policy", "Domain", "RiskLevel", "EnforcementMethod"]
