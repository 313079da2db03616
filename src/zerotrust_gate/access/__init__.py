"""Access requests and decisions for ZeroTrust-Gate.

Import the engine from ``zerotrust_gate.access.engine``.
"""

from .context import AccessDecision, AccessRequest, DomainResult, Outcome

__all__ = ["AccessRequest", "AccessDecision", "DomainResult", "Outcome"]
