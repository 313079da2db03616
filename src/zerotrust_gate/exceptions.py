"""Exception hierarchy for ZeroTrust-Gate.

Evaluation-path errors are resolved to Deny decisions inside the engine;
administrative errors (policy and registry management) are raised to the
caller.
"""


class ZeroTrustError(Exception):
    """Base exception for all ZeroTrust-Gate errors."""


class ValidationError(ZeroTrustError):
    """An access request is malformed (missing subject, resource or action)."""


class VerifierFault(ZeroTrustError):
    """A verifier could not complete its evaluation."""


class MissingContextError(VerifierFault):
    """A context field required by a verifier is absent."""

    def __init__(self, field: str, domain: str = ""):
        self.field = field
        self.domain = domain
        where = f" for {domain} verification" if domain else ""
        super().__init__(f"missing required context field '{field}'{where}")


class PolicyError(ZeroTrustError):
    """Errors raised by the policy registry."""


class PolicyNotFoundError(PolicyError):
    def __init__(self, policy_id: str):
        self.policy_id = policy_id
        super().__init__(f"policy not found: {policy_id}")


class DuplicatePolicyError(PolicyError):
    def __init__(self, policy_id: str):
        self.policy_id = policy_id
        super().__init__(f"policy already registered: {policy_id}")


DuplicateIdError = DuplicatePolicyError


class PolicyValidationError(PolicyError):
    """A policy record violates a constructor or update invariant."""


class RegistryError(ZeroTrustError):
    """A verifier registry operation referenced an unknown entry."""


class ReportSinkError(ZeroTrustError):
    """Persisting a report or decision batch failed."""


class ConfigError(ZeroTrustError):
    """Configuration could not be loaded or is invalid."""


__all__ = [
    "ZeroTrustError",
    "ValidationError",
    "VerifierFault",
    "MissingContextError",
    "PolicyError",
    "PolicyNotFoundError",
    "DuplicatePolicyError",
    "DuplicateIdError",
    "PolicyValidationError",
    "RegistryError",
    "ReportSinkError",
    "ConfigError",
]
