"""
Interfaces of the external collaborators consulted by the verifiers.

Any object with matching methods can be plugged in; the in-process
defaults are IdentityRegistry (identity provider) and SegmentManager
(network policy source).
"""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

from .identity.models import PostureFlags


@runtime_checkable
class IdentityProvider(Protocol):
    def is_known_subject(self, subject_id: str) -> bool: ...

    def is_blocked(self, subject_id: str) -> bool: ...

    def registered_factors(self, subject_id: str) -> set[str]: ...


@runtime_checkable
class PostureProvider(Protocol):
    """Endpoint / EDR agent supplying live device posture."""

    def get_device_posture(self, device_id: str) -> PostureFlags | None: ...


@runtime_checkable
class NetworkPolicySource(Protocol):
    def segment_ids(self) -> Iterable[str]: ...

    def is_transition_allowed(self, source: str, target: str) -> bool: ...
