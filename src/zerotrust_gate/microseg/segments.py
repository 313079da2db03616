"""
Segment management for microsegmentation.

Defines zero-trust network segments (zones) and the allow-list of
ordered segment-to-segment transitions. Anything not on the list is
denied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from ..exceptions import RegistryError
from ..locks import RWLock

logger = logging.getLogger(__name__)


@dataclass
class Segment:
    """A microsegment / zero-trust zone."""
    segment_id: str
    name: str
    description: str = ""
    trust_level: float = 0.5  # 0.0=untrusted, 1.0=highly trusted


class SegmentManager:
    """Manages segment definitions and permitted transitions."""

    def __init__(self):
        self.segments: dict[str, Segment] = {}
        self.transitions: set[tuple[str, str]] = set()
        self._lock = RWLock()

    @classmethod
    def from_config(
        cls,
        segments: dict[str, float],
        transitions: Iterable[tuple[str, str]],
    ) -> SegmentManager:
        manager = cls()
        for segment_id, trust_level in segments.items():
            manager.create_segment(segment_id, segment_id, trust_level=trust_level)
        for src, dst in transitions:
            manager.allow_transition(src, dst)
        return manager

    def create_segment(
        self,
        segment_id: str,
        name: str,
        description: str = "",
        trust_level: float = 0.5,
    ) -> Segment:
        seg = Segment(
            segment_id=segment_id,
            name=name,
            description=description,
            trust_level=max(0.0, min(1.0, trust_level)),
        )
        with self._lock.write():
            self.segments[segment_id] = seg
        return seg

    def allow_transition(self, source: str, target: str) -> None:
        with self._lock.write():
            for seg in (source, target):
                if seg not in self.segments:
                    raise RegistryError(f"unknown segment: {seg}")
            self.transitions.add((source, target))
        logger.info("Allowed transition %s -> %s", source, target)

    def revoke_transition(self, source: str, target: str) -> bool:
        with self._lock.write():
            if (source, target) not in self.transitions:
                return False
            self.transitions.discard((source, target))
        logger.info("Revoked transition %s -> %s", source, target)
        return True

    # --- NetworkPolicySource ---

    def segment_ids(self) -> list[str]:
        with self._lock.read():
            return list(self.segments)

    def is_known(self, segment_id: str) -> bool:
        with self._lock.read():
            return segment_id in self.segments

    def is_transition_allowed(self, source: str, target: str) -> bool:
        """Ordered-pair lookup; unknown segments are denied by default."""
        with self._lock.read():
            if source not in self.segments or target not in self.segments:
                return False
            return (source, target) in self.transitions

    # --- Reporting ---

    def segment_summary(self) -> list[dict[str, Any]]:
        with self._lock.read():
            result = []
            for seg in self.segments.values():
                result.append({
                    "segment_id": seg.segment_id,
                    "name": seg.name,
                    "trust_level": seg.trust_level,
                    "allowed_inbound": sorted(s for s, d in self.transitions if d == seg.segment_id),
                    "allowed_outbound": sorted(d for s, d in self.transitions if s == seg.segment_id),
                })
        return result

    def isolation_score(self) -> float:
        """Measure overall network isolation (higher = more isolated)."""
        with self._lock.read():
            n = len(self.segments)
            if n == 0:
                return 0.0
            total_possible = n * (n - 1)
            if total_possible == 0:
                return 1.0
            actual = sum(1 for s, d in self.transitions if s != d)
        return round(1.0 - (actual / total_possible), 4)
