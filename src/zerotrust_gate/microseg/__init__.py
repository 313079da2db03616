"""Microsegmentation for ZeroTrust-Gate."""

from .segments import Segment, SegmentManager

__all__ = ["Segment", "SegmentManager"]
