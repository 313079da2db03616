"""
ZeroTrust-Gate: Fail-Closed Multi-Domain Access Decisions

Every request is verified against identity, device, network,
application and data policy; any failing domain denies access.
"""

__version__ = "0.1.0"
