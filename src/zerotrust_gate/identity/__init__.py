"""Identity context for ZeroTrust-Gate."""

from .registry import IdentityRegistry
from .models import Identity, Device, PostureFlags

__all__ = ["IdentityRegistry", "Identity", "Device", "PostureFlags"]
