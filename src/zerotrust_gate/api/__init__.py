"""REST API for ZeroTrust-Gate."""

from .app import create_app

__all__ = ["create_app"]
