"""
Operator authentication for the message log.
"""

from .basic_auth import AdminAuthenticator

__all__ = ["AdminAuthenticator"]
