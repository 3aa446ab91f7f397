"""
Message store package.

Owns the persisted message collection. Nothing outside this package reads
or writes the JSON document directly.
"""

from .json_store import MessageStore

__all__ = ["MessageStore"]
