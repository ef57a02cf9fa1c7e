"""
Memory data models.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MemoryScope(str, Enum):
    SESSION = "session"
    USER = "user"


ANONYMOUS_OWNER = "anonymous"


@dataclass
class MemorySlot:
    """A declared memory variable resolved to its backend key."""

    name: str
    scope: MemoryScope
    key: str
    type_name: str = "any"
