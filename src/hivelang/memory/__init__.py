"""
Memory scopes, the memory bridge and in-process stores.
"""

from .bridge import MemoryBridge
from .models import MemoryScope, MemorySlot
from .store import InMemorySharedMemory, SessionMemoryStore

__all__ = ["MemoryBridge", "MemoryScope", "MemorySlot", "InMemorySharedMemory", "SessionMemoryStore"]
