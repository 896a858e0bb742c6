"""
Default adapter implementations for gatehouse.
"""

from .memory_provider import InMemoryUserProvider
from .sqlite_provider import SQLiteUserProvider
from .memory_state import MemorySessionState, MemoryCookieStore
from .starlette_state import StarletteSessionState, StarletteCookieStore

__all__ = [
    "InMemoryUserProvider",
    "SQLiteUserProvider",
    "MemorySessionState",
    "MemoryCookieStore",
    "StarletteSessionState",
    "StarletteCookieStore",
]
