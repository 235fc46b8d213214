"""
Run and strategy config storage.
"""

from .in_memory import InMemoryConfigProvider, InMemoryRunRepository

__all__ = ["InMemoryRunRepository", "InMemoryConfigProvider"]
