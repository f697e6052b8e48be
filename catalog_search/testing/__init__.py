"""
Testing Utilities

In-memory storage and cache collaborators for the search pipeline.
"""

from .fakes import InMemoryResponseCache, ScriptedCatalogStore

__all__ = [
    "InMemoryResponseCache",
    "ScriptedCatalogStore",
]
