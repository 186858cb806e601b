"""Persistence layer: the Store contract and its implementations."""

from profile_rag.repositories.memory_store import InMemoryStore
from profile_rag.repositories.sql_store import SQLStore
from profile_rag.repositories.store import Store

__all__ = ["InMemoryStore", "SQLStore", "Store"]
