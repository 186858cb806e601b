"""Database package: ORM models, engine and sessions."""

from profile_rag.database.connection import (
    check_connection,
    close_engine,
    create_engine,
    create_tables,
    get_engine,
)
from profile_rag.database.models import (
    Base,
    IndexingJobRecord,
    ProfileRecord,
    ResourceChunkRecord,
    ResourceEmbeddingRecord,
    ResourceRecord,
)
from profile_rag.database.session import (
    create_session_factory,
    get_session_context,
    get_session_factory,
)

__all__ = [
    "Base",
    "IndexingJobRecord",
    "ProfileRecord",
    "ResourceChunkRecord",
    "ResourceEmbeddingRecord",
    "ResourceRecord",
    "check_connection",
    "close_engine",
    "create_engine",
    "create_session_factory",
    "create_tables",
    "get_engine",
    "get_session_context",
    "get_session_factory",
]
