"""SQLAlchemy database models."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class ProfileRecord(Base):
    """Profile database model."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    system_context: Mapped[str] = mapped_column(Text, default="", nullable=False)

    # RAG configuration
    rag_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    embedding_model_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    rag_settings: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    index_status: Mapped[str] = mapped_column(String(20), default="none", nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )


class ResourceRecord(Base):
    """Knowledge-base resource database model."""

    __tablename__ = "resources"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid, index=True)
    profile_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), index=True, nullable=False
    )
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    original_name: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    content_path: Mapped[str] = mapped_column(String(1000), nullable=False)
    mime_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    size_bytes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    indexed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # `metadata` is reserved on declarative classes
    metadata_: Mapped[Dict[str, Any]] = mapped_column("metadata", JSON, default=dict, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )


class ResourceChunkRecord(Base):
    """Persisted chunk of a resource."""

    __tablename__ = "resource_chunks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid, index=True)
    resource_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("resources.id", ondelete="CASCADE"), index=True, nullable=False
    )
    profile_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_: Mapped[Dict[str, Any]] = mapped_column("metadata", JSON, default=dict, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )


class ResourceEmbeddingRecord(Base):
    """Link between a chunk and the vector stored for one embedding model."""

    __tablename__ = "resource_embeddings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid, index=True)
    chunk_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("resource_chunks.id", ondelete="CASCADE"), index=True, nullable=False
    )
    profile_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    embedding_model_id: Mapped[str] = mapped_column(String(255), nullable=False)
    vector_id: Mapped[str] = mapped_column(String(600), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )


class IndexingJobRecord(Base):
    """Indexing job database model."""

    __tablename__ = "indexing_jobs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid, index=True)
    profile_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)

    # Progress
    total_steps: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    processed_steps: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    succeeded_steps: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    failed_steps: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    resource_errors: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )
