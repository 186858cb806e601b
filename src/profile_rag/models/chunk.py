"""Chunk models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from profile_rag.models.common import Metadata, new_id, utcnow


class ChunkMetadata(BaseModel):
    """Positional information recorded by the chunker."""

    start_char: Optional[int] = None
    end_char: Optional[int] = None
    length: Optional[int] = None
    original_length: Optional[int] = None

    def to_metadata(self) -> Metadata:
        """Flatten to a metadata map, dropping unset fields."""
        return self.model_dump(exclude_none=True)


class TextChunk(BaseModel):
    """A chunk of text produced by the chunking service (not persisted)."""

    index: int = Field(..., ge=0, description="0-based index among kept chunks")
    content: str = Field(..., description="Trimmed chunk text")
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)


class ResourceChunk(BaseModel):
    """A persisted chunk of a resource."""

    id: str = Field(default_factory=new_id)
    resource_id: str
    profile_id: str
    chunk_index: int = Field(..., ge=0)
    content: str
    metadata: Metadata = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
