"""Embedding models."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from profile_rag.models.common import new_id, utcnow


class EmbeddingResult(BaseModel):
    """Embedding vector returned by the embedding service."""

    vector: List[float] = Field(..., description="Embedding vector")
    model_id: str = Field(..., description="Resolved embedding model id")
    dimensions: int = Field(..., ge=0, description="Length of the vector")


class ResourceEmbedding(BaseModel):
    """Links a stored chunk to the vector written for one embedding model."""

    id: str = Field(default_factory=new_id)
    chunk_id: str
    profile_id: str
    embedding_model_id: str
    vector_id: str = Field(..., description="Opaque vector id ({chunk_id}_{model_id})")
    created_at: datetime = Field(default_factory=utcnow)
