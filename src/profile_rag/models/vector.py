"""Vector store models."""

from typing import List, Optional

from pydantic import BaseModel, Field

from profile_rag.models.common import Metadata


class VectorPayload(BaseModel):
    """Payload stored alongside each vector."""

    chunk_id: str
    resource_id: str
    profile_id: str
    content: str
    embedding_model_id: str
    metadata: Metadata = Field(default_factory=dict)


class VectorPoint(BaseModel):
    """A vector plus payload, addressed by an opaque string id."""

    id: str
    vector: List[float]
    payload: VectorPayload


class SearchResult(BaseModel):
    """Raw hit returned by a vector store search."""

    id: str
    score: float
    payload: VectorPayload


class SimilarityResult(BaseModel):
    """Retrieval output handed to prompt augmentation."""

    content: str
    score: float
    metadata: Metadata = Field(default_factory=dict)


class SearchRequest(BaseModel):
    """Request body for a similarity search."""

    query: str = Field(..., min_length=1)
    top_k: Optional[int] = Field(default=None, ge=1)
