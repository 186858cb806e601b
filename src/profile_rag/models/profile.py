"""Profile models (read by the RAG core; only index_status is patched)."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from profile_rag.models.common import new_id, utcnow


class IndexStatus(str, Enum):
    """Index lifecycle of a profile's knowledge base."""

    NONE = "none"
    PENDING = "pending"
    PROCESSING = "processing"
    READY = "ready"
    STALE = "stale"
    ERROR = "error"


class RagSettings(BaseModel):
    """Per-profile retrieval settings."""

    top_k: int = Field(default=5, ge=1, description="Number of chunks to retrieve")
    similarity_threshold: float = Field(
        default=0.7, ge=-1.0, le=1.0, description="Minimum cosine similarity to keep a result"
    )


class Profile(BaseModel):
    """A named assistant persona with an optional private knowledge base."""

    id: str = Field(default_factory=new_id)
    name: str
    description: Optional[str] = None
    system_context: str = ""
    rag_enabled: bool = False
    embedding_model_id: Optional[str] = None
    rag_settings: RagSettings = Field(default_factory=RagSettings)
    index_status: IndexStatus = IndexStatus.NONE
    created_at: datetime = Field(default_factory=utcnow)
