"""Resource models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from profile_rag.models.common import Metadata, new_id, utcnow


class ResourceType(str, Enum):
    """Kind of knowledge-base resource."""

    FILE = "file"
    TEXT = "text"


class Resource(BaseModel):
    """
    A user-supplied knowledge-base item attached to a profile.

    `content_path` is relative to the storage base directory and is the only
    way to reach the raw bytes.
    """

    id: str = Field(default_factory=new_id)
    profile_id: str
    type: ResourceType
    original_name: Optional[str] = None
    content_path: str
    mime_type: Optional[str] = None
    size_bytes: Optional[int] = Field(default=None, ge=0)
    indexed: bool = False
    metadata: Metadata = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)


class TextResourceCreate(BaseModel):
    """Request body for adding a pasted-text resource."""

    content: str = Field(..., description="Text content")
    name: Optional[str] = Field(default=None, description="Display name for the resource")
