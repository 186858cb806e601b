"""Domain models for the profile RAG service."""

from profile_rag.models.chunk import ChunkMetadata, ResourceChunk, TextChunk
from profile_rag.models.common import Metadata, MetadataValue
from profile_rag.models.embedding import EmbeddingResult, ResourceEmbedding
from profile_rag.models.indexing_job import (
    IndexingJob,
    IndexingJobUpdate,
    JobStatus,
    apply_job_update,
    compute_progress,
)
from profile_rag.models.profile import IndexStatus, Profile, RagSettings
from profile_rag.models.resource import Resource, ResourceType, TextResourceCreate
from profile_rag.models.vector import (
    SearchRequest,
    SearchResult,
    SimilarityResult,
    VectorPayload,
    VectorPoint,
)

__all__ = [
    "ChunkMetadata",
    "EmbeddingResult",
    "IndexStatus",
    "IndexingJob",
    "IndexingJobUpdate",
    "JobStatus",
    "Metadata",
    "MetadataValue",
    "Profile",
    "RagSettings",
    "Resource",
    "ResourceChunk",
    "ResourceEmbedding",
    "ResourceType",
    "SearchRequest",
    "SearchResult",
    "SimilarityResult",
    "TextChunk",
    "TextResourceCreate",
    "VectorPayload",
    "VectorPoint",
    "apply_job_update",
    "compute_progress",
]
