"""Query-time retrieval and prompt augmentation."""

from typing import List, Optional

from profile_rag.config import Settings, get_settings
from profile_rag.models.profile import IndexStatus, Profile
from profile_rag.models.vector import SimilarityResult
from profile_rag.repositories.store import Store
from profile_rag.services.embedding_service import EmbeddingService
from profile_rag.services.vector_store import VectorStore, get_collection_name
from profile_rag.utils.errors import NotFoundError
from profile_rag.utils.logging import get_logger

logger = get_logger("retrieval_service")

AUGMENTED_PROMPT_TEMPLATE = """<INSTRUCTIONS>
LANGUAGE RULE: Detect the language of the user's question and ALWAYS respond in the SAME language.

CONTENT RULES:
- Answer ONLY using information from the <CONTEXT> section below.
- If the information IS in the context, use it to formulate a precise and complete answer.
- If the information is NOT in the context, clearly say "This information is not available in my knowledge base." (in the user's language)
- NEVER invent information not explicitly mentioned in the context.
- Quote exact names and figures from the context.
</INSTRUCTIONS>

<CONTEXT>
{context}
</CONTEXT>

<USER_QUESTION>
{question}
</USER_QUESTION>

<RESPONSE_FORMAT>
Respond in a structured way and be precise when citing information from the context.
IMPORTANT: Your response MUST be in the same language as the user's question.
</RESPONSE_FORMAT>"""


def is_index_usable(profile: Profile) -> bool:
    return profile.rag_enabled and profile.index_status == IndexStatus.READY


def format_context(results: List[SimilarityResult]) -> str:
    """Render one block per result, joined by blank lines."""
    blocks = []
    for n, result in enumerate(results, start=1):
        source = result.metadata.get("original_name") or "Document"
        relevance = round(result.score * 100)
        blocks.append(f"━━━ Source {n}: {source} (relevance: {relevance}%) ━━━\n{result.content}")
    return "\n\n".join(blocks)


class RetrievalService:
    """Search a profile's knowledge base and build augmented prompts."""

    def __init__(
        self,
        store: Store,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self.store = store
        self.embedding_service = embedding_service
        self.vector_store = vector_store
        self.default_top_k = settings.retrieval.default_top_k
        self.default_threshold = settings.retrieval.default_similarity_threshold

    async def search_similar(
        self, profile_id: str, query: str, top_k: Optional[int] = None
    ) -> List[SimilarityResult]:
        """
        Find the chunks most similar to a query.

        Returns an empty list unless RAG is enabled and the index is ready.

        Raises:
            NotFoundError: Unknown profile
            EmbeddingError: The query could not be embedded
        """
        profile = await self.store.get_profile(profile_id)
        if profile is None:
            raise NotFoundError("Profile", profile_id)

        if not is_index_usable(profile):
            logger.info(
                f"Search skipped: profile_id={profile_id}, rag_enabled={profile.rag_enabled}, "
                f"index_status={profile.index_status.value}"
            )
            return []

        k = top_k or profile.rag_settings.top_k or self.default_top_k
        threshold = profile.rag_settings.similarity_threshold
        if threshold is None:
            threshold = self.default_threshold

        model_id = self.embedding_service.resolve_model_id(profile.embedding_model_id)
        collection = get_collection_name(profile_id, model_id)

        query_embedding = await self.embedding_service.generate_embedding(query, model_id)
        hits = await self.vector_store.search(collection, query_embedding.vector, k, threshold)

        logger.info(
            f"Vector search completed: profile_id={profile_id}, collection={collection}, "
            f"top_k={k}, threshold={threshold}, results={len(hits)}"
        )

        results = []
        for hit in hits:
            metadata = {
                "resource_id": hit.payload.resource_id,
                "chunk_id": hit.payload.chunk_id,
            }
            metadata.update(hit.payload.metadata)
            results.append(
                SimilarityResult(content=hit.payload.content, score=hit.score, metadata=metadata)
            )
        return results

    async def augment_prompt(self, profile: Profile, user_message: str) -> str:
        """
        Wrap a user message with retrieved context.

        Best effort: returns the message unchanged when RAG is unavailable,
        nothing relevant is found, or anything goes wrong.
        """
        if not is_index_usable(profile):
            logger.debug(f"Prompt augmentation skipped: profile_id={profile.id}")
            return user_message

        try:
            results = await self.search_similar(profile.id, user_message)
            if not results:
                logger.info(f"No relevant context found: profile_id={profile.id}")
                return user_message

            augmented = AUGMENTED_PROMPT_TEMPLATE.format(
                context=format_context(results), question=user_message
            )
            logger.info(
                f"Prompt augmented: profile_id={profile.id}, chunks={len(results)}, "
                f"original_length={len(user_message)}, augmented_length={len(augmented)}"
            )
            return augmented
        except Exception as e:
            logger.error(
                f"Error augmenting prompt: profile_id={profile.id} - {e}",
                exc_info=True,
            )
            return user_message
