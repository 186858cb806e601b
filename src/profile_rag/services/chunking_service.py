"""Text chunking service for RAG indexing."""

import json
import re
from typing import List, Optional, Sequence, Union

from profile_rag.config import Settings, get_settings
from profile_rag.models.chunk import ChunkMetadata, TextChunk
from profile_rag.utils.errors import ChunkingError
from profile_rag.utils.logging import get_logger

logger = get_logger("chunking_service")

DEFAULT_SEPARATORS: Sequence[str] = ("\n\n", "\n", ". ", " ")

# How far back from the window end a separator is searched for
SEPARATOR_LOOKBACK = 100

_MULTI_NEWLINE_RE = re.compile(r"\n{3,}")
# "\r\r\n" must normalize in one pass to keep clean_text idempotent
_CRLF_RE = re.compile(r"\r+\n")


class ChunkingService:
    """
    Split text into overlapping character windows for embedding.

    Each window ends at the highest-priority separator found within the last
    SEPARATOR_LOOKBACK characters of the window, or is hard-cut at
    chunk_size when none is found.
    """

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.default_chunk_size = settings.chunking.chunk_size
        self.default_chunk_overlap = settings.chunking.chunk_overlap

    def chunk_text(
        self,
        text: str,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
        separators: Optional[Sequence[str]] = None,
    ) -> List[TextChunk]:
        """
        Chunk text into ordered, trimmed, non-empty chunks.

        Args:
            text: Input text
            chunk_size: Maximum window size in characters (defaults to CHUNK_SIZE)
            chunk_overlap: Characters shared between consecutive windows (defaults to CHUNK_OVERLAP)
            separators: Break candidates in priority order

        Returns:
            List of TextChunk instances indexed from 0

        Raises:
            ChunkingError: If chunk_size or chunk_overlap is invalid
        """
        chunk_size = chunk_size if chunk_size is not None else self.default_chunk_size
        chunk_overlap = chunk_overlap if chunk_overlap is not None else self.default_chunk_overlap
        separators = separators if separators is not None else DEFAULT_SEPARATORS

        if chunk_size <= 0:
            raise ChunkingError("chunk_size must be > 0", details={"chunk_size": chunk_size})
        if chunk_overlap < 0:
            raise ChunkingError("chunk_overlap must be >= 0", details={"chunk_overlap": chunk_overlap})

        if not text:
            return []

        text_length = len(text)
        if text_length <= chunk_size:
            return [
                TextChunk(
                    index=0,
                    content=text,
                    metadata=ChunkMetadata(original_length=text_length),
                )
            ]

        chunks: List[TextChunk] = []
        start_idx = 0

        while start_idx < text_length:
            end_idx = min(start_idx + chunk_size, text_length)

            if end_idx < text_length:
                break_point = self._find_break_point(text, start_idx, end_idx, separators)
                if break_point > start_idx:
                    end_idx = break_point

            content = text[start_idx:end_idx].strip()
            if content:
                chunks.append(
                    TextChunk(
                        index=len(chunks),
                        content=content,
                        metadata=ChunkMetadata(
                            start_char=start_idx,
                            end_char=end_idx,
                            length=len(content),
                        ),
                    )
                )

            next_start = end_idx - chunk_overlap
            if next_start <= start_idx:
                next_start = end_idx
            start_idx = next_start

        logger.debug(
            f"Chunked text: length={text_length}, chunks={len(chunks)}, "
            f"chunk_size={chunk_size}, overlap={chunk_overlap}"
        )
        return chunks

    @staticmethod
    def _find_break_point(
        text: str, start_idx: int, end_idx: int, separators: Sequence[str]
    ) -> int:
        """Return the position just past the best separator, or -1."""
        search_start = max(start_idx, end_idx - SEPARATOR_LOOKBACK)
        for separator in separators:
            if not separator:
                continue
            # A match may begin at end_idx itself
            found = text.rfind(separator, search_start + 1, end_idx + len(separator))
            if found != -1:
                return found + len(separator)
        return -1

    @staticmethod
    def extract_text(content: Union[bytes, str], mime_type: Optional[str]) -> str:
        """
        Decode raw resource content into text.

        Only plain text and JSON are understood; every other mime type is
        decoded as UTF-8. Undecodable bytes are replaced.
        """
        if isinstance(content, bytes):
            decoded = content.decode("utf-8", errors="replace")
        else:
            decoded = content

        mime = (mime_type or "").split(";")[0].strip().lower()
        if mime == "application/json":
            try:
                return json.dumps(json.loads(decoded), indent=2, ensure_ascii=False)
            except ValueError:
                return decoded

        return decoded

    @staticmethod
    def clean_text(text: str) -> str:
        """Normalize line endings, expand tabs and collapse runs of blank lines."""
        cleaned = _CRLF_RE.sub("\n", text)
        cleaned = cleaned.replace("\t", "  ")
        cleaned = _MULTI_NEWLINE_RE.sub("\n\n", cleaned)
        return cleaned.strip()
