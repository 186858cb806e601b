"""Service layer for chunking, embedding, indexing and retrieval."""
