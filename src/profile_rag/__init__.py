"""Profile RAG service.

Indexes the knowledge-base resources attached to assistant profiles and
retrieves the most relevant chunks to augment prompts.
"""

__version__ = "0.1.0"
