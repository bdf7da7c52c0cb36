"""Retriever for semantic search over the indexed document.

Handles:
- Query embedding generation
- Top-K vector search
- Result ranking (nearest first)
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from pdfrag import config
from pdfrag.llm_client import OllamaClient, ollama_client
from pdfrag.rag.ingest import embed_text
from pdfrag.rag.store_chroma import ChromaVectorStore

logger = structlog.get_logger()


@dataclass
class RetrievalResult:
    """A single retrieved chunk."""

    entry_id: str
    content: str
    distance: float
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def source(self) -> str:
        """Get a formatted source string for display."""
        source = self.metadata.get("source", "")
        chunk_index = self.metadata.get("chunk_index")
        if chunk_index is not None:
            return f"{source}#chunk{chunk_index}"
        return source


class Retriever:
    """Semantic retriever for the RAG pipeline."""

    def __init__(
        self,
        vector_store: ChromaVectorStore,
        llm_client: Optional[OllamaClient] = None,
        embedding_model: str = None,
        top_k: int = None,
    ):
        """Initialize the retriever.

        Args:
            vector_store: Connected vector store to search
            llm_client: Ollama client (defaults to the shared instance)
            embedding_model: Embedding model name (default from config)
            top_k: Number of results to retrieve (default from config)
        """
        self.vector_store = vector_store
        self.llm_client = llm_client or ollama_client
        self.embedding_model = embedding_model or config.EMBEDDING_MODEL
        self.top_k = config.RETRIEVAL_TOP_K if top_k is None else top_k

        logger.info(
            "retriever_initialized",
            embedding_model=self.embedding_model,
            top_k=self.top_k,
        )

    async def retrieve(
        self,
        query: str,
        top_k: Optional[int] = None,
    ) -> List[RetrievalResult]:
        """Retrieve the chunks most similar to a query.

        Args:
            query: Query text
            top_k: Number of results to return (overrides default)

        Returns:
            At most top_k results, most similar first

        Raises:
            EmbeddingError: If the query cannot be embedded
            StoreError: If the search fails
        """
        if not query or not query.strip():
            logger.warning("empty_query_provided")
            return []

        top_k = self.top_k if top_k is None else top_k

        logger.info("retrieval_started", query_length=len(query), top_k=top_k)

        query_embedding = await embed_text(
            self.llm_client, query, self.embedding_model
        )

        logger.debug(
            "query_embedded",
            dimension=len(query_embedding),
            model=self.embedding_model,
        )

        hits = await self.vector_store.search(query_embedding, top_k=top_k)

        results = [
            RetrievalResult(
                entry_id=hit["id"],
                content=hit["text"],
                distance=hit["distance"],
                metadata=hit["metadata"],
            )
            for hit in hits
        ]

        logger.info(
            "retrieval_completed",
            query_length=len(query),
            results_returned=len(results),
            top_distance=results[0].distance if results else None,
        )

        return results

    async def retrieve_texts(
        self,
        query: str,
        top_k: Optional[int] = None,
    ) -> List[str]:
        """Retrieve only the chunk texts for a query, most similar first."""
        results = await self.retrieve(query, top_k=top_k)
        return [result.content for result in results]
