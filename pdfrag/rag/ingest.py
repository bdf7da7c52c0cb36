"""Ingest loop for indexing chunks of a document.

Orchestrates, one chunk at a time:
- Embedding generation
- Vector storage
- Progress reporting
"""
from typing import Any, Callable, Dict, List, Optional

import httpx
import structlog
from pydantic import ValidationError

from pdfrag import config
from pdfrag.errors import EmbeddingError, StoreError
from pdfrag.llm_client import OllamaClient, ollama_client
from pdfrag.rag.chunker import TextChunk
from pdfrag.rag.store_chroma import ChromaVectorStore

logger = structlog.get_logger()

ProgressCallback = Callable[[int, int, str], None]


def format_progress(current: int, total: int) -> str:
    """Render the progress line for `current` of `total` processed chunks."""
    percentage = (current / total) * 100 if total > 0 else 100.0
    return f"Processing {current} of {total} chunks ({percentage:.1f}%)"


async def embed_text(
    client: OllamaClient,
    text: str,
    model: str,
    chunk_index: Optional[int] = None,
) -> List[float]:
    """Embed a single text, mapping every failure to EmbeddingError.

    Args:
        client: Ollama client
        text: Text to embed
        model: Embedding model name
        chunk_index: Index of the chunk being embedded, if any

    Returns:
        Embedding vector

    Raises:
        EmbeddingError: If the service is unreachable or the reply is unusable
    """
    try:
        response = await client.embeddings(prompt=text, model=model)
    except (httpx.HTTPError, ValidationError, ValueError) as e:
        logger.error(
            "embedding_generation_failed",
            chunk_index=chunk_index,
            text_preview=text[:100],
            error_type=type(e).__name__,
        )
        # ValueError covers bodies that are not JSON at all
        if isinstance(e, (ValidationError, ValueError)):
            raise EmbeddingError(
                f"Malformed embedding response from model {model}",
                chunk_index=chunk_index,
            ) from e
        raise EmbeddingError(
            f"Embedding service request failed: {e}", chunk_index=chunk_index
        ) from e

    return response.embedding


class IngestPipeline:
    """Embeds chunks and stores them in the vector collection."""

    def __init__(
        self,
        vector_store: ChromaVectorStore,
        llm_client: Optional[OllamaClient] = None,
        embedding_model: str = None,
    ):
        """Initialize the ingest pipeline.

        Args:
            vector_store: Connected vector store to insert into
            llm_client: Ollama client (defaults to the shared instance)
            embedding_model: Embedding model name (default from config)
        """
        self.vector_store = vector_store
        self.llm_client = llm_client or ollama_client
        self.embedding_model = embedding_model or config.EMBEDDING_MODEL

        self.stats = self._empty_stats()

        logger.info(
            "ingest_pipeline_initialized",
            embedding_model=self.embedding_model,
            collection=vector_store.collection_name,
        )

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            "chunks_total": 0,
            "chunks_ingested": 0,
            "embedding_dimension": None,
        }

    async def ingest_chunks(
        self,
        chunks: List[TextChunk],
        progress_callback: Optional[ProgressCallback] = None,
        source: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Embed and insert every chunk, in order, one at a time.

        A failure aborts the loop; chunks inserted before it stay in the
        collection.

        Args:
            chunks: Chunks in document order
            progress_callback: Optional callback(current, total, message)
            source: Source document path recorded in entry metadata

        Returns:
            Dictionary with ingestion statistics

        Raises:
            EmbeddingError: If embedding chunk i fails
            StoreError: If inserting chunk i fails
        """
        total = len(chunks)
        self.stats = self._empty_stats()
        self.stats["chunks_total"] = total

        logger.info("ingest_started", chunk_count=total, source=source)

        for i, chunk in enumerate(chunks):
            embedding = await embed_text(
                self.llm_client, chunk.content, self.embedding_model, chunk_index=i
            )
            self.stats["embedding_dimension"] = len(embedding)

            try:
                await self.vector_store.add(
                    chunk.content,
                    embedding,
                    metadata={
                        "source": source,
                        "chunk_index": chunk.chunk_index,
                        "char_start": chunk.char_start,
                        "char_end": chunk.char_end,
                        "page_number": chunk.page_number,
                    },
                )
            except StoreError as e:
                logger.error(
                    "chunk_insert_failed",
                    chunk_index=i,
                    inserted_so_far=self.stats["chunks_ingested"],
                    error=e.message,
                )
                raise StoreError(e.message, chunk_index=i) from e

            self.stats["chunks_ingested"] += 1

            message = format_progress(i + 1, total)
            logger.info("chunk_ingested", current=i + 1, total=total)
            if progress_callback:
                progress_callback(i + 1, total, message)

        logger.info("ingest_completed", stats=self.stats)

        return self.stats
