"""End-to-end RAG run over a single PDF.

load -> chunk -> ingest -> retrieve -> generate, strictly in sequence. The
first stage to fail stops the run and its typed error reaches the caller.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog

from pdfrag import config
from pdfrag.llm_client import OllamaClient, ollama_client
from pdfrag.rag.chunker import TextChunker
from pdfrag.rag.generator import AnswerGenerator, GenerationResult
from pdfrag.rag.ingest import IngestPipeline, ProgressCallback
from pdfrag.rag.pdf_loader import PDFLoader
from pdfrag.rag.retriever import RetrievalResult, Retriever
from pdfrag.rag.store_chroma import ChromaVectorStore

logger = structlog.get_logger()


@dataclass
class RunResult:
    """Outcome of one pipeline run."""

    answer: GenerationResult
    retrieved: List[RetrievalResult]
    chunk_count: int
    ingest_stats: Dict[str, Any] = field(default_factory=dict)


class RAGPipeline:
    """Wires the five stages together."""

    def __init__(
        self,
        vector_store: Optional[ChromaVectorStore] = None,
        llm_client: Optional[OllamaClient] = None,
        chunk_size: int = None,
        chunk_overlap: int = None,
        top_k: int = None,
        split_pages: bool = None,
        embedding_model: str = None,
        generation_model: str = None,
    ):
        self.llm_client = llm_client or ollama_client
        self.vector_store = vector_store or ChromaVectorStore()

        split_pages = config.SPLIT_PAGES if split_pages is None else split_pages
        self.loader = PDFLoader(split_pages=split_pages)
        self.chunker = TextChunker(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
        self.ingest = IngestPipeline(
            self.vector_store,
            llm_client=self.llm_client,
            embedding_model=embedding_model,
        )
        self.retriever = Retriever(
            self.vector_store,
            llm_client=self.llm_client,
            embedding_model=embedding_model,
            top_k=top_k,
        )
        self.generator = AnswerGenerator(
            llm_client=self.llm_client,
            model=generation_model,
        )

    async def run(
        self,
        pdf_path: Union[str, Path],
        query: str,
        progress_callback: Optional[ProgressCallback] = None,
        rebuild: bool = False,
    ) -> RunResult:
        """Run the whole pipeline once.

        Args:
            pdf_path: PDF to index
            query: Question to answer
            progress_callback: Optional callback(current, total, message)
            rebuild: Drop and recreate the collection before ingesting

        Returns:
            RunResult with the answer and the retrieved chunks

        Raises:
            LoadError, EmbeddingError, StoreError, GenerationError
        """
        logger.info("pipeline_started", pdf_path=str(pdf_path), rebuild=rebuild)

        documents = self.loader.load(pdf_path)

        chunks = []
        for document in documents:
            for chunk in self.chunker.chunk_text(document.text):
                chunk.chunk_index = len(chunks)
                chunk.page_number = document.page_number
                chunks.append(chunk)

        if rebuild:
            await self.vector_store.reset()
        else:
            await self.vector_store.connect()

        stats = await self.ingest.ingest_chunks(
            chunks,
            progress_callback=progress_callback,
            source=str(pdf_path),
        )

        retrieved = await self.retriever.retrieve(query)
        answer = await self.generator.generate(
            query, [result.content for result in retrieved]
        )

        logger.info(
            "pipeline_completed",
            chunk_count=len(chunks),
            retrieved=len(retrieved),
            answer_length=len(answer.text),
        )

        return RunResult(
            answer=answer,
            retrieved=retrieved,
            chunk_count=len(chunks),
            ingest_stats=stats,
        )
