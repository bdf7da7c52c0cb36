"""Chroma vector store for semantic search.

Handles:
- Connection to a running Chroma server (or an injected client)
- Collection creation and reset
- Single-entry insertion with auto-assigned ids
- Top-K nearest neighbour search
"""
import uuid
from typing import Any, Dict, List, Optional

import chromadb
import structlog

from pdfrag import config
from pdfrag.errors import StoreError

logger = structlog.get_logger()


class ChromaVectorStore:
    """Chroma-backed vector store holding (text, embedding) entries."""

    def __init__(
        self,
        collection_name: str = None,
        host: str = None,
        port: int = None,
        client: Optional[Any] = None,
    ):
        """Initialize the store.

        Args:
            collection_name: Name of the collection (default from config)
            host: Chroma server host (default from config)
            port: Chroma server port (default from config)
            client: Pre-built chromadb client; when given, host and port are unused
        """
        self.collection_name = collection_name or config.COLLECTION_NAME
        self.host = host or config.CHROMA_HOST
        self.port = port or config.CHROMA_PORT

        self.client = client
        self.collection = None

        logger.info(
            "chroma_store_initialized",
            collection=self.collection_name,
            host=self.host,
            port=self.port,
            injected_client=client is not None,
        )

    def _ensure_client(self):
        if self.client is None:
            try:
                self.client = chromadb.HttpClient(host=self.host, port=self.port)
            except Exception as e:
                logger.error(
                    "chroma_connection_failed",
                    host=self.host,
                    port=self.port,
                    error=str(e),
                )
                raise StoreError(
                    f"Cannot connect to Chroma at {self.host}:{self.port}: {e}"
                ) from e
        return self.client

    def _require_collection(self):
        if self.collection is None:
            raise StoreError("No collection opened. Call connect() first.")
        return self.collection

    async def connect(self) -> None:
        """Open the collection, creating it empty if it doesn't exist.

        Raises:
            StoreError: If the server is unreachable or refuses the request
        """
        client = self._ensure_client()

        try:
            self.collection = client.get_or_create_collection(name=self.collection_name)
        except Exception as e:
            logger.error(
                "chroma_collection_open_failed",
                collection=self.collection_name,
                error=str(e),
            )
            raise StoreError(
                f"Failed to open collection '{self.collection_name}': {e}"
            ) from e

        logger.info(
            "chroma_collection_ready",
            collection=self.collection_name,
            entry_count=self.collection.count(),
        )

    async def reset(self) -> None:
        """Drop the collection and recreate it empty.

        Raises:
            StoreError: If the collection cannot be recreated
        """
        client = self._ensure_client()

        logger.warning("resetting_collection", collection=self.collection_name)

        try:
            existing = [getattr(c, "name", c) for c in client.list_collections()]
            if self.collection_name in existing:
                client.delete_collection(name=self.collection_name)
                logger.info("deleted_existing_collection", collection=self.collection_name)
        except Exception as e:
            raise StoreError(
                f"Failed to reset collection '{self.collection_name}': {e}"
            ) from e

        self.collection = None
        await self.connect()

    async def add(
        self,
        text: str,
        embedding: List[float],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Insert one entry.

        Args:
            text: Chunk text
            embedding: Embedding vector for the text
            metadata: Optional scalar metadata; None values are dropped

        Returns:
            The id assigned to the entry

        Raises:
            StoreError: If the insert is rejected
        """
        collection = self._require_collection()
        entry_id = str(uuid.uuid4())
        clean_metadata = {k: v for k, v in (metadata or {}).items() if v is not None}

        try:
            collection.add(
                ids=[entry_id],
                documents=[text],
                embeddings=[embedding],
                metadatas=[clean_metadata] if clean_metadata else None,
            )
        except Exception as e:
            raise StoreError(f"Insert rejected by Chroma: {e}") from e

        logger.debug("entry_added", entry_id=entry_id, text_length=len(text))
        return entry_id

    async def search(
        self, query_embedding: List[float], top_k: int = None
    ) -> List[Dict[str, Any]]:
        """Search for the entries nearest to a query vector.

        Args:
            query_embedding: Query vector
            top_k: Number of results to return (default from config)

        Returns:
            List of dicts with id, text, distance and metadata, nearest first

        Raises:
            StoreError: If the query fails
        """
        collection = self._require_collection()

        if top_k is None:
            top_k = config.RETRIEVAL_TOP_K

        try:
            # Ensure we don't request more results than we have
            n_results = min(top_k, collection.count())
            if n_results <= 0:
                return []

            raw = collection.query(
                query_embeddings=[query_embedding],
                n_results=n_results,
                include=["documents", "distances", "metadatas"],
            )
        except Exception as e:
            raise StoreError(f"Similarity search failed: {e}") from e

        ids = raw["ids"][0]
        documents = raw["documents"][0]
        distances = raw["distances"][0]
        metadatas = (raw.get("metadatas") or [[None] * len(ids)])[0]

        results = [
            {
                "id": entry_id,
                "text": document,
                "distance": float(distance),
                "metadata": metadata or {},
            }
            for entry_id, document, distance, metadata in zip(
                ids, documents, distances, metadatas
            )
        ]
        results.sort(key=lambda r: r["distance"])

        logger.info(
            "vector_search_completed",
            top_k=top_k,
            results_found=len(results),
        )

        return results

    def count(self) -> int:
        """Number of entries currently stored.

        Raises:
            StoreError: If the collection is not open or unreachable
        """
        collection = self._require_collection()
        try:
            return collection.count()
        except Exception as e:
            raise StoreError(f"Failed to count entries: {e}") from e

    def heartbeat(self) -> int:
        """Ping the server.

        Returns:
            Server heartbeat timestamp in nanoseconds

        Raises:
            StoreError: If the server is unreachable
        """
        client = self._ensure_client()
        try:
            return client.heartbeat()
        except Exception as e:
            raise StoreError(f"Chroma heartbeat failed: {e}") from e

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics about the vector store.

        Returns:
            Dictionary with store statistics
        """
        if self.collection is None:
            return {
                "connected": False,
                "collection": self.collection_name,
                "entry_count": 0,
            }

        return {
            "connected": True,
            "collection": self.collection_name,
            "entry_count": self.count(),
            "host": self.host,
            "port": self.port,
        }
