"""Application configuration with sensible defaults."""
import os


def _optional_float(value: str | None) -> float | None:
    if value is None or value.strip() == "":
        return None
    return float(value)


# Ollama configuration
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
OLLAMA_TIMEOUT = _optional_float(os.getenv("OLLAMA_TIMEOUT"))  # None = wait forever
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "nomic-embed-text:v1.5")
GENERATION_MODEL = os.getenv("GENERATION_MODEL", "deepseek-r1:8b")

# Chroma vector database
CHROMA_HOST = os.getenv("CHROMA_HOST", "localhost")
CHROMA_PORT = int(os.getenv("CHROMA_PORT", "8000"))
COLLECTION_NAME = os.getenv("COLLECTION_NAME", "my_collection")

# RAG parameters (character-based)
CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "1000"))
CHUNK_OVERLAP = int(os.getenv("CHUNK_OVERLAP", "200"))
RETRIEVAL_TOP_K = int(os.getenv("RETRIEVAL_TOP_K", "4"))

# Input
PDF_PATH = os.getenv("PDF_PATH", "./path/to/document.pdf")
SPLIT_PAGES = os.getenv("SPLIT_PAGES", "false").lower() in ("1", "true", "yes")
DEFAULT_QUERY = os.getenv(
    "DEFAULT_QUERY", "Your query (Ex: What can you tell me about 'X' topic?)"
)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
