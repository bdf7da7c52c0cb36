"""RAG (Retrieval-Augmented Generation) pipeline components.

This package contains modules for:
- PDF text extraction
- Recursive chunking with overlap
- Embedding and ingestion into Chroma
- Semantic retrieval
- Answer generation
"""
