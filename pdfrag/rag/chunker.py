"""Text chunking with overlap for the RAG pipeline.

Recursive character splitting: the text is cut on the coarsest separator
present (paragraphs, then lines, then words, then characters), small pieces
are merged back up to the chunk size, and trailing pieces are carried into
the next chunk as overlap.
"""
from dataclasses import dataclass
from typing import List, Optional

import structlog
from langchain_text_splitters import RecursiveCharacterTextSplitter

from pdfrag import config

logger = structlog.get_logger()

DEFAULT_SEPARATORS = ["\n\n", "\n", " ", ""]


@dataclass
class TextChunk:
    """Represents a chunk of text with position information."""

    content: str
    char_start: int
    char_end: int
    chunk_index: int
    page_number: Optional[int] = None  # set when pages are chunked separately


class TextChunker:
    """Recursive character chunker with overlap support."""

    def __init__(
        self,
        chunk_size: int = None,
        chunk_overlap: int = None,
    ):
        """Initialize the text chunker.

        Args:
            chunk_size: Maximum chunk length in characters (default from config)
            chunk_overlap: Characters shared by consecutive chunks (default from config)
        """
        self.chunk_size = config.CHUNK_SIZE if chunk_size is None else chunk_size
        self.chunk_overlap = (
            config.CHUNK_OVERLAP if chunk_overlap is None else chunk_overlap
        )

        if self.chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {self.chunk_size}")
        if self.chunk_overlap < 0:
            raise ValueError(
                f"Overlap must not be negative, got {self.chunk_overlap}"
            )
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"Overlap ({self.chunk_overlap}) must be less than "
                f"chunk size ({self.chunk_size})"
            )

        # Separators stay attached to the following piece and nothing is
        # stripped, so every chunk is an exact slice of the input.
        self._splitter = RecursiveCharacterTextSplitter(
            separators=DEFAULT_SEPARATORS,
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
            keep_separator=True,
            strip_whitespace=False,
            length_function=len,
        )

        logger.info(
            "chunker_initialized",
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
        )

    def chunk_text(self, text: str) -> List[TextChunk]:
        """Split text into overlapping chunks.

        Whitespace-only chunks are dropped; every other chunk keeps its
        exact position in the input.

        Args:
            text: Text to chunk

        Returns:
            List of TextChunk objects in document order
        """
        if not text:
            return []

        pieces = [piece for piece in self._splitter.split_text(text) if piece]
        starts = self._locate(text, pieces)

        chunks = []
        for piece, start in zip(pieces, starts):
            if not piece.strip():
                continue
            chunks.append(
                TextChunk(
                    content=piece,
                    char_start=start,
                    char_end=start + len(piece),
                    chunk_index=len(chunks),
                )
            )

        logger.info(
            "text_chunked",
            text_length=len(text),
            chunk_count=len(chunks),
            dropped_blank=len(pieces) - len(chunks),
            avg_chunk_size=sum(len(c.content) for c in chunks) // max(len(chunks), 1),
        )

        return chunks

    def _start_candidates(self, text: str, piece: str, prev):
        """Yield positions where `piece` can begin, given the previous chunk.

        The first chunk starts at 0. Every later chunk starts after the
        previous start, no earlier than `chunk_overlap` before the previous
        end and no later than that end, and ends past the previous end.
        """
        if prev is None:
            if text.startswith(piece):
                yield 0
            return

        prev_start, prev_end = prev
        low = max(
            prev_start + 1,
            prev_end - self.chunk_overlap,
            prev_end - len(piece) + 1,
        )
        limit = prev_end + len(piece)
        start = text.find(piece, low, limit)
        while start != -1:
            yield start
            start = text.find(piece, start + 1, limit)

    def _locate(self, text: str, pieces: List[str]) -> List[int]:
        """Start offset of every piece such that the pieces tile the text.

        Repetitive text can match a piece at several positions, so this is
        a depth-first search over candidates, remembering (index, start)
        pairs that cannot be completed.
        """
        if not pieces:
            return []

        dead = set()
        starts: List[int] = []
        stack = [self._start_candidates(text, pieces[0], None)]

        while stack:
            i = len(stack) - 1
            start = next(stack[-1], None)

            if start is None:
                stack.pop()
                if starts:
                    dead.add((len(starts) - 1, starts.pop()))
                continue
            if (i, start) in dead:
                continue

            end = start + len(pieces[i])
            if i == len(pieces) - 1:
                if end == len(text):
                    return starts + [start]
                dead.add((i, start))
                continue

            starts.append(start)
            stack.append(self._start_candidates(text, pieces[i + 1], (start, end)))

        raise ValueError("Splitter output does not tile the input text")

    def get_chunk_stats(self, chunks: List[TextChunk]) -> dict:
        """Get statistics about a set of chunks.

        Args:
            chunks: List of TextChunk objects

        Returns:
            Dictionary with chunk statistics
        """
        if not chunks:
            return {
                "chunk_count": 0,
                "total_chars": 0,
                "avg_chunk_size": 0,
                "min_chunk_size": 0,
                "max_chunk_size": 0,
            }

        chunk_sizes = [len(c.content) for c in chunks]

        return {
            "chunk_count": len(chunks),
            "total_chars": sum(chunk_sizes),
            "avg_chunk_size": sum(chunk_sizes) // len(chunks),
            "min_chunk_size": min(chunk_sizes),
            "max_chunk_size": max(chunk_sizes),
            "overlap": self.chunk_overlap,
        }


def chunk_text(text: str) -> List[TextChunk]:
    """Chunk text with the configured defaults (convenience function).

    Args:
        text: Text to chunk

    Returns:
        List of TextChunk objects
    """
    return TextChunker().chunk_text(text)
