"""Command line entry point: index a PDF and answer one question about it.

Usage:
    pdfrag document.pdf --query "What is X?"
    pdfrag document.pdf --rebuild          # start from an empty collection
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

import structlog

from pdfrag import config
from pdfrag.errors import PdfRagError
from pdfrag.pipeline import RAGPipeline
from pdfrag.rag.store_chroma import ChromaVectorStore

logger = structlog.get_logger()


def configure_logging(level: str = None) -> None:
    """Send structured JSON logs to stderr, keeping stdout for results."""
    logging.basicConfig(
        level=(level or config.LOG_LEVEL).upper(),
        stream=sys.stderr,
        format="%(message)s",
    )
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


class ProgressReporter:
    """Prints one line per ingested chunk."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout

    def update(self, current: int, total: int, message: str):
        print(message, file=self.stream, flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdfrag",
        description="Index a PDF into Chroma and answer a question with a local model",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pdfrag report.pdf --query "What are the key findings?"
  pdfrag report.pdf --rebuild --top-k 6
        """,
    )

    parser.add_argument(
        "pdf_path",
        nargs="?",
        type=Path,
        default=Path(config.PDF_PATH),
        help=f"PDF to index (default: {config.PDF_PATH})",
    )
    parser.add_argument(
        "--query",
        "-q",
        default=config.DEFAULT_QUERY,
        help="Question to answer from the document",
    )
    parser.add_argument(
        "--top-k",
        type=int,
        default=config.RETRIEVAL_TOP_K,
        help=f"Chunks to retrieve (default: {config.RETRIEVAL_TOP_K})",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=config.CHUNK_SIZE,
        help=f"Maximum chunk length in characters (default: {config.CHUNK_SIZE})",
    )
    parser.add_argument(
        "--chunk-overlap",
        type=int,
        default=config.CHUNK_OVERLAP,
        help=f"Overlap between chunks in characters (default: {config.CHUNK_OVERLAP})",
    )
    parser.add_argument(
        "--collection",
        default=config.COLLECTION_NAME,
        help=f"Chroma collection name (default: {config.COLLECTION_NAME})",
    )
    parser.add_argument(
        "--split-pages",
        action="store_true",
        default=config.SPLIT_PAGES,
        help="Chunk each page separately instead of the concatenated text",
    )
    parser.add_argument(
        "--rebuild",
        action="store_true",
        help="Drop and recreate the collection before indexing",
    )

    return parser


async def run(args: argparse.Namespace) -> int:
    """Run the pipeline for parsed arguments and print the answer.

    Returns:
        Process exit code
    """
    pipeline = RAGPipeline(
        vector_store=ChromaVectorStore(collection_name=args.collection),
        chunk_size=args.chunk_size,
        chunk_overlap=args.chunk_overlap,
        top_k=args.top_k,
        split_pages=args.split_pages,
    )
    progress = ProgressReporter()

    # Configuration goes to stderr so stdout carries only progress and answer
    print("\nConfiguration:", file=sys.stderr)
    print(f"   PDF:              {args.pdf_path}", file=sys.stderr)
    print(f"   Collection:       {args.collection}", file=sys.stderr)
    print(f"   Embedding model:  {config.EMBEDDING_MODEL}", file=sys.stderr)
    print(f"   Generation model: {config.GENERATION_MODEL}", file=sys.stderr)
    print(f"   Chunk size:       {args.chunk_size} chars", file=sys.stderr)
    print(f"   Chunk overlap:    {args.chunk_overlap} chars", file=sys.stderr)
    print(f"   Top-K retrieval:  {args.top_k}\n", file=sys.stderr)
    if args.rebuild:
        print("Rebuild mode: the collection will be emptied first.\n", file=sys.stderr)

    try:
        result = await pipeline.run(
            args.pdf_path,
            args.query,
            progress_callback=progress.update,
            rebuild=args.rebuild,
        )
    except PdfRagError as e:
        logger.error("pipeline_failed", error=e.message, error_type=type(e).__name__, **e.details)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(result.answer.text)
    return 0


def cli(argv=None) -> None:
    """Console script entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.chunk_size <= 0 or not 0 <= args.chunk_overlap < args.chunk_size:
        parser.error("--chunk-overlap must be >= 0 and smaller than --chunk-size")
    if args.top_k <= 0:
        parser.error("--top-k must be positive")
    configure_logging()

    try:
        code = asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\nCancelled by user.", file=sys.stderr)
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    cli()
