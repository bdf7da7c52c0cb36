#!/usr/bin/env python
"""Validate setup - check dependencies, configuration and external services."""
import sys
import asyncio
from pathlib import Path

# Color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"

def print_success(msg):
    print(f"{GREEN}✓{RESET} {msg}")

def print_error(msg):
    print(f"{RED}✗{RESET} {msg}")

def print_info(msg):
    print(f"{BLUE}ℹ{RESET} {msg}")

def print_warning(msg):
    print(f"{YELLOW}⚠{RESET} {msg}")

def print_section(title):
    print(f"\n{BLUE}{'='*60}{RESET}")
    print(f"{BLUE}{title:^60}{RESET}")
    print(f"{BLUE}{'='*60}{RESET}\n")

async def main():
    print_section("PDF RAG - Setup Validation")

    errors = []
    warnings = []

    # 1. Python version check
    print_section("1. Python Environment")
    python_version = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    print_info(f"Python version: {python_version}")
    if sys.version_info >= (3, 10):
        print_success("Python version >= 3.10")
    else:
        print_error("Python version < 3.10 (required)")
        errors.append("Python version too old")

    in_venv = hasattr(sys, 'real_prefix') or (hasattr(sys, 'base_prefix') and sys.base_prefix != sys.prefix)
    if in_venv:
        print_success("Running in virtual environment")
    else:
        print_warning("Not running in virtual environment (recommended)")
        warnings.append("Not in venv")

    # 2. Import core dependencies
    print_section("2. Core Dependencies")

    dependencies = [
        ("httpx", "HTTP client"),
        ("ollama", "Ollama Python client"),
        ("chromadb", "Chroma vector store"),
        ("pypdf", "PDF text extraction"),
        ("langchain_text_splitters", "Text splitters"),
        ("pydantic", "Data validation"),
        ("structlog", "Structured logging"),
        ("pytest", "Testing framework"),
    ]

    for module_name, description in dependencies:
        try:
            __import__(module_name)
            print_success(f"{description:30} ({module_name})")
        except ImportError as e:
            print_error(f"{description:30} ({module_name}) - {e}")
            errors.append(f"Missing: {module_name}")

    # 3. Configuration
    print_section("3. Configuration")

    try:
        sys.path.insert(0, str(Path(__file__).parent.parent))
        from pdfrag import config
        from pdfrag.llm_client import OllamaClient

        print_success("Config loaded successfully")
        print_info(f"  Generation model: {config.GENERATION_MODEL}")
        print_info(f"  Embedding model: {config.EMBEDDING_MODEL}")
        print_info(f"  Ollama URL: {config.OLLAMA_BASE_URL}")
        print_info(f"  Chroma: {config.CHROMA_HOST}:{config.CHROMA_PORT} ({config.COLLECTION_NAME})")
        print_info(f"  Chunk size/overlap: {config.CHUNK_SIZE}/{config.CHUNK_OVERLAP} chars")

        if config.CHUNK_OVERLAP >= config.CHUNK_SIZE:
            print_error("CHUNK_OVERLAP must be smaller than CHUNK_SIZE")
            errors.append("Invalid chunk parameters")

        if Path(config.PDF_PATH).exists():
            print_success(f"Default PDF exists: {config.PDF_PATH}")
        else:
            print_warning(f"Default PDF not found: {config.PDF_PATH} (pass a path on the command line)")
            warnings.append("Default PDF missing")

    except Exception as e:
        print_error(f"Failed to load config: {e}")
        errors.append("Config loading failed")
        return errors, warnings

    # 4. Ollama service
    print_section("4. Ollama Service")

    try:
        import httpx
        models = set(await OllamaClient().list_models())
        print_success(f"Ollama service running at {config.OLLAMA_BASE_URL}")
        print_info(f"Found {len(models)} models installed")

        for label, model in (("Generation", config.GENERATION_MODEL), ("Embedding", config.EMBEDDING_MODEL)):
            if model in models:
                print_success(f"{label} model available: {model}")
            else:
                print_error(f"{label} model missing: {model}")
                print_info(f"  Run: ollama pull {model}")
                errors.append(f"Missing {label.lower()} model: {model}")

    except httpx.ConnectError:
        print_error("Cannot connect to Ollama service")
        print_info("  Make sure Ollama is running: ollama serve")
        errors.append("Ollama not running")
    except Exception as e:
        print_error(f"Ollama check failed: {e}")
        errors.append(f"Ollama error: {e}")

    # 5. Embedding round-trip
    print_section("5. Ollama API Test")

    try:
        import ollama
        response = await asyncio.to_thread(
            ollama.Client(host=config.OLLAMA_BASE_URL).embeddings,
            model=config.EMBEDDING_MODEL,
            prompt="test",
        )

        if response.get("embedding"):
            print_success(f"Embedding API working (dimension: {len(response['embedding'])})")
        else:
            print_error("Embedding response missing 'embedding' field")
            errors.append("Embedding API issue")

    except Exception as e:
        print_error(f"Ollama API test failed: {e}")
        errors.append(f"API test failed: {e}")

    # 6. Chroma server
    print_section("6. Chroma Vector Database")

    try:
        from pdfrag.rag.store_chroma import ChromaVectorStore

        store = ChromaVectorStore()
        store.heartbeat()
        print_success(f"Chroma reachable at {config.CHROMA_HOST}:{config.CHROMA_PORT}")

        await store.connect()
        print_info(f"Collection '{config.COLLECTION_NAME}' holds {store.count()} entries")

    except Exception as e:
        print_error(f"Chroma check failed: {e}")
        print_info(f"  Start a server: chroma run --host {config.CHROMA_HOST} --port {config.CHROMA_PORT}")
        errors.append("Chroma not reachable")

    # 7. Summary
    print_section("Summary")

    if not errors:
        print_success("All checks passed! ✨")
        print_info("\n  Next step: pdfrag path/to/document.pdf --query \"...\"")
    else:
        print_error(f"Found {len(errors)} error(s):")
        for i, error in enumerate(errors, 1):
            print(f"  {i}. {error}")

    if warnings:
        print_warning(f"\nFound {len(warnings)} warning(s):")
        for i, warning in enumerate(warnings, 1):
            print(f"  {i}. {warning}")

    print()
    return errors, warnings

if __name__ == "__main__":
    errors, warnings = asyncio.run(main())
    sys.exit(1 if errors else 0)
