"""Shared fixtures: a stubbed Ollama server, an in-memory Chroma, fake PDFs."""
import json
import uuid
from typing import Callable, Dict, List, Optional

import chromadb
import httpx
import pytest
from chromadb.config import Settings

from pdfrag.llm_client import OllamaClient
from pdfrag.rag.store_chroma import ChromaVectorStore


def letter_embedding(text: str) -> List[float]:
    """Deterministic 16-dimensional embedding from letter counts."""
    lowered = text.lower()
    return [float(lowered.count(c)) + 1.0 for c in "abcdefghijklmnop"]


class OllamaStub:
    """Minimal stand-in for the Ollama HTTP API."""

    def __init__(
        self,
        embed: Callable[[str], List[float]] = letter_embedding,
        answer: str = "stub answer",
        fail_embedding_for: Optional[str] = None,
        generate_status: int = 200,
        models: Optional[List[str]] = None,
    ):
        self.embed = embed
        self.answer = answer
        self.fail_embedding_for = fail_embedding_for
        self.generate_status = generate_status
        self.models = models or ["nomic-embed-text:v1.5", "deepseek-r1:8b"]
        self.requests: List[tuple] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content) if request.content else {}
        path = request.url.path
        self.requests.append((path, payload))

        if path == "/api/embeddings":
            prompt = payload["prompt"]
            if self.fail_embedding_for and self.fail_embedding_for in prompt:
                return httpx.Response(500, json={"error": "embedding backend crashed"})
            return httpx.Response(200, json={"embedding": self.embed(prompt)})

        if path == "/api/generate":
            if self.generate_status != 200:
                return httpx.Response(
                    self.generate_status,
                    json={"error": f"model '{payload['model']}' not found"},
                )
            return httpx.Response(
                200,
                json={
                    "model": payload["model"],
                    "response": self.answer,
                    "done": True,
                    "eval_count": 7,
                },
            )

        if path == "/api/tags":
            return httpx.Response(
                200, json={"models": [{"name": name} for name in self.models]}
            )

        return httpx.Response(404, json={"error": "not found"})

    def paths(self) -> List[str]:
        return [path for path, _ in self.requests]

    def client(self) -> OllamaClient:
        return OllamaClient(
            base_url="http://ollama.test",
            transport=httpx.MockTransport(self),
        )


def mapped_embedding(vectors: Dict[str, List[float]]) -> Callable[[str], List[float]]:
    """Embedding function returning fixed vectors for known texts."""

    def embed(text: str) -> List[float]:
        return vectors[text]

    return embed


@pytest.fixture
def ollama_stub():
    return OllamaStub()


@pytest.fixture
def ollama_factory():
    """Build an OllamaStub with custom behaviour."""
    return OllamaStub


@pytest.fixture
def embedding_map():
    return mapped_embedding


@pytest.fixture(scope="session")
def chroma_client():
    return chromadb.EphemeralClient(settings=Settings(anonymized_telemetry=False))


@pytest.fixture
def vector_store(chroma_client):
    # Ephemeral clients share state within a process, so isolate by name.
    return ChromaVectorStore(
        collection_name=f"test_{uuid.uuid4().hex[:12]}",
        client=chroma_client,
    )


class FakePage:
    def __init__(self, text):
        self._text = text

    def extract_text(self):
        return self._text


@pytest.fixture
def fake_pdf(tmp_path, monkeypatch):
    """Create a PDF path whose pages are served by a patched PdfReader.

    Returns a function taking the list of page texts and returning the path.
    """

    def make(pages: List[Optional[str]], name: str = "doc.pdf"):
        path = tmp_path / name
        path.write_bytes(b"%PDF-1.4 placeholder")

        class FakeReader:
            def __init__(self, stream):
                self.pages = [FakePage(text) for text in pages]

        monkeypatch.setattr("pdfrag.rag.pdf_loader.PdfReader", FakeReader)
        return path

    return make
