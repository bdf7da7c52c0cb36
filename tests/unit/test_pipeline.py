"""End-to-end pipeline runs against a stubbed Ollama and an in-memory Chroma."""
import httpx
import pytest

from pdfrag.errors import EmbeddingError, GenerationError, LoadError
from pdfrag.llm_client import OllamaClient
from pdfrag.pipeline import RAGPipeline
from pdfrag.rag.generator import build_prompt

PAGE = ("lorem ipsum dolor sit amet " * 40)[:832]


def make_pipeline(vector_store, stub, **kwargs):
    return RAGPipeline(
        vector_store=vector_store,
        llm_client=stub.client(),
        chunk_size=1000,
        chunk_overlap=200,
        top_k=4,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_three_page_document(vector_store, ollama_factory, fake_pdf):
    stub = ollama_factory(answer="It is about lorem ipsum.")
    path = fake_pdf([PAGE, PAGE, PAGE])
    progress = []

    result = await make_pipeline(vector_store, stub).run(
        path,
        "What is this about?",
        progress_callback=lambda c, t, m: progress.append(m),
    )

    assert progress == [
        "Processing 1 of 3 chunks (33.3%)",
        "Processing 2 of 3 chunks (66.7%)",
        "Processing 3 of 3 chunks (100.0%)",
    ]
    assert result.chunk_count == 3
    assert vector_store.count() == 3
    assert len(result.retrieved) == 3
    assert result.answer.text == "It is about lorem ipsum."

    generate_calls = [p for path, p in stub.requests if path == "/api/generate"]
    assert len(generate_calls) == 1
    assert generate_calls[0]["prompt"] == build_prompt(
        "What is this about?", [r.content for r in result.retrieved]
    )


@pytest.mark.asyncio
async def test_stage_order(vector_store, ollama_stub, fake_pdf):
    path = fake_pdf(["short single page"])

    await make_pipeline(vector_store, ollama_stub).run(path, "question")

    assert ollama_stub.paths() == ["/api/embeddings", "/api/embeddings", "/api/generate"]
    assert ollama_stub.requests[1][1]["prompt"] == "question"


@pytest.mark.asyncio
async def test_split_pages_chunks_each_page(vector_store, ollama_stub, fake_pdf):
    path = fake_pdf(["page one", "page two"])

    result = await make_pipeline(vector_store, ollama_stub, split_pages=True).run(
        path, "question"
    )

    assert result.chunk_count == 2
    indexes = sorted(r.metadata["chunk_index"] for r in result.retrieved)
    assert indexes == [0, 1]
    pages = {r.content: r.metadata["page_number"] for r in result.retrieved}
    assert pages == {"page one": 1, "page two": 2}
    assert all(r.metadata["char_start"] == 0 for r in result.retrieved)


@pytest.mark.asyncio
async def test_repeated_runs_accumulate_unless_rebuilt(vector_store, ollama_stub, fake_pdf):
    path = fake_pdf([PAGE, PAGE, PAGE])
    pipeline = make_pipeline(vector_store, ollama_stub)

    await pipeline.run(path, "q")
    await pipeline.run(path, "q")
    assert vector_store.count() == 6

    await pipeline.run(path, "q", rebuild=True)
    assert vector_store.count() == 3


@pytest.mark.asyncio
async def test_load_failure_stops_before_any_service_call(vector_store, ollama_stub, tmp_path):
    with pytest.raises(LoadError):
        await make_pipeline(vector_store, ollama_stub).run(tmp_path / "missing.pdf", "q")

    assert ollama_stub.requests == []
    assert vector_store.collection is None


@pytest.mark.asyncio
async def test_embedding_failure_leaves_partial_collection(vector_store, ollama_factory, fake_pdf):
    stub = ollama_factory(fail_embedding_for="FAIL")
    path = fake_pdf(["a" * 900, "FAIL" + "b" * 800])

    with pytest.raises(EmbeddingError) as exc_info:
        await make_pipeline(vector_store, stub).run(path, "q")

    assert exc_info.value.chunk_index == 1
    assert vector_store.count() == 1
    assert "/api/generate" not in stub.paths()


@pytest.mark.asyncio
async def test_generation_failure_after_indexing(vector_store, ollama_factory, fake_pdf):
    stub = ollama_factory(generate_status=404)
    path = fake_pdf(["some text"])

    with pytest.raises(GenerationError):
        await make_pipeline(vector_store, stub, generation_model="missing:1b").run(path, "q")

    assert vector_store.count() == 1


@pytest.mark.asyncio
async def test_concatenated_document_has_no_page_number(vector_store, ollama_stub, fake_pdf):
    path = fake_pdf(["page one", "page two"])

    result = await make_pipeline(vector_store, ollama_stub).run(path, "question")

    assert "page_number" not in result.retrieved[0].metadata


@pytest.mark.asyncio
async def test_non_json_embedding_reply_is_typed(vector_store, fake_pdf):
    def handler(request):
        return httpx.Response(200, text="<html>bad gateway</html>")

    client = OllamaClient(base_url="http://ollama.test", transport=httpx.MockTransport(handler))
    pipeline = RAGPipeline(vector_store=vector_store, llm_client=client)
    path = fake_pdf(["some text"])

    with pytest.raises(EmbeddingError) as exc_info:
        await pipeline.run(path, "q")

    assert exc_info.value.chunk_index == 0
    assert vector_store.count() == 0
