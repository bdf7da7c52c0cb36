"""Ollama client wrapper with error handling."""
from typing import List, Optional

import httpx
import structlog
from pydantic import BaseModel, Field

from pdfrag import config

logger = structlog.get_logger()


class EmbeddingResponse(BaseModel):
    """Body of a /api/embeddings reply."""

    embedding: List[float] = Field(min_length=1)


class GenerateResponse(BaseModel):
    """Body of a non-streaming /api/generate reply."""

    model: str
    response: str
    done: bool = True
    total_duration: Optional[int] = None
    eval_count: Optional[int] = None


class OllamaClient:
    """Async client for interacting with the Ollama API."""

    def __init__(
        self,
        base_url: str = None,
        timeout: Optional[float] = config.OLLAMA_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Ollama client.

        Args:
            base_url: Ollama API base URL (defaults to config.OLLAMA_BASE_URL)
            timeout: Request timeout in seconds, None to wait indefinitely
            transport: Optional httpx transport (used to stub the server)
        """
        self.base_url = (base_url or config.OLLAMA_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout if timeout is not None else self.timeout,
            transport=self.transport,
        )

    async def generate(
        self,
        prompt: str,
        model: str = None,
    ) -> GenerateResponse:
        """Request a complete (non-streaming) generation from Ollama.

        Args:
            prompt: Full prompt text
            model: Model to use (defaults to config.GENERATION_MODEL)

        Returns:
            Validated GenerateResponse

        Raises:
            httpx.HTTPError: On API errors, including unknown models (404)
            pydantic.ValidationError: If the reply is malformed
        """
        model = model or config.GENERATION_MODEL

        payload = {
            "model": model,
            "prompt": prompt,
            "stream": False,
        }

        try:
            async with self._client() as client:
                logger.info(
                    "ollama_generate_request",
                    model=model,
                    prompt_length=len(prompt),
                )

                response = await client.post(
                    f"{self.base_url}/api/generate",
                    json=payload,
                )
                response.raise_for_status()

                data = GenerateResponse.model_validate(response.json())

                logger.info(
                    "ollama_generate_response",
                    model=model,
                    response_length=len(data.response),
                    eval_count=data.eval_count,
                )

                return data

        except httpx.ConnectError as e:
            logger.error("ollama_connection_error", error=str(e), base_url=self.base_url)
            raise
        except httpx.HTTPError as e:
            logger.error(
                "ollama_http_error",
                error=str(e),
                status_code=getattr(getattr(e, "response", None), "status_code", None),
            )
            raise

    async def embeddings(
        self,
        prompt: str,
        model: str = None,
    ) -> EmbeddingResponse:
        """Generate an embedding for a text prompt.

        Args:
            prompt: Text to embed
            model: Model to use (defaults to config.EMBEDDING_MODEL)

        Returns:
            Validated EmbeddingResponse

        Raises:
            httpx.HTTPError: On API errors
            pydantic.ValidationError: If the reply has no usable embedding
        """
        model = model or config.EMBEDDING_MODEL

        payload = {
            "model": model,
            "prompt": prompt,
        }

        try:
            async with self._client() as client:
                logger.debug(
                    "ollama_embedding_request",
                    model=model,
                    prompt_length=len(prompt),
                )

                response = await client.post(
                    f"{self.base_url}/api/embeddings",
                    json=payload,
                )
                response.raise_for_status()

                data = EmbeddingResponse.model_validate(response.json())

                logger.debug(
                    "ollama_embedding_response",
                    model=model,
                    dimension=len(data.embedding),
                )

                return data

        except httpx.HTTPError as e:
            logger.error("ollama_embedding_error", error=str(e))
            raise

    async def list_models(self) -> List[str]:
        """List all available Ollama models.

        Returns:
            List of model names

        Raises:
            httpx.HTTPError: On API errors
        """
        try:
            async with self._client(timeout=5.0) as client:
                response = await client.get(f"{self.base_url}/api/tags")
                response.raise_for_status()
                data = response.json()
                return [m["name"] for m in data.get("models", [])]
        except httpx.HTTPError as e:
            logger.error("ollama_list_models_error", error=str(e))
            raise


# Global client instance
ollama_client = OllamaClient()
