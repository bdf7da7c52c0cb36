"""Answer generation from retrieved context."""
from dataclasses import dataclass
from typing import List, Optional

import httpx
import structlog
from pydantic import ValidationError

from pdfrag import config
from pdfrag.errors import GenerationError
from pdfrag.llm_client import OllamaClient, ollama_client

logger = structlog.get_logger()

PROMPT_TEMPLATE = (
    "{query} \n\n To answer, use only this information {context}. "
    "If you don't know the answer just say it, do not try to make up an answer."
)


@dataclass
class GenerationResult:
    """Complete model answer."""

    text: str
    model: str
    total_duration: Optional[int] = None
    eval_count: Optional[int] = None


def build_context(texts: List[str]) -> str:
    """Join retrieved chunk texts into a single context block."""
    return "\n".join(texts)


def build_prompt(query: str, texts: List[str]) -> str:
    """Compose the constrained prompt for a query and its retrieved texts."""
    return PROMPT_TEMPLATE.format(query=query, context=build_context(texts))


class AnswerGenerator:
    """Asks the language model to answer using only the retrieved context."""

    def __init__(
        self,
        llm_client: Optional[OllamaClient] = None,
        model: str = None,
    ):
        self.llm_client = llm_client or ollama_client
        self.model = model or config.GENERATION_MODEL

    async def generate(self, query: str, texts: List[str]) -> GenerationResult:
        """Generate an answer in one non-streaming request.

        Args:
            query: The user's question
            texts: Retrieved chunk texts, most similar first

        Returns:
            GenerationResult with the full response text

        Raises:
            GenerationError: If the service is unreachable, the model is
                unknown, or the reply is malformed
        """
        prompt = build_prompt(query, texts)

        logger.info(
            "generation_started",
            model=self.model,
            context_chunks=len(texts),
            prompt_length=len(prompt),
        )

        try:
            response = await self.llm_client.generate(prompt=prompt, model=self.model)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise GenerationError(
                    f"Model not found on the inference service: {self.model}",
                    self.model,
                ) from e
            raise GenerationError(
                f"Inference service returned HTTP {e.response.status_code}",
                self.model,
            ) from e
        except httpx.HTTPError as e:
            raise GenerationError(
                f"Inference service unreachable: {e}", self.model
            ) from e
        except (ValidationError, ValueError) as e:
            logger.error("generation_response_malformed", model=self.model)
            raise GenerationError(
                "Malformed response from inference service", self.model
            ) from e

        logger.info(
            "generation_completed",
            model=response.model,
            response_length=len(response.response),
        )

        return GenerationResult(
            text=response.response,
            model=response.model,
            total_duration=response.total_duration,
            eval_count=response.eval_count,
        )
