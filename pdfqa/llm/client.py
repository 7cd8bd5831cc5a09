# pdfqa/llm/client.py
import logging
import time
from typing import Optional

from openai import OpenAI

from pdfqa.config import LLM_MODEL, LLM_TEMPERATURE
from pdfqa.errors import GenerationError
from pdfqa.prompts.prompt_builder import build_messages

logger = logging.getLogger(__name__)


class LLMClient:
    """
    Client for OpenAI chat completions.

    Sends the question and retrieved context and returns the trimmed
    model output.
    """

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        api_key: Optional[str] = None,
        model: str = LLM_MODEL,
        temperature: float = LLM_TEMPERATURE,
    ):
        """
        Args:
            client: Preconstructed OpenAI client (tests inject a fake)
            api_key: Used when no client is given
            model: OpenAI model to use (default: gpt-4o-mini)
            temperature: Sampling temperature
        """
        self.client = client if client is not None else OpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature

    def generate(self, question: str, context: str) -> str:
        """
        Answer a question from context.

        Raises:
            GenerationError: If the API call fails
        """
        start = time.time()

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=build_messages(question, context),
                temperature=self.temperature,
            )
        except Exception as e:
            logger.error(
                "Completion request failed",
                extra={"model": self.model, "error": str(e)},
            )
            raise GenerationError(f"OpenAI API call failed: {e}") from e

        logger.info(
            "LLM provider success",
            extra={
                "provider": "openai",
                "model": self.model,
                "latency_seconds": round(time.time() - start, 3),
            },
        )

        content = response.choices[0].message.content if response.choices else None

        return (content or "").strip()
