import logging
import os

import openai
from openai import AsyncOpenAI

from core.config import LLMConfig
from core.errors import GenerationError

logger = logging.getLogger(__name__)


class LLMClient:
    def __init__(self, config: LLMConfig):
        self.config = config
        api_key = os.environ.get(config.api.api_key_env, "")
        # Failures surface to the caller; nothing is retried here.
        self.client = AsyncOpenAI(
            base_url=config.api.base_url,
            api_key=api_key or "not-set",
            timeout=config.api.timeout,
            max_retries=0,
        )
        self.max_tokens = config.api.max_tokens

    async def complete(self, model: str, messages: list[dict]) -> str:
        """Send messages to the chat-completion endpoint and return the first choice's text.

        Raises GenerationError on timeout, connection failure or a non-success
        status, carrying the upstream error body when there is one.
        """
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=self.max_tokens,
            )
        except openai.APITimeoutError as e:
            logger.error("Model %s timed out after %ss", model, self.config.api.timeout)
            raise GenerationError("Generation request timed out", details=str(e)) from e
        except openai.APIStatusError as e:
            logger.error("Model %s returned status %s: %s", model, e.status_code, e.body)
            raise GenerationError(f"Generation backend returned status {e.status_code}", details=e.body) from e
        except openai.APIConnectionError as e:
            logger.error("Model %s unreachable: %s", model, e)
            raise GenerationError("Generation backend unreachable", details=str(e)) from e

        if not response.choices:
            raise GenerationError("Generation backend returned no choices")
        return response.choices[0].message.content or ""

    async def health(self) -> dict:
        """Check if LLM endpoint is reachable."""
        try:
            await self.client.models.list()
            return {"status": "ok", "base_url": self.config.api.base_url}
        except openai.OpenAIError as e:
            return {"status": "error", "error": str(e)}
