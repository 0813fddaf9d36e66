"""LLM service for the AI prompt endpoint."""

import logging

import anthropic
import httpx

from src.config import Settings
from src.exceptions import ServiceUnavailable

logger = logging.getLogger(__name__)


class LLMService:
    """Service for sending a single prompt to the configured provider."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.provider = settings.ai_provider
        self.model = settings.ai_model
        self.api_key = settings.ai_api_key
        self.timeout = 60.0

    @property
    def is_configured(self) -> bool:
        """Check if an API key is set for the selected provider."""
        return bool(self.api_key)

    async def generate(self, prompt: str, max_tokens: int = 1024) -> str:
        """Generate a text completion for a prompt."""
        if not self.is_configured:
            raise ServiceUnavailable(f"AI provider '{self.provider}' is not configured")

        if self.provider == "anthropic":
            return await self._generate_anthropic(prompt, max_tokens)
        return await self._generate_openai(prompt, max_tokens)

    async def _generate_openai(self, prompt: str, max_tokens: int) -> str:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.settings.openai_base_url.rstrip('/')}/chat/completions",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={
                        "model": self.model,
                        "messages": [{"role": "user", "content": prompt}],
                        "max_tokens": max_tokens,
                    },
                )
                response.raise_for_status()
                data = response.json()
                return data["choices"][0]["message"]["content"]
        except httpx.HTTPError as e:
            logger.error(f"HTTP error calling OpenAI: {e}")
            raise ServiceUnavailable("AI provider request failed") from e
        except (KeyError, IndexError, ValueError) as e:
            logger.error(f"Unexpected OpenAI response: {e}")
            raise ServiceUnavailable("AI provider returned an unexpected response") from e

    async def _generate_anthropic(self, prompt: str, max_tokens: int) -> str:
        client = anthropic.AsyncAnthropic(api_key=self.api_key, timeout=self.timeout)
        try:
            message = await client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.error(f"Anthropic API error: {e}")
            raise ServiceUnavailable("AI provider request failed") from e
        return "".join(block.text for block in message.content if block.type == "text")
