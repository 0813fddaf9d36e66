"""AI prompt schemas."""

from pydantic import BaseModel, Field

from src.schemas.registry import register

DEFAULT_PROMPT = "What's the weather like today?"


@register("ai.prompt")
class AIPrompt(BaseModel):
    """Prompt sent to the configured language model."""

    prompt: str = Field(DEFAULT_PROMPT, min_length=1, max_length=2000)


@register("ai.response")
class AIResponse(BaseModel):
    text: str
