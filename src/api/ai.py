"""AI prompt endpoint."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import VerifiedIdentity, get_llm_service
from src.schemas.ai import DEFAULT_PROMPT, AIPrompt, AIResponse
from src.schemas.registry import validate
from src.services.llm import LLMService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


@router.get("", response_model=AIResponse)
async def ask(
    identity: VerifiedIdentity,
    llm: Annotated[LLMService, Depends(get_llm_service)],
    prompt: Annotated[str, Query()] = DEFAULT_PROMPT,
):
    """Send a prompt to the configured language model.

    Open only to signed-in users with a verified email address.
    """
    payload = validate(AIPrompt, {"prompt": prompt})
    logger.info(f"AI prompt from user {identity.user_id} ({len(payload.prompt)} chars)")
    text = await llm.generate(payload.prompt)
    return AIResponse(text=text)
