from typing import Any, Dict

import structlog
from langchain_google_genai import ChatGoogleGenerativeAI

from kiwi_crm.infrastructure.config import Settings

logger = structlog.get_logger(__name__)


def build_chat_model(settings: Settings) -> ChatGoogleGenerativeAI:
    """Chat model tuned for short, tool-augmented replies"""

    model_kwargs: Dict[str, Any] = {
        "model": settings.llm_model,
        "max_output_tokens": settings.llm_max_output_tokens,
    }
    if settings.google_api_key:
        model_kwargs["google_api_key"] = settings.google_api_key
    if settings.llm_disable_thinking:
        model_kwargs["thinking_budget"] = 0

    logger.debug(
        "Building chat model",
        model=settings.llm_model,
        max_output_tokens=settings.llm_max_output_tokens,
        thinking_disabled=settings.llm_disable_thinking,
    )
    return ChatGoogleGenerativeAI(**model_kwargs)
