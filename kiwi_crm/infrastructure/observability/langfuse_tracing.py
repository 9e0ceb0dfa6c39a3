from typing import List

import structlog
from langchain_core.callbacks import BaseCallbackHandler

from kiwi_crm.infrastructure.config import Settings

logger = structlog.get_logger(__name__)


def build_tracing_callbacks(settings: Settings) -> List[BaseCallbackHandler]:
    """Langfuse callbacks for the agent run, or none when tracing is not configured"""

    if not settings.tracing_enabled:
        return []

    from langfuse import Langfuse
    from langfuse.langchain import CallbackHandler

    Langfuse(
        public_key=settings.langfuse_public_key,
        secret_key=settings.langfuse_secret_key,
        host=settings.langfuse_host,
    )
    logger.debug("Langfuse tracing enabled", host=settings.langfuse_host)
    return [CallbackHandler(public_key=settings.langfuse_public_key)]
