from datetime import datetime

import structlog
from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from kiwi_crm.application.api.dependencies import ChatModelDep, CurrentUser, GatewayDep, SettingsDep
from kiwi_crm.application.api.schema.requests import ChatRequest
from kiwi_crm.domain.context.context_manager import ContextManager
from kiwi_crm.domain.orchestration.core.main_agent import ChatOrchestrator, to_langchain_messages
from kiwi_crm.domain.prompt.system_prompt import compile_system_prompt
from kiwi_crm.domain.streaming.streaming_handler import CancellationToken, StreamingHandler
from kiwi_crm.domain.tool.crm_tools import create_crm_tools
from kiwi_crm.infrastructure.observability.langfuse_tracing import build_tracing_callbacks

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/chat")
async def chat_endpoint(
    user: CurrentUser,
    request: ChatRequest,
    gateway: GatewayDep,
    settings: SettingsDep,
    chat_model: ChatModelDep,
):
    """Run one chat turn and stream the assistant's reply as plain text"""

    now = datetime.now()
    context = await ContextManager(gateway).build_context(user.id, now=now)

    system_prompt = compile_system_prompt(
        context=context,
        user_name=user.name,
        current_datetime=now,
    )

    cancellation = CancellationToken()
    orchestrator = ChatOrchestrator(
        chat_model,
        create_crm_tools(gateway, user.id),
        max_steps=settings.max_agent_steps,
        callbacks=build_tracing_callbacks(settings),
        cancellation=cancellation,
    )

    history = to_langchain_messages([message.model_dump() for message in request.messages])
    logger.info("Chat turn started", turns=len(history), leads=len(context.leads))

    # Failures before the first token surface here as a regular error response
    stream = await StreamingHandler(cancellation).open(
        orchestrator.stream_reply(system_prompt, history)
    )

    return StreamingResponse(stream, media_type="text/plain; charset=utf-8")
