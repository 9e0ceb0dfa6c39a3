from typing import TypedDict, Annotated, List, Dict, Any, Optional, AsyncIterator, Sequence, Literal
from langgraph.graph import StateGraph, START, END
from langgraph.graph.message import add_messages
from langgraph.types import StreamWriter
from langchain_core.messages import (
    AIMessage, AIMessageChunk, BaseMessage, HumanMessage, SystemMessage, ToolMessage
)
from langchain_core.callbacks import BaseCallbackHandler
from langchain_core.utils.json import parse_partial_json
import json
import structlog
from uuid import uuid4

from kiwi_crm.domain.streaming.streaming_handler import CancellationToken
from kiwi_crm.domain.tool.tool_executor import ToolExecutor
from kiwi_crm.domain.tool.tool_registry import ToolRegistry
from kiwi_crm.infrastructure.observability.logging import agent_logger

logger = structlog.get_logger(__name__)

DEFAULT_MAX_STEPS = 20


class ChatState(TypedDict):
    """State for one user turn"""
    system_prompt: str
    messages: Annotated[List[BaseMessage], add_messages]
    pending_calls: List[Dict[str, Any]]
    steps: int


def chunk_text(chunk: BaseMessage) -> str:
    """Extract the visible text of a streamed chunk"""

    content = chunk.content
    if isinstance(content, str):
        return content

    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def to_langchain_messages(history: Sequence[Dict[str, str]]) -> List[BaseMessage]:
    """Convert {role, content} turns from the client into chat messages"""

    messages: List[BaseMessage] = []
    for turn in history:
        if turn["role"] == "assistant":
            messages.append(AIMessage(content=turn["content"]))
        else:
            messages.append(HumanMessage(content=turn["content"]))
    return messages


class ChatOrchestrator:
    """Bounded model/tool loop that streams the assistant's reply.

    The graph alternates between a ``model`` node, which streams text and
    collects tool calls, and a ``tools`` node, which runs every requested
    call in order and feeds the result envelopes back. The turn ends when the
    model answers without tool calls, when ``max_steps`` model steps have
    run, or when the request is cancelled.
    """

    def __init__(
        self,
        chat_model: Any,
        tool_registry: ToolRegistry,
        max_steps: int = DEFAULT_MAX_STEPS,
        callbacks: Optional[List[BaseCallbackHandler]] = None,
        cancellation: Optional[CancellationToken] = None,
    ):
        self.model = chat_model.bind_tools(tool_registry.model_schemas())
        self.tool_executor = ToolExecutor(tool_registry)
        self.max_steps = max_steps
        self.callbacks = callbacks or []
        self.cancellation = cancellation or CancellationToken()
        self.workflow = self._create_workflow()

    def _create_workflow(self):
        """Create the model/tool loop graph"""

        workflow = StateGraph(ChatState)

        workflow.add_node("model", self.model_node)
        workflow.add_node("tools", self.tool_node)

        workflow.add_edge(START, "model")
        workflow.add_conditional_edges(
            "model",
            self.route_after_model,
            {"tools": "tools", "end": END}
        )
        workflow.add_conditional_edges(
            "tools",
            self.route_after_tools,
            {"model": "model", "end": END}
        )

        return workflow.compile()

    async def model_node(self, state: ChatState, writer: StreamWriter) -> Dict[str, Any]:
        """Request the next model step, streaming its text as it arrives"""

        step = state["steps"] + 1
        logger.debug("Requesting model step", step=step)

        prompt = [SystemMessage(content=state["system_prompt"])] + list(state["messages"])
        gathered: Optional[AIMessageChunk] = None

        async for chunk in self.model.astream(prompt):
            if self.cancellation.cancelled:
                break
            text = chunk_text(chunk)
            if text:
                writer(text)
            gathered = chunk if gathered is None else gathered + chunk

        calls = self._requested_calls(gathered)
        return {"messages": [self._finalize(gathered, calls)], "pending_calls": calls, "steps": step}

    @staticmethod
    def _requested_calls(gathered: Optional[AIMessageChunk]) -> List[Dict[str, Any]]:
        """Tool calls in the order the model requested them.

        Each call carries ``error`` set when its arguments could not be parsed.
        """

        if gathered is None:
            return []

        if not gathered.tool_call_chunks:
            calls = [
                {"name": call["name"], "args": call["args"], "id": call.get("id"), "error": None}
                for call in gathered.tool_calls
            ] + [
                {
                    "name": call.get("name") or "",
                    "args": call.get("args"),
                    "id": call.get("id"),
                    "error": call.get("error") or "arguments are not valid JSON",
                }
                for call in gathered.invalid_tool_calls
            ]
        else:
            calls = []
            for chunk in sorted(gathered.tool_call_chunks, key=lambda c: c.get("index") or 0):
                raw = chunk.get("args") or ""
                try:
                    args = parse_partial_json(raw) if raw else {}
                except ValueError:
                    args = None
                valid = isinstance(args, dict)
                calls.append({
                    "name": chunk.get("name") or "",
                    "args": args if valid else raw,
                    "id": chunk.get("id"),
                    "error": None if valid else "arguments are not valid JSON",
                })

        for call in calls:
            call["id"] = call["id"] or f"call_{uuid4().hex}"
        return calls

    @staticmethod
    def _finalize(gathered: Optional[AIMessageChunk], calls: List[Dict[str, Any]]) -> AIMessage:
        """Turn the aggregated chunks into the assistant message for the history"""

        if gathered is None:
            return AIMessage(content="")

        return AIMessage(
            content=gathered.content,
            tool_calls=[
                {"name": call["name"], "args": call["args"], "id": call["id"]}
                for call in calls if call["error"] is None
            ],
            invalid_tool_calls=[
                {"name": call["name"], "args": call["args"], "id": call["id"], "error": call["error"]}
                for call in calls if call["error"] is not None
            ],
            response_metadata=gathered.response_metadata,
        )

    async def tool_node(self, state: ChatState) -> Dict[str, Any]:
        """Run the requested tools in request order and append their results"""

        results: List[ToolMessage] = []
        for call in state["pending_calls"]:
            envelope = await self.tool_executor.execute_tool(
                call["name"], call["args"], parse_error=call["error"]
            )
            results.append(self._tool_message(call, envelope))

        return {"messages": results, "pending_calls": []}

    @staticmethod
    def _tool_message(call: Dict[str, Any], envelope: Dict[str, Any]) -> ToolMessage:
        return ToolMessage(
            content=json.dumps(envelope, default=str),
            tool_call_id=call["id"],
            name=call["name"],
            status="success" if envelope.get("success") else "error",
        )

    def route_after_model(self, state: ChatState) -> Literal["tools", "end"]:
        """Go to the tools if the model asked for any, otherwise finish"""

        summary = {"step": state["steps"]}

        if self.cancellation.cancelled:
            agent_logger.log_workflow_transition("model", "end", "cancelled", summary)
            return "end"

        if state.get("pending_calls"):
            agent_logger.log_workflow_transition("model", "tools", "tool_calls", summary)
            return "tools"

        agent_logger.log_workflow_transition("model", "end", "final_text", summary)
        return "end"

    def route_after_tools(self, state: ChatState) -> Literal["model", "end"]:
        """Loop back to the model unless the step budget is spent"""

        summary = {"step": state["steps"]}

        if self.cancellation.cancelled:
            agent_logger.log_workflow_transition("tools", "end", "cancelled", summary)
            return "end"

        if state["steps"] >= self.max_steps:
            logger.warning("Step budget exhausted", max_steps=self.max_steps)
            agent_logger.log_workflow_transition("tools", "end", "step_budget", summary)
            return "end"

        agent_logger.log_workflow_transition("tools", "model", "tool_results", summary)
        return "model"

    async def stream_reply(self, system_prompt: str, history: Sequence[BaseMessage]) -> AsyncIterator[str]:
        """Run one user turn, yielding the assistant's text as it is generated"""

        initial_state: ChatState = {
            "system_prompt": system_prompt,
            "messages": list(history),
            "pending_calls": [],
            "steps": 0,
        }
        config = {
            # Two supersteps per model step plus headroom, so the step budget
            # always fires before langgraph's own recursion guard
            "recursion_limit": self.max_steps * 2 + 2,
            "callbacks": self.callbacks,
        }

        stream = self.workflow.astream(initial_state, config=config, stream_mode="custom")
        try:
            async for token in stream:
                if self.cancellation.cancelled:
                    break
                yield token
        finally:
            await stream.aclose()
