"""
Scripted stand-in for the chat model.

Only the two methods the orchestrator uses are implemented: ``bind_tools``
and ``astream``.
"""

import json
from typing import Any, Dict, List, Optional, Union

from langchain_core.messages import AIMessageChunk, BaseMessage


def text_step(*parts: str) -> List[AIMessageChunk]:
    """A model step that answers with plain text, one chunk per part"""
    return [AIMessageChunk(content=part) for part in parts]


def tool_step(*calls: Dict[str, Any], text: str = "") -> List[AIMessageChunk]:
    """A model step that requests tools.

    Each call is ``{"name": ..., "args": dict-or-raw-string, "id": ...}``.
    """
    chunks = [AIMessageChunk(content=text)] if text else []
    tool_call_chunks = []
    for index, call in enumerate(calls):
        args: Union[str, Dict[str, Any]] = call.get("args", {})
        tool_call_chunks.append({
            "name": call["name"],
            "args": args if isinstance(args, str) else json.dumps(args),
            "id": call.get("id", f"call_{index}"),
            "index": index,
        })
    chunks.append(AIMessageChunk(content="", tool_call_chunks=tool_call_chunks))
    return chunks


class ScriptedChatModel:
    """Replays one scripted list of chunks per model step"""

    def __init__(self, steps: List[List[AIMessageChunk]], repeat_last: bool = False, error: Optional[Exception] = None):
        self.steps = steps
        self.repeat_last = repeat_last
        self.error = error
        self.calls: List[List[BaseMessage]] = []
        self.bound_tools: Optional[List[Dict[str, Any]]] = None

    def bind_tools(self, tools, **kwargs):
        self.bound_tools = list(tools)
        return self

    async def astream(self, messages, config=None, **kwargs):
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error

        index = len(self.calls) - 1
        if index >= len(self.steps):
            if not self.repeat_last:
                raise AssertionError(f"model called {len(self.calls)} times, only {len(self.steps)} steps scripted")
            index = len(self.steps) - 1

        for chunk in self.steps[index]:
            yield chunk
