from typing import Dict, Any, Optional, List, Literal
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from kiwi_crm.domain.models.crm import TaskStatus


class RequestBody(BaseModel):
    """Base request body, accepting camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatMessage(RequestBody):
    """One prior conversation turn"""
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(RequestBody):
    """Chat turn: the full conversation so far, latest user message last"""
    messages: List[ChatMessage] = Field(min_length=1)


class CreateLeadRequest(RequestBody):
    name: str = Field(min_length=1)
    attributes: Optional[Dict[str, Any]] = None


class UpdateLeadRequest(RequestBody):
    name: Optional[str] = Field(None, min_length=1)
    attributes: Optional[Dict[str, Any]] = None


class CreateTaskRequest(RequestBody):
    lead_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    deadline: str = Field(min_length=1, description="ISO 8601 date or date-time")


class UpdateTaskRequest(RequestBody):
    title: Optional[str] = Field(None, min_length=1)
    deadline: Optional[str] = None
    status: Optional[TaskStatus] = None


class CreateNoteRequest(RequestBody):
    lead_id: str = Field(min_length=1)
    content: str = Field(min_length=1)


class UpdateNoteRequest(RequestBody):
    content: str = Field(min_length=1)


class DeleteResponse(BaseModel):
    success: bool = True
