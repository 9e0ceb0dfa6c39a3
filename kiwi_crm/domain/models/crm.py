from typing import Dict, Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from enum import Enum

from kiwi_crm.domain.errors import ValidationError


class TaskStatus(str, Enum):
    """Task lifecycle status"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class CrmModel(BaseModel):
    """Base read model, serialised with camelCase keys"""
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Identity(BaseModel):
    """Caller identity asserted by the identity provider"""
    subject: str
    email: str
    name: Optional[str] = None


class UserView(CrmModel):
    """Authenticated CRM user"""
    id: str
    subject: str = Field(description="Identity-provider subject id")
    email: str
    name: Optional[str] = None
    created_at: datetime


class LeadView(CrmModel):
    """A tracked person, company or project"""
    id: str
    user_id: str
    name: str
    attributes: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class TaskView(CrmModel):
    """Deadline-bound action item on a lead"""
    id: str
    lead_id: str
    title: str
    deadline: datetime
    status: TaskStatus = TaskStatus.PENDING
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class NoteView(CrmModel):
    """Free-text annotation on a lead"""
    id: str
    lead_id: str
    content: str
    created_at: datetime
    updated_at: datetime


class TaskWithLead(TaskView):
    lead: LeadView


class NoteWithLead(NoteView):
    lead: LeadView


class LeadDetail(LeadView):
    """Lead with tasks by ascending deadline and notes newest first"""
    tasks: List[TaskView] = Field(default_factory=list)
    notes: List[NoteView] = Field(default_factory=list)


class UserContext(CrmModel):
    """Snapshot of a user's CRM state for one request"""
    leads: List[LeadDetail] = Field(default_factory=list)
    todays_tasks: List[TaskWithLead] = Field(default_factory=list)
    overdue_tasks: List[TaskWithLead] = Field(default_factory=list)


def parse_deadline(value: str) -> datetime:
    """Parse an ISO 8601 date or date-time into naive server-local time"""

    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError as e:
        raise ValidationError(
            f"Invalid deadline '{value}': expected YYYY-MM-DD or YYYY-MM-DDTHH:mm:ss"
        ) from e

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed
