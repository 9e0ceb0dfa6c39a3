"""
The CRM tools the chat model can call.

Each handler reports failures as ``{"success": False, "message": ...}``
instead of raising, so a bad lead id or deadline turns into something the
model can relay or correct.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from kiwi_crm.domain.errors import CrmError
from kiwi_crm.domain.models.crm import TaskStatus, parse_deadline
from kiwi_crm.infrastructure.database.gateway import PersistenceGateway
from .tool_executor import failure
from .tool_registry import ToolRegistry, ToolSpec


class ToolArguments(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AddLeadArgs(ToolArguments):
    name: str = Field(description="The name or title of the lead")
    attributes: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional attributes as key-value pairs (e.g., email, phone, company, source, etc.)",
    )


class AddTaskArgs(ToolArguments):
    lead_id: str = Field(description="The ID of the lead this task belongs to")
    title: str = Field(description="The title or description of the task")
    deadline: str = Field(
        description="The deadline for the task in ISO 8601 format (YYYY-MM-DD or YYYY-MM-DDTHH:mm:ss)",
    )


class AddNoteArgs(ToolArguments):
    lead_id: str = Field(description="The ID of the lead this note belongs to")
    content: str = Field(description="The content of the note")


class UpdateTaskStatusArgs(ToolArguments):
    task_id: str = Field(description="The ID of the task to update")
    status: TaskStatus = Field(
        description="The new status for the task: 'pending', 'in_progress', or 'completed'",
    )


def create_crm_tools(gateway: PersistenceGateway, user_id: str) -> ToolRegistry:
    """Build the tool registry for one user's chat request"""

    async def add_lead(args: AddLeadArgs) -> Dict[str, Any]:
        try:
            lead = await gateway.create_lead(user_id, args.name, args.attributes or {})
        except CrmError as e:
            return failure(f"Failed to create lead: {e}")

        return {
            "success": True,
            "lead": {"id": lead.id, "name": lead.name, "attributes": lead.attributes},
            "message": f'Lead "{args.name}" created successfully.',
        }

    async def add_task(args: AddTaskArgs) -> Dict[str, Any]:
        try:
            deadline = parse_deadline(args.deadline)
            task = await gateway.create_task(user_id, args.lead_id, args.title, deadline)
        except CrmError as e:
            return failure(f"Failed to create task: {e}")

        return {
            "success": True,
            "task": {
                "id": task.id,
                "title": task.title,
                "deadline": task.deadline.isoformat(),
                "status": task.status.value,
                "leadName": task.lead.name,
            },
            "message": f'Task "{args.title}" added to "{task.lead.name}" with deadline {args.deadline}.',
        }

    async def add_note(args: AddNoteArgs) -> Dict[str, Any]:
        try:
            note = await gateway.create_note(user_id, args.lead_id, args.content)
        except CrmError as e:
            return failure(f"Failed to add note: {e}")

        return {
            "success": True,
            "note": {"id": note.id, "content": note.content, "leadName": note.lead.name},
            "message": f'Note added to "{note.lead.name}".',
        }

    async def update_task_status(args: UpdateTaskStatusArgs) -> Dict[str, Any]:
        try:
            task = await gateway.update_task_status(args.task_id, user_id, args.status)
        except CrmError as e:
            return failure(f"Failed to update task status: {e}")

        return {
            "success": True,
            "task": {
                "id": task.id,
                "title": task.title,
                "status": task.status.value,
                "completedAt": task.completed_at.isoformat() if task.completed_at else None,
            },
            "message": f'Task "{task.title}" marked as {args.status.value.replace("_", " ")}.',
        }

    registry = ToolRegistry()
    registry.register_tool(ToolSpec(
        name="addLead",
        description=(
            "Create a new lead in the CRM. A lead can be a person, company, project, or any entity "
            "the user wants to track. IMPORTANT: Before calling this tool, always check if a similar "
            "lead already exists and confirm with the user."
        ),
        args_schema=AddLeadArgs,
        handler=add_lead,
    ))
    registry.register_tool(ToolSpec(
        name="addTask",
        description=(
            "Add a task with a deadline to an existing lead. Use this to track follow-ups, meetings, "
            "calls, or any action items related to a lead."
        ),
        args_schema=AddTaskArgs,
        handler=add_task,
    ))
    registry.register_tool(ToolSpec(
        name="addNote",
        description=(
            "Add a note to an existing lead. Use this to record important information, conversation "
            "summaries, meeting notes, or any relevant details about a lead."
        ),
        args_schema=AddNoteArgs,
        handler=add_note,
    ))
    registry.register_tool(ToolSpec(
        name="updateTaskStatus",
        description=(
            "Update the status of an existing task. Use this when the user says they completed a task, "
            "started working on something, or want to change a task's status. Status can be 'pending', "
            "'in_progress', or 'completed'."
        ),
        args_schema=UpdateTaskStatusArgs,
        handler=update_task_status,
    ))
    return registry
