"""
Tests for Tool Executor and the CRM tools

Every outcome, including bad input and handler crashes, must come back as a
result envelope rather than an exception.
"""

from datetime import datetime

import pytest
from pydantic import BaseModel

from kiwi_crm.domain.models.crm import TaskStatus
from kiwi_crm.domain.tool.crm_tools import create_crm_tools
from kiwi_crm.domain.tool.tool_executor import ToolExecutor, failure
from kiwi_crm.domain.tool.tool_registry import ToolRegistry, ToolSpec


class NoArgs(BaseModel):
    pass


async def explode(args: NoArgs):
    raise RuntimeError("boom")


@pytest.fixture
async def executor(gateway, user):
    return ToolExecutor(create_crm_tools(gateway, user.id))


@pytest.fixture
async def personal_lead(gateway, user):
    leads = await gateway.list_leads_by_user(user.id)
    return leads[0]


class TestToolExecutor:
    """Test failure containment in ToolExecutor."""

    async def test_unknown_tool(self, executor):
        result = await executor.execute_tool("deleteEverything", {})

        assert result["success"] is False
        assert result["message"].startswith("Unknown tool 'deleteEverything'")
        assert "addLead" in result["message"]

    async def test_parse_error(self, executor):
        result = await executor.execute_tool("addTask", "{not json", parse_error="arguments are not valid JSON")

        assert result == failure("Malformed arguments for addTask: arguments are not valid JSON")

    async def test_invalid_arguments(self, executor):
        result = await executor.execute_tool("addNote", {"content": "no lead id"})

        assert result["success"] is False
        assert result["message"].startswith("Invalid arguments for addNote: leadId")

    async def test_handler_crash_is_contained(self):
        registry = ToolRegistry()
        registry.register_tool(ToolSpec(name="explode", description="", args_schema=NoArgs, handler=explode))

        result = await ToolExecutor(registry).execute_tool("explode", {})

        assert result == failure("Tool explode failed: boom")


class TestAddLead:
    """Test the addLead tool."""

    async def test_creates_lead(self, executor, gateway, user):
        result = await executor.execute_tool("addLead", {"name": "Acme Corp", "attributes": {"source": "event"}})

        assert result["success"] is True
        assert result["message"] == 'Lead "Acme Corp" created successfully.'
        assert result["lead"]["attributes"] == {"source": "event"}
        names = [lead.name for lead in await gateway.list_leads_by_user(user.id)]
        assert "Acme Corp" in names

    async def test_attributes_are_optional(self, executor):
        result = await executor.execute_tool("addLead", {"name": "Jane"})

        assert result["success"] is True
        assert result["lead"]["attributes"] == {}


class TestAddTask:
    """Test the addTask tool."""

    async def test_adds_task_to_personal_lead(self, executor, gateway, user, personal_lead):
        """Unattributed reminders land on the Personal lead as pending tasks."""
        result = await executor.execute_tool(
            "addTask",
            {"leadId": personal_lead.id, "title": "Buy groceries", "deadline": "2026-10-20"},
        )

        assert result["success"] is True
        assert result["message"] == 'Task "Buy groceries" added to "Personal" with deadline 2026-10-20.'
        assert result["task"]["leadName"] == "Personal"
        assert result["task"]["status"] == "pending"

        detail = await gateway.get_lead(personal_lead.id, user.id)
        assert detail.tasks[0].deadline == datetime(2026, 10, 20)

    async def test_status_argument_is_ignored(self, executor, personal_lead):
        """Even if the model sends a status, new tasks start pending."""
        result = await executor.execute_tool(
            "addTask",
            {"leadId": personal_lead.id, "title": "Call", "deadline": "2026-10-20T14:30:00", "status": "completed"},
        )

        assert result["success"] is True
        assert result["task"]["status"] == "pending"
        assert result["task"]["deadline"] == "2026-10-20T14:30:00"

    async def test_unknown_lead(self, executor):
        result = await executor.execute_tool(
            "addTask", {"leadId": "nonexistent", "title": "Call", "deadline": "2026-10-20"}
        )

        assert result["success"] is False
        assert result["message"].startswith("Failed to create task")

    async def test_bad_deadline(self, executor, personal_lead):
        result = await executor.execute_tool(
            "addTask", {"leadId": personal_lead.id, "title": "Call", "deadline": "next tuesday"}
        )

        assert result["success"] is False
        assert result["message"].startswith("Failed to create task: Invalid deadline 'next tuesday'")


class TestAddNote:
    """Test the addNote tool."""

    async def test_adds_note(self, executor, gateway, user, personal_lead):
        result = await executor.execute_tool("addNote", {"leadId": personal_lead.id, "content": "Budget is 50k"})

        assert result == {
            "success": True,
            "note": {"id": result["note"]["id"], "content": "Budget is 50k", "leadName": "Personal"},
            "message": 'Note added to "Personal".',
        }
        assert (await gateway.get_lead(personal_lead.id, user.id)).notes[0].content == "Budget is 50k"

    async def test_unknown_lead(self, executor):
        result = await executor.execute_tool("addNote", {"leadId": "nonexistent", "content": "x"})

        assert result["success"] is False
        assert result["message"].startswith("Failed to add note")


class TestUpdateTaskStatus:
    """Test the updateTaskStatus tool."""

    async def test_complete_then_reopen(self, executor, gateway, user, personal_lead):
        task = await gateway.create_task(user.id, personal_lead.id, "Call John", datetime(2026, 10, 19))

        completed = await executor.execute_tool("updateTaskStatus", {"taskId": task.id, "status": "completed"})
        assert completed["success"] is True
        assert completed["message"] == 'Task "Call John" marked as completed.'
        assert completed["task"]["completedAt"] is not None

        started = await executor.execute_tool("updateTaskStatus", {"taskId": task.id, "status": "in_progress"})
        assert started["message"] == 'Task "Call John" marked as in progress.'
        assert started["task"]["completedAt"] is None

        detail = await gateway.get_lead(personal_lead.id, user.id)
        assert detail.tasks[0].status == TaskStatus.IN_PROGRESS

    async def test_unknown_task(self, executor):
        result = await executor.execute_tool("updateTaskStatus", {"taskId": "nonexistent", "status": "completed"})

        assert result["success"] is False
        assert result["message"].startswith("Failed to update task status")

    async def test_invalid_status(self, executor):
        result = await executor.execute_tool("updateTaskStatus", {"taskId": "t1", "status": "done"})

        assert result["success"] is False
        assert result["message"].startswith("Invalid arguments for updateTaskStatus")
