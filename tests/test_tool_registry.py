"""
Tests for Tool Registry and argument validation
"""

import json

import pytest
from pydantic import BaseModel

from kiwi_crm.domain.tool.crm_tools import AddTaskArgs, UpdateTaskStatusArgs, create_crm_tools
from kiwi_crm.domain.tool.tool_registry import ToolRegistry, ToolSpec
from kiwi_crm.domain.tool.tool_validator import ToolArgumentValidator


class EchoArgs(BaseModel):
    text: str


async def echo(args: EchoArgs):
    return {"success": True, "message": args.text}


def make_tool(name: str = "echo") -> ToolSpec:
    return ToolSpec(name=name, description="Echo the text back", args_schema=EchoArgs, handler=echo)


class TestToolRegistry:
    """Test ToolRegistry functionality."""

    def test_initialization(self):
        registry = ToolRegistry()
        assert registry.tools == {}
        assert registry.get_available_tools() == []

    def test_register_and_get(self):
        registry = ToolRegistry()
        tool = make_tool()
        registry.register_tool(tool)

        assert registry.get_tool("echo") is tool
        assert registry.get_tool("missing") is None

    def test_duplicate_registration_rejected(self):
        registry = ToolRegistry()
        registry.register_tool(make_tool())

        with pytest.raises(ValueError):
            registry.register_tool(make_tool())

    def test_registration_order_is_kept(self):
        registry = ToolRegistry()
        for name in ("b", "a", "c"):
            registry.register_tool(make_tool(name))

        assert [tool.name for tool in registry.get_available_tools()] == ["b", "a", "c"]


class TestModelSchemas:
    """Test the schemas handed to the chat model."""

    async def test_crm_tool_names(self, gateway):
        registry = create_crm_tools(gateway, "user_1")

        assert list(registry.tools) == ["addLead", "addTask", "addNote", "updateTaskStatus"]

    async def test_schema_uses_camel_case_arguments(self, gateway):
        """Argument names match what the system prompt tells the model."""
        schemas = {
            schema["function"]["name"]: schema["function"]
            for schema in create_crm_tools(gateway, "user_1").model_schemas()
        }

        add_task = schemas["addTask"]["parameters"]
        assert set(add_task["properties"]) == {"leadId", "title", "deadline"}
        assert set(add_task["required"]) == {"leadId", "title", "deadline"}
        assert schemas["addLead"]["parameters"]["required"] == ["name"]
        assert "title" not in add_task

    async def test_status_enum_is_inlined(self, gateway):
        """Enum definitions are inlined rather than referenced."""
        schema = create_crm_tools(gateway, "user_1").get_tool("updateTaskStatus").to_model_schema()
        parameters = schema["function"]["parameters"]

        rendered = json.dumps(parameters)
        assert "$defs" not in parameters
        assert "$ref" not in rendered
        assert '["pending", "in_progress", "completed"]' in rendered
        assert parameters["required"] == ["taskId", "status"]
        assert schema["type"] == "function"


class TestToolArgumentValidator:
    """Test ToolArgumentValidator."""

    def test_valid_arguments(self):
        tool = ToolSpec(name="addTask", description="", args_schema=AddTaskArgs, handler=echo)

        result = ToolArgumentValidator.validate_tool_call(
            tool, {"leadId": "lead_1", "title": "Call", "deadline": "2026-10-20"}
        )

        assert result.is_valid
        assert result.arguments.lead_id == "lead_1"

    def test_missing_field(self):
        tool = ToolSpec(name="addTask", description="", args_schema=AddTaskArgs, handler=echo)

        result = ToolArgumentValidator.validate_tool_call(tool, {"title": "Call", "deadline": "2026-10-20"})

        assert not result.is_valid
        assert any(error.startswith("leadId") for error in result.errors)

    def test_bad_enum_value(self):
        tool = ToolSpec(name="updateTaskStatus", description="", args_schema=UpdateTaskStatusArgs, handler=echo)

        result = ToolArgumentValidator.validate_tool_call(tool, {"taskId": "t1", "status": "done"})

        assert not result.is_valid
        assert result.errors[0].startswith("status")

    def test_non_object_arguments(self):
        result = ToolArgumentValidator.validate_tool_call(make_tool(), ["not", "a", "dict"])

        assert not result.is_valid
        assert result.errors == ["Arguments must be a JSON object"]
