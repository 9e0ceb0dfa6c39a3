from typing import Dict, List, Any, Optional, Type, Callable, Awaitable
from pydantic import BaseModel, ConfigDict
from langchain_core.utils.json_schema import dereference_refs


ToolHandler = Callable[[Any], Awaitable[Dict[str, Any]]]


class ToolSpec(BaseModel):
    """A model-callable capability"""
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    description: str
    args_schema: Type[BaseModel]
    handler: ToolHandler

    def to_model_schema(self) -> Dict[str, Any]:
        """Function schema in the format accepted by bind_tools"""

        # Inline enum definitions; not every provider resolves $ref
        parameters = dereference_refs(self.args_schema.model_json_schema(by_alias=True))
        parameters.pop("$defs", None)
        parameters.pop("title", None)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            },
        }


class ToolRegistry:
    """Registry for managing available tools"""

    def __init__(self):
        self.tools: Dict[str, ToolSpec] = {}

    def register_tool(self, tool: ToolSpec):
        """Register a new tool"""

        if tool.name in self.tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self.tools[tool.name] = tool

    def get_available_tools(self) -> List[ToolSpec]:
        """Get all available tools, in registration order"""

        return list(self.tools.values())

    def get_tool(self, name: str) -> Optional[ToolSpec]:
        """Get a tool by name"""

        return self.tools.get(name)

    def model_schemas(self) -> List[Dict[str, Any]]:
        """Schemas for every registered tool"""

        return [tool.to_model_schema() for tool in self.tools.values()]
