from typing import Dict, Any, Optional
import time
import structlog

from kiwi_crm.infrastructure.observability.logging import agent_logger
from .tool_registry import ToolRegistry
from .tool_validator import ToolArgumentValidator

logger = structlog.get_logger(__name__)


def failure(message: str) -> Dict[str, Any]:
    """Failure envelope reported back to the model"""
    return {"success": False, "message": message}


# Execution with failure containment
class ToolExecutor:
    """Resolves tool calls by name and always answers with a result envelope.

    Nothing raised here reaches the orchestration loop: unknown tools,
    malformed arguments and handler crashes all come back as
    ``{"success": False, "message": ...}`` so the model can recover.
    """

    def __init__(self, registry: ToolRegistry, validator: Optional[ToolArgumentValidator] = None):
        self.registry = registry
        self.validator = validator or ToolArgumentValidator()

    async def execute_tool(
        self,
        tool_name: str,
        parameters: Any,
        parse_error: Optional[str] = None,
    ) -> Dict[str, Any]:
        started = time.perf_counter()
        result = await self._execute(tool_name, parameters, parse_error)
        duration_ms = (time.perf_counter() - started) * 1000

        agent_logger.log_tool_execution(
            tool_name=tool_name,
            input_data=parameters,
            output_data=result,
            duration_ms=round(duration_ms, 2),
            success=bool(result.get("success")),
            error=None if result.get("success") else result.get("message"),
        )
        return result

    async def _execute(self, tool_name: str, parameters: Any, parse_error: Optional[str]) -> Dict[str, Any]:
        tool = self.registry.get_tool(tool_name)
        if tool is None:
            available = ", ".join(self.registry.tools) or "none"
            return failure(f"Unknown tool '{tool_name}'. Available tools: {available}.")

        if parse_error:
            return failure(f"Malformed arguments for {tool_name}: {parse_error}")

        validation = self.validator.validate_tool_call(tool, parameters)
        if not validation.is_valid:
            return failure(f"Invalid arguments for {tool_name}: {'; '.join(validation.errors)}")

        try:
            return await tool.handler(validation.arguments)
        except Exception as e:
            logger.exception("Tool handler crashed", tool_name=tool_name)
            return failure(f"Tool {tool_name} failed: {e}")
