from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, ValidationError

from .tool_registry import ToolSpec


class ValidationResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    is_valid: bool
    errors: List[str] = []
    arguments: Optional[BaseModel] = None


# Parameter validation
class ToolArgumentValidator:
    @staticmethod
    def validate_tool_call(tool: ToolSpec, parameters: Any) -> ValidationResult:
        if not isinstance(parameters, dict):
            return ValidationResult(is_valid=False, errors=["Arguments must be a JSON object"])

        try:
            arguments = tool.args_schema.model_validate(parameters)
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(part) for part in error['loc']) or 'arguments'}: {error['msg']}"
                for error in e.errors()
            ]
            return ValidationResult(is_valid=False, errors=errors)

        return ValidationResult(is_valid=True, arguments=arguments)
