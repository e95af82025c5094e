"""Registry that exposes tools to the model and runs its tool calls."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ValidationError, create_model

from whatsapp_agent.tools.base import Tool

LOGGER = logging.getLogger(__name__)

_JSON_TYPES: dict[str, type[Any]] = {
    "string": str,
    "integer": int,
    "number": float,
    "boolean": bool,
    "object": dict,
    "array": list,
}


class ToolRegistry:
    """Explicit registry of tools exposed to the model.

    ``execute`` never raises: unknown tools, invalid arguments and tool
    failures all come back as ``{"success": False, "error": ...}`` so the
    model can explain the problem to the user.
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}
        self._argument_models: dict[str, type[BaseModel]] = {}

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool
        self._argument_models[tool.name] = _argument_model(tool)

    def list_tools(self) -> list[dict[str, str]]:
        return [{"name": tool.name, "description": tool.description} for tool in self._tools.values()]

    def list_tool_specs(self) -> list[dict[str, Any]]:
        """Tool declarations in chat-completions ``tools`` format, in registration order."""

        specs = []
        for tool in self._tools.values():
            function = {"name": tool.name, "description": tool.description, "parameters": tool.parameters_schema}
            specs.append({"type": "function", "function": function})
        return specs

    async def execute(self, sender: str, tool_name: str, arguments: dict[str, Any]) -> Any:
        tool = self._tools.get(tool_name)
        if tool is None:
            LOGGER.warning("Model requested unknown tool %r", tool_name)
            return {"success": False, "error": f"Unknown tool: {tool_name}"}

        try:
            parsed = self._argument_models[tool_name].model_validate(arguments or {})
        except ValidationError as exc:
            LOGGER.warning("Rejected arguments for %s: %s", tool_name, exc)
            return {"success": False, "error": f"Invalid input for tool {tool_name}: {exc}"}

        kwargs = parsed.model_dump(exclude_none=True)
        if tool.uses_sender:
            kwargs["sender"] = sender
        try:
            result = await tool.run(**kwargs)
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("Tool %s failed", tool_name)
            return {"success": False, "error": str(exc)}
        LOGGER.info("Tool %s executed for %s", tool_name, sender)
        return result


def _argument_model(tool: Tool) -> type[BaseModel]:
    """Build a pydantic model mirroring the tool's JSON schema properties."""

    schema = tool.parameters_schema
    required = set(schema.get("required", []))
    fields: dict[str, Any] = {}
    for name, prop in schema.get("properties", {}).items():
        python_type = _JSON_TYPES.get(prop.get("type", "string"), str)
        if name in required:
            fields[name] = (python_type, ...)
        else:
            fields[name] = (python_type | None, prop.get("default"))
    return create_model(f"{type(tool).__name__}Arguments", **fields)
