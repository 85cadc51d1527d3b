"""Domain status checks and the status tool catalog."""

from .catalog import TOOLS, StatusTool, available_tools, get_tool, handle_tool, parse_target

__all__ = ["StatusTool", "TOOLS", "available_tools", "get_tool", "handle_tool", "parse_target"]
