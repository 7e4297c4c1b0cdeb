"""last_llm tool definitions."""

from last_llm.tools.base import Tool

__all__ = ["Tool"]
