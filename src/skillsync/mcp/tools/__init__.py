"""Tool registration modules for the skillsync MCP server."""

from .skills import format_skills_for_context, register_skills_tools

__all__ = [
    "format_skills_for_context",
    "register_skills_tools",
]
