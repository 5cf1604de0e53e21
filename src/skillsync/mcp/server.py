"""skillsync MCP server entrypoint using FastMCP.

Exposes tools built atop the subscription client.
Run with:
  - skillsync-mcp
  - or: python -m skillsync.mcp.server (ensure PYTHONPATH includes ./src)
"""
from __future__ import annotations

import logging
from typing import Optional

from fastmcp import FastMCP

from skillsync.cache import FileCache
from skillsync.client import SkillsClient
from skillsync.config import Settings, load_settings
from skillsync.mcp.tools import register_skills_tools

logger = logging.getLogger(__name__)


class AppState:
    """Application state shared by MCP tools."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.client: Optional[SkillsClient] = None

    def init_client(self) -> None:
        """Build the subscription client from configuration.

        Raises `ConfigError` if the subscription file is unreadable or invalid.
        """
        cfg = self.settings.client
        if not cfg.subscriptions_file:
            self.client = None
            return
        self.client = SkillsClient.from_file(
            cfg.subscriptions_file,
            cache=FileCache(cfg.cache_dir) if cfg.cache_dir else None,
            timeout=cfg.timeout / 1000,
            retries=cfg.retries,
            concurrent=cfg.concurrent,
            cache_ttl=cfg.cache_ttl,
        )


# Global state and server instance
_state: Optional[AppState] = None
mcp = FastMCP("skillsync MCP Server")


@mcp.tool
def health() -> str:
    """Simple health check tool."""
    return "ok"


def main() -> None:
    """Initialize state and run the MCP server."""
    global _state
    settings = load_settings()
    logging.basicConfig(level=settings.app.log_level.upper())
    _state = AppState(settings)
    _state.init_client()
    if _state.client is None:
        logger.warning("No subscription file configured; skill tools will report an error")
    register_skills_tools(mcp, get_state=lambda: _state)
    # Choose transport based on configuration: stdio (default), http, or sse
    transport = settings.app.transport
    if transport in ("http", "sse"):
        mcp.run(transport=transport, host=settings.app.host, port=settings.app.port)
    else:
        mcp.run()


if __name__ == "__main__":  # pragma: no cover
    main()
