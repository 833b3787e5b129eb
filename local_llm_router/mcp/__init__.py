"""
local-llm-router MCP server package.

Exposes the host command surface as MCP tools for agentic systems.

Usage:
    python -m local_llm_router.mcp

Backends are configured via environment:
    OLLAMA_BASE_URL=http://localhost:11434
    LM_STUDIO_BASE_URL=http://localhost:1234
"""

from local_llm_router.mcp.server import mcp, run

__all__ = ["mcp", "run"]
