"""
Run local-llm-router as MCP server.

Usage:
    python -m local_llm_router.mcp
"""

from local_llm_router.mcp.server import run

if __name__ == "__main__":
    run()
