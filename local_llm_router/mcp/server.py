"""MCP protocol server for local-llm-router.

Exposes the command surface over MCP stdio transport. MCP clients
launch this as a subprocess and call tools via JSON-RPC.

Entry points:
    local-llm-router-mcp          (console script)
    python -m local_llm_router.mcp
"""

import logging
import sys

from dotenv import load_dotenv
from mcp.server import FastMCP

from local_llm_router.commands import (
    chat,
    detect_servers,
    generate,
    generate_component,
    list_models,
    optimal_model,
    set_router,
)
from local_llm_router.router import LLMRouter


# ─────────────────────────────────────────────────────────────────────
# SERVER
# ─────────────────────────────────────────────────────────────────────

mcp = FastMCP(
    "local-llm-router",
    instructions=(
        "One front door for local LLM servers (Ollama and LM Studio). "
        "Detects reachable servers, lists their models, and runs "
        "generation or chat with automatic fallback to the other server."
    ),
)

# FastMCP generates JSON schemas from the type annotations.
mcp.add_tool(detect_servers)
mcp.add_tool(list_models)
mcp.add_tool(generate)
mcp.add_tool(chat)
mcp.add_tool(generate_component)
mcp.add_tool(optimal_model)


# ─────────────────────────────────────────────────────────────────────
# ENTRY POINT
# ─────────────────────────────────────────────────────────────────────

def run():
    """Entry point for local-llm-router MCP server."""
    load_dotenv()
    # stdout carries the JSON-RPC stream
    logging.basicConfig(level=logging.WARNING, format="%(name)s %(message)s", stream=sys.stderr)

    set_router(LLMRouter.from_env())
    mcp.run(transport="stdio")


if __name__ == "__main__":
    run()
