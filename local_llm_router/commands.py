"""
Host command surface - router operations as JSON-friendly callables.

Each command takes plain parameters and returns a dict that survives
json.dumps, so the CLI, the MCP server, or any other front end can call
them directly. The router is injected through a small registry.

Usage:
    # At startup
    set_router(LLMRouter.from_env())

    # In a front end
    status = await detect_servers()
    reply = await generate("ollama", "llama3:8b", "Write a haiku")
"""

from typing import Optional

from local_llm_router.adapters.schema import ChatRequest, GenerateRequest, Message
from local_llm_router.config import DEFAULT_MAX_TOKENS, DEFAULT_TOP_P
from local_llm_router.errors import InvalidRequestError
from local_llm_router.hardware import HardwareInfo, recommend_model
from local_llm_router.router import LLMRouter

_router: Optional[LLMRouter] = None


# ─────────────────────────────────────────────────────────────────────
# REGISTRY
# ─────────────────────────────────────────────────────────────────────

def set_router(router: LLMRouter) -> None:
    """Register the router instance commands dispatch to."""
    global _router
    _router = router


def get_router() -> LLMRouter:
    """
    Get the registered router, building one from the environment on first use.
    """
    global _router
    if _router is None:
        _router = LLMRouter.from_env()
    return _router


def clear_router() -> None:
    """
    Forget the registered router.

    Primarily useful for testing to reset state between tests.
    """
    global _router
    _router = None


# ─────────────────────────────────────────────────────────────────────
# COMMANDS
# ─────────────────────────────────────────────────────────────────────

async def detect_servers() -> dict:
    """
    Report which local LLM servers are reachable and which models they serve.

    Returns:
        {
            "ollama":   {"connected": bool, "version": None, "models_loaded": [...], "error": str | None},
            "lmstudio": {...},
        }
    """
    status = await get_router().discover_servers()
    return status.model_dump(mode="json")


async def list_models() -> list[dict]:
    """List models from every reachable server, Ollama first."""
    models = await get_router().list_all_models()
    return [m.model_dump(mode="json") for m in models]


async def generate(
    provider: str,
    model: str,
    prompt: str,
    temperature: Optional[float] = None,
) -> dict:
    """
    Complete a prompt on the named provider, falling back to the other one.

    Returns:
        {"text", "model", "tokens_generated", "generation_time_ms", "tokens_per_second"}
    """
    request = GenerateRequest.build(
        model=model,
        prompt=prompt,
        temperature=temperature,
        max_tokens=DEFAULT_MAX_TOKENS,
        top_p=DEFAULT_TOP_P,
    )
    response = await get_router().generate_with_fallback(provider, request)
    return response.model_dump(mode="json")


async def chat(
    provider: str,
    model: str,
    messages: list[dict],
    temperature: Optional[float] = None,
) -> dict:
    """
    Continue a conversation on the named provider, falling back to the other one.

    Args:
        messages: [{"role": "system" | "user" | "assistant", "content": "..."}]

    Returns:
        {"message": {"role", "content"}, "model", "tokens_generated", ...}
    """
    request = ChatRequest.build(
        model=model,
        messages=messages,
        temperature=temperature,
        max_tokens=DEFAULT_MAX_TOKENS,
        top_p=DEFAULT_TOP_P,
    )
    response = await get_router().chat_with_fallback(provider, request)
    return response.model_dump(mode="json")


async def generate_component(
    model: str,
    description: str,
    provider: str = "ollama",
) -> str:
    """Ask a model for a React component and return only its code."""
    messages = [
        Message.system(
            "You are a React specialist. Generate modern React components using "
            "TypeScript and Tailwind CSS. Return only the code, no explanations."
        ).model_dump(),
        Message.user(f"Create a React component: {description}").model_dump(),
    ]
    result = await chat(provider, model, messages, temperature=0.1)
    return result["message"]["content"]


def optimal_model(
    ram_gb: int,
    vram_gb: int = 0,
    cpu: str = "Unknown CPU",
    gpu: Optional[str] = None,
) -> str:
    """Recommend a default model id for the given host memory (GB)."""
    try:
        hardware = HardwareInfo(cpu=cpu, ram_gb=ram_gb, gpu=gpu, vram_gb=vram_gb)
    except ValueError as e:
        raise InvalidRequestError(f"Invalid hardware description: {e}") from e
    return recommend_model(hardware)
