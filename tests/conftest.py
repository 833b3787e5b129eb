"""Shared test fixtures for local-llm-router tests."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from local_llm_router.adapters.schema import (
    ChatResponse,
    GenerateResponse,
    Message,
    ModelInfo,
    ModelStatus,
    Provider,
)


# ─────────────────────────────────────────────────────────────────────
# MOCK DATA
# ─────────────────────────────────────────────────────────────────────

OLLAMA_URL = "http://ollama.test:11434"
LMSTUDIO_URL = "http://lmstudio.test:1234"

OLLAMA_MODEL = "codellama:13b-instruct-q4_0"
LMSTUDIO_MODEL = "TheBloke/CodeLlama-13B-Instruct-GGUF/codellama-13b-instruct.Q4_K_M.gguf"

OLLAMA_TAGS_RESPONSE = {
    "models": [
        {
            "name": OLLAMA_MODEL,
            "size": 7365960935,
            "digest": "sha256:9f438cb9cd58",
            "modified_at": "2024-05-01T10:00:00Z",
        },
        {"name": "llama3", "size": 4661224676},
    ]
}

OLLAMA_GENERATE_RESPONSE = {
    "model": OLLAMA_MODEL,
    "response": "def add(a, b):\n    return a + b",
    "done": True,
    "total_duration": 5043500667,
    "eval_count": 42,
    "eval_duration": 4709213000,
}

OLLAMA_CHAT_RESPONSE = {
    "model": OLLAMA_MODEL,
    "message": {"role": "assistant", "content": "The capital of France is Paris."},
    "done": True,
    "eval_count": 8,
}

LMSTUDIO_MODELS_RESPONSE = {
    "object": "list",
    "data": [
        {"id": LMSTUDIO_MODEL, "object": "model", "owned_by": "organization-owner"},
        {"id": "qwen2.5-7b-instruct", "object": "model"},
    ],
}

LMSTUDIO_COMPLETION_RESPONSE = {
    "id": "cmpl-123",
    "object": "text_completion",
    "model": LMSTUDIO_MODEL,
    "choices": [{"text": "def add(a, b):\n    return a + b", "index": 0, "finish_reason": "stop"}],
    "usage": {"prompt_tokens": 10, "completion_tokens": 12, "total_tokens": 22},
}

LMSTUDIO_CHAT_RESPONSE = {
    "id": "chatcmpl-123",
    "object": "chat.completion",
    "model": LMSTUDIO_MODEL,
    "choices": [
        {
            "index": 0,
            "message": {"role": "assistant", "content": "The capital of France is Paris."},
            "finish_reason": "stop",
        }
    ],
    "usage": {"prompt_tokens": 10, "completion_tokens": 8, "total_tokens": 18},
}


# ─────────────────────────────────────────────────────────────────────
# FIXTURES - Mock adapters for router-level tests
# ─────────────────────────────────────────────────────────────────────

def make_model(provider: Provider, model_id: str) -> ModelInfo:
    return ModelInfo(id=model_id, name=model_id, provider=provider, status=ModelStatus.LOADED)


def make_mock_client(provider: Provider, models=None, healthy: bool = True):
    """Create a mock LLMClient whose calls succeed unless overridden."""
    models = [make_model(provider, m) for m in (models or [])]
    client = MagicMock()
    client.provider = provider
    client.base_url = f"http://{provider.value}.test"
    client.health_check = AsyncMock(return_value=healthy)
    client.list_models = AsyncMock(return_value=models)
    client.generate = AsyncMock(return_value=GenerateResponse(
        text=f"generated by {provider.value}",
        model=f"{provider.value}-model",
        tokens_generated=10,
        generation_time_ms=500,
    ))
    client.chat = AsyncMock(return_value=ChatResponse(
        message=Message.assistant(f"chat from {provider.value}"),
        model=f"{provider.value}-model",
        tokens_generated=4,
        generation_time_ms=200,
    ))
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def ollama_client():
    return make_mock_client(Provider.OLLAMA, models=["llama3", "codellama:13b"])


@pytest.fixture
def lmstudio_client():
    return make_mock_client(Provider.LMSTUDIO, models=["qwen2.5-7b-instruct"])


@pytest.fixture
def router(ollama_client, lmstudio_client):
    from local_llm_router.router import LLMRouter
    return LLMRouter(ollama=ollama_client, lmstudio=lmstudio_client)
