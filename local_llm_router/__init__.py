"""
local-llm-router: one interface over local Ollama and LM Studio servers.
"""

from local_llm_router.adapters.schema import (
    ChatRequest,
    ChatResponse,
    GenerateRequest,
    GenerateResponse,
    Message,
    ModelInfo,
    ModelStatus,
    PerformanceMetrics,
    Provider,
    ServerConnectionStatus,
    ServerStatus,
)
from local_llm_router.errors import (
    InvalidProviderError,
    InvalidRequestError,
    ModelNotFoundError,
    ProtocolError,
    RouterError,
    TransportError,
    UpstreamError,
)
from local_llm_router.router import LLMRouter

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "GenerateRequest",
    "GenerateResponse",
    "InvalidProviderError",
    "InvalidRequestError",
    "LLMRouter",
    "Message",
    "ModelInfo",
    "ModelNotFoundError",
    "ModelStatus",
    "PerformanceMetrics",
    "ProtocolError",
    "Provider",
    "RouterError",
    "ServerConnectionStatus",
    "ServerStatus",
    "TransportError",
    "UpstreamError",
]
