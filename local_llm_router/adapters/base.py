"""
LLMClient Protocol - defines the contract for local LLM inference backends.

This is the WHAT (interface), not the HOW (implementation).
See lmstudio.py and ollama.py for concrete implementations.
"""

from typing import Protocol, runtime_checkable

from local_llm_router.adapters.schema import (
    ChatRequest,
    ChatResponse,
    GenerateRequest,
    GenerateResponse,
    ModelInfo,
    Provider,
)


@runtime_checkable
class LLMClient(Protocol):
    """
    Contract for local LLM inference backends.

    Implementations must provide:
    - Model discovery (list_models, get_model_info)
    - Non-streaming inference (generate, chat)
    - A speculative reachability probe (health_check)

    Each implementation absorbs its backend's wire format so the router
    can treat all backends identically.
    """

    provider: Provider
    base_url: str

    async def list_models(self) -> list[ModelInfo]:
        """
        Return the models currently available on this backend.

        Raises:
            TransportError, UpstreamError, ProtocolError
        """
        ...

    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        """
        Complete a raw prompt.

        Raises:
            TransportError, UpstreamError, ProtocolError
        """
        ...

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """
        Answer a conversation with the next assistant message.

        Raises:
            TransportError, UpstreamError, ProtocolError
        """
        ...

    async def health_check(self) -> bool:
        """
        Return True if the backend answers its listing endpoint with 2xx.

        Never raises: every failure collapses to False.
        """
        ...

    async def get_model_info(self, model_id: str) -> ModelInfo:
        """
        Find a model by exact id.

        Raises:
            ModelNotFoundError if the id is not listed
        """
        ...

    async def aclose(self) -> None:
        """Release the underlying HTTP client."""
        ...
