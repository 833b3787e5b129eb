"""
Shared HTTP plumbing for the protocol adapters.

Both adapters time the round trip, map transport failures and non-2xx
statuses, and decode JSON the same way. Field naming differences stay in
the adapters themselves.
"""

import logging
import math
import re
import time
from typing import Any, Optional

import httpx

from local_llm_router.adapters.schema import Provider
from local_llm_router.config import (
    DEFAULT_HEALTH_TIMEOUT_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    ERROR_BODY_LIMIT,
)
from local_llm_router.errors import ModelNotFoundError, ProtocolError, TransportError, UpstreamError

logger = logging.getLogger(__name__)

# "q4_0", "Q4_K_M"; a bare leading q ("qwen2") is not a tag
QUANT_PATTERN = re.compile(r"^[qQ]\d")


def parse_error_message(response: httpx.Response) -> str:
    """Extract a user-friendly error message from a backend error response."""
    try:
        data = response.json()
        # OpenAI-style servers return {"error": {"message": "..."}},
        # Ollama returns {"error": "..."}
        if isinstance(data, dict):
            error = data.get("error", {})
            if isinstance(error, dict):
                message = error.get("message", "")
                if message:
                    return message
            elif isinstance(error, str) and error:
                return error
    except ValueError:
        pass
    text = response.text[:ERROR_BODY_LIMIT]
    return f"HTTP {response.status_code}: {text}" if text else f"HTTP {response.status_code}"


async def send_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    provider: Provider,
    action: str,
    payload: Optional[dict] = None,
) -> tuple[Any, int]:
    """
    Issue a request and decode its JSON body.

    Returns:
        (decoded body, wall-clock round trip in milliseconds)

    Raises:
        TransportError on connection failure or timeout
        UpstreamError on non-2xx status
        ProtocolError on a body that is not JSON
    """
    start = time.perf_counter()
    try:
        response = await client.request(method, url, json=payload)
    except httpx.TimeoutException as e:
        raise TransportError(
            f"{provider.display_name} timed out during {action}: {e}", provider=provider
        ) from e
    except httpx.RequestError as e:
        raise TransportError(
            f"{provider.display_name} unreachable during {action}: {e}", provider=provider
        ) from e
    elapsed_ms = int((time.perf_counter() - start) * 1000)

    if not response.is_success:
        message = parse_error_message(response)
        raise UpstreamError(
            f"{provider.display_name} {action} failed: {message}",
            status_code=response.status_code,
            body=response.text[:ERROR_BODY_LIMIT],
            provider=provider,
        )

    try:
        data = response.json()
    except ValueError as e:
        raise ProtocolError(
            f"{provider.display_name} returned a non-JSON body for {action}", provider=provider
        ) from e

    logger.debug("%s %s %s -> %d in %dms", provider.value, method, url, response.status_code, elapsed_ms)
    return data, elapsed_ms


async def probe(client: httpx.AsyncClient, url: str, timeout: float) -> bool:
    """GET url and report whether it answered 2xx. Never raises."""
    try:
        response = await client.get(url, timeout=timeout)
    except Exception as e:
        logger.debug("Health check %s failed: %s", url, e)
        return False
    return response.is_success


def expect_dict(data: Any, provider: Provider, action: str) -> dict:
    if not isinstance(data, dict):
        raise ProtocolError(
            f"{provider.display_name} {action} response is not a JSON object", provider=provider
        )
    return data


def usage_count(value: Any) -> int:
    """Coerce a backend token count to a non-negative int, 0 when absent."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return max(int(value), 0)


def reported_model(data: dict, requested: str) -> str:
    """Model id echoed by the backend, or the requested one if it sent none."""
    model = data.get("model")
    return model if isinstance(model, str) and model else requested


class HTTPAdapter:
    """
    Connection lifecycle and model lookup shared by the protocol adapters.

    Subclasses set provider, default_base_url and health_path, and
    implement list_models/generate/chat.
    """

    provider: Provider
    default_base_url: str
    health_path: str

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        health_timeout_seconds: float = DEFAULT_HEALTH_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.health_timeout_seconds = health_timeout_seconds
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_model_info(self, model_id: str):
        for model in await self.list_models():
            if model.id == model_id:
                return model
        raise ModelNotFoundError(model_id, provider=self.provider)

    async def health_check(self) -> bool:
        return await probe(self._client, f"{self.base_url}{self.health_path}", self.health_timeout_seconds)
