"""
OllamaAdapter - Ollama implementation of LLMClient.

Talks to Ollama's native API (/api/tags, /api/generate, /api/chat).
Sampling options travel in a nested "options" object and the output
budget is called num_predict.
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from local_llm_router.adapters.helpers import (
    QUANT_PATTERN,
    HTTPAdapter,
    expect_dict,
    reported_model,
    send_json,
    usage_count,
)
from local_llm_router.adapters.schema import (
    ChatRequest,
    ChatResponse,
    GenerateRequest,
    GenerateResponse,
    Message,
    ModelInfo,
    ModelStatus,
    Provider,
)
from local_llm_router.config import DEFAULT_CONTEXT_LENGTH, DEFAULT_OLLAMA_BASE_URL
from local_llm_router.errors import ProtocolError

logger = logging.getLogger(__name__)


def parse_ollama_model_name(full_name: str) -> tuple[str, Optional[str]]:
    """
    Split an Ollama model name into (display name, quantization tag).

    "codellama:13b-instruct-q4_0" -> ("codellama-13b-instruct-q4_0", "q4_0")
    "llama3"                      -> ("llama3", None)
    """
    name, sep, tag = full_name.partition(":")
    if not sep or not name or not tag:
        return full_name, None
    quantization = next((p for p in tag.split("-") if QUANT_PATTERN.match(p)), None)
    return f"{name}-{tag}", quantization


class OllamaAdapter(HTTPAdapter):
    """
    Ollama implementation of LLMClient.

    /api/tags lists every model pulled onto the host; they are reported
    as loaded because Ollama loads them on demand.
    """

    provider = Provider.OLLAMA
    default_base_url = DEFAULT_OLLAMA_BASE_URL
    health_path = "/api/tags"

    async def list_models(self) -> list[ModelInfo]:
        data, _ = await send_json(
            self._client, "GET", f"{self.base_url}/api/tags", self.provider, "model listing"
        )
        # {"models": [{"name": "llama3:8b", "size": 4661224676, "digest": "...", ...}]}
        entries = expect_dict(data, self.provider, "model listing").get("models")
        if not isinstance(entries, list):
            raise ProtocolError("Ollama model listing has no 'models' array", provider=self.provider)

        models = []
        for entry in entries:
            if not isinstance(entry, dict):
                raise ProtocolError(f"Ollama model entry is not an object: {entry!r}", provider=self.provider)
            model_id = entry.get("name") or entry.get("model")
            if not isinstance(model_id, str):
                raise ProtocolError(f"Ollama model entry without a name: {entry!r}", provider=self.provider)
            size = entry.get("size")
            name, quantization = parse_ollama_model_name(model_id)
            models.append(ModelInfo(
                id=model_id,
                name=name,
                size=size if isinstance(size, int) and not isinstance(size, bool) else None,
                provider=self.provider,
                status=ModelStatus.LOADED,
                context_length=DEFAULT_CONTEXT_LENGTH,
                quantization=quantization,
            ))
        logger.debug("Ollama at %s lists %d models", self.base_url, len(models))
        return models

    def _options(self, request: GenerateRequest | ChatRequest) -> dict[str, Any]:
        temperature, max_tokens, top_p = request.resolved_options()
        return {
            "temperature": temperature,
            "top_p": top_p,
            "num_predict": max_tokens,
        }

    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        payload = {
            "model": request.model,
            "prompt": request.prompt,
            "stream": False,
            "options": self._options(request),
        }
        data, elapsed_ms = await send_json(
            self._client, "POST", f"{self.base_url}/api/generate",
            self.provider, f"generation for '{request.model}'", payload,
        )
        data = expect_dict(data, self.provider, "generation")
        text = data.get("response")
        if not isinstance(text, str):
            raise ProtocolError("Ollama generation response has no 'response' text", provider=self.provider)

        return GenerateResponse(
            text=text,
            model=reported_model(data, request.model),
            tokens_generated=usage_count(data.get("eval_count")),
            generation_time_ms=elapsed_ms,
        )

    async def chat(self, request: ChatRequest) -> ChatResponse:
        payload = {
            "model": request.model,
            "messages": [m.model_dump() for m in request.messages],
            "stream": False,
            "options": self._options(request),
        }
        data, elapsed_ms = await send_json(
            self._client, "POST", f"{self.base_url}/api/chat",
            self.provider, f"chat for '{request.model}'", payload,
        )
        data = expect_dict(data, self.provider, "chat")
        raw = data.get("message")
        if not isinstance(raw, dict):
            raise ProtocolError("Ollama chat response has no 'message' object", provider=self.provider)
        try:
            message = Message(role=raw.get("role", "assistant"), content=raw.get("content") or "")
        except ValidationError as e:
            raise ProtocolError(f"Ollama returned an invalid message: {e}", provider=self.provider) from e

        return ChatResponse(
            message=message,
            model=reported_model(data, request.model),
            tokens_generated=usage_count(data.get("eval_count")),
            generation_time_ms=elapsed_ms,
        )
