"""
LMStudioAdapter - OpenAI-compatible implementation of LLMClient.

Talks to LM Studio's local server (/v1/models, /v1/completions,
/v1/chat/completions). Any OpenAI-compatible local server works the same.
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
from local_llm_router.config import DEFAULT_CONTEXT_LENGTH, DEFAULT_LM_STUDIO_BASE_URL
from local_llm_router.errors import ProtocolError

logger = logging.getLogger(__name__)

_MODEL_FILE_EXTENSIONS = (".gguf", ".bin", ".safetensors")
_KNOWN_QUANT_SUFFIXES = (".Q4_K_M", ".Q5_K_M", ".Q8_0")


def parse_lmstudio_model_name(model_id: str) -> tuple[str, Optional[str]]:
    """
    Split an LM Studio model id into (display name, quantization tag).

    LM Studio ids are often repository paths to a weights file:
        "TheBloke/CodeLlama-13B-Instruct-GGUF/codellama-13b-instruct.Q4_K_M.gguf"
        -> ("codellama-13b-instruct", "Q4_K_M")

    Unrecognized shapes fall back to (model_id, None).
    """
    file_name = model_id.rstrip("/").rsplit("/", 1)[-1]
    if not file_name:
        return model_id, None

    # The stem (first segment) is never a quantization tag, even for "qwen2.5"
    segments = file_name.split(".")
    quantization = next((s for s in segments[1:] if QUANT_PATTERN.match(s)), None)

    name = file_name
    for extension in _MODEL_FILE_EXTENSIONS:
        if name.lower().endswith(extension):
            name = name[: -len(extension)]
            break

    suffixes = _KNOWN_QUANT_SUFFIXES + ((f".{quantization}",) if quantization else ())
    for suffix in suffixes:
        name = name.replace(suffix, "")

    name = name.strip(".")
    return (name or model_id), quantization


class LMStudioAdapter(HTTPAdapter):
    """
    LM Studio implementation of LLMClient.

    Owns one httpx.AsyncClient for its lifetime; safe to share across
    concurrent calls.
    """

    provider = Provider.LMSTUDIO
    default_base_url = DEFAULT_LM_STUDIO_BASE_URL
    health_path = "/v1/models"

    # ─────────────────────────────────────────────────────────────────
    # DISCOVERY
    # ─────────────────────────────────────────────────────────────────

    async def list_models(self) -> list[ModelInfo]:
        """Return models from /v1/models, in server order."""
        data, _ = await send_json(
            self._client, "GET", f"{self.base_url}/v1/models", self.provider, "model listing"
        )
        # LM Studio returns {"data": [{"id": "model-name", "object": "model", ...}, ...]}
        entries = expect_dict(data, self.provider, "model listing").get("data")
        if not isinstance(entries, list):
            raise ProtocolError("LM Studio model listing has no 'data' array", provider=self.provider)

        models = []
        for entry in entries:
            model_id = entry.get("id") if isinstance(entry, dict) else None
            if not isinstance(model_id, str) or not model_id:
                raise ProtocolError(
                    f"LM Studio model listing entry without an id: {entry!r}", provider=self.provider
                )
            name, quantization = parse_lmstudio_model_name(model_id)
            models.append(ModelInfo(
                id=model_id,
                name=name,
                size=None,  # Not exposed by the OpenAI-compatible listing
                provider=self.provider,
                status=ModelStatus.LOADED,
                context_length=DEFAULT_CONTEXT_LENGTH,
                quantization=quantization,
            ))
        logger.debug("LM Studio at %s lists %d models", self.base_url, len(models))
        return models

    # ─────────────────────────────────────────────────────────────────
    # INFERENCE
    # ─────────────────────────────────────────────────────────────────

    def _payload(self, request: GenerateRequest | ChatRequest) -> dict[str, Any]:
        temperature, max_tokens, top_p = request.resolved_options()
        return {
            "model": request.model,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "top_p": top_p,
            "stream": False,
        }

    def _first_choice(self, data: dict) -> Optional[dict]:
        choices = data.get("choices")
        if not isinstance(choices, list):
            raise ProtocolError("LM Studio response has no 'choices' array", provider=self.provider)
        if not choices:
            return None
        if not isinstance(choices[0], dict):
            raise ProtocolError("LM Studio choice is not a JSON object", provider=self.provider)
        return choices[0]

    def _completion_tokens(self, data: dict) -> int:
        usage = data.get("usage")
        return usage_count(usage.get("completion_tokens")) if isinstance(usage, dict) else 0

    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        payload = self._payload(request)
        payload["prompt"] = request.prompt

        data, elapsed_ms = await send_json(
            self._client, "POST", f"{self.base_url}/v1/completions",
            self.provider, f"generation for '{request.model}'", payload,
        )
        data = expect_dict(data, self.provider, "generation")
        choice = self._first_choice(data)
        text = choice.get("text") if choice is not None else ""
        if not isinstance(text, str):
            raise ProtocolError("LM Studio completion text is not a string", provider=self.provider)

        return GenerateResponse(
            text=text,
            model=reported_model(data, request.model),
            tokens_generated=self._completion_tokens(data),
            generation_time_ms=elapsed_ms,
        )

    async def chat(self, request: ChatRequest) -> ChatResponse:
        payload = self._payload(request)
        payload["messages"] = [m.model_dump() for m in request.messages]

        data, elapsed_ms = await send_json(
            self._client, "POST", f"{self.base_url}/v1/chat/completions",
            self.provider, f"chat for '{request.model}'", payload,
        )
        data = expect_dict(data, self.provider, "chat")
        choice = self._first_choice(data)
        if choice is None:
            message = Message.assistant("")
        else:
            raw = choice.get("message")
            if not isinstance(raw, dict):
                raise ProtocolError("LM Studio choice has no 'message' object", provider=self.provider)
            try:
                message = Message(role=raw.get("role", "assistant"), content=raw.get("content") or "")
            except ValidationError as e:
                raise ProtocolError(f"LM Studio returned an invalid message: {e}", provider=self.provider) from e

        return ChatResponse(
            message=message,
            model=reported_model(data, request.model),
            tokens_generated=self._completion_tokens(data),
            generation_time_ms=elapsed_ms,
        )
