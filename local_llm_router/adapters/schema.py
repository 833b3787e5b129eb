"""
Provider-agnostic data shapes shared by every adapter and the router.

Adapters translate backend wire formats into these models; nothing here
knows about HTTP.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field, field_validator

from local_llm_router.config import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE, DEFAULT_TOP_P
from local_llm_router.errors import InvalidRequestError


class Provider(str, Enum):
    """Known backends. Declaration order is routing priority."""
    OLLAMA = "ollama"
    LMSTUDIO = "lmstudio"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    Provider.OLLAMA: "Ollama",
    Provider.LMSTUDIO: "LM Studio",
}


class ModelStatus(str, Enum):
    LOADED = "loaded"
    NOT_LOADED = "not_loaded"
    DOWNLOADING = "downloading"
    ERROR = "error"


def tokens_per_second(tokens_generated: int, generation_time_ms: int) -> float:
    """Throughput in tokens/s, or 0.0 when no time elapsed."""
    if generation_time_ms <= 0:
        return 0.0
    return tokens_generated * 1000 / generation_time_ms


# ─────────────────────────────────────────────────────────────────────
# MODEL METADATA
# ─────────────────────────────────────────────────────────────────────

class PerformanceMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    tokens_per_second: float
    time_to_first_token: Optional[float] = None
    memory_usage: Optional[int] = None
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ModelInfo(BaseModel):
    """
    A model as reported by one provider's listing endpoint.

    `id` is unique within a provider, not globally. `name` is the cleaned
    display name; `quantization` is parsed from the id for display only.
    `status_reason` is set only when status is ERROR.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    size: Optional[int] = None
    provider: Provider
    status: ModelStatus = ModelStatus.LOADED
    status_reason: Optional[str] = None
    performance: Optional[PerformanceMetrics] = None
    context_length: Optional[int] = None
    quantization: Optional[str] = None


# ─────────────────────────────────────────────────────────────────────
# REQUESTS
# ─────────────────────────────────────────────────────────────────────

Role = Literal["system", "user", "assistant"]


class Message(BaseModel):
    """A single conversation turn."""
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role="assistant", content=content)


class _RequestOptions(BaseModel):
    """
    Sampling options shared by generate and chat requests.

    Unset options stay None here; adapters apply the defaults when
    shaping the wire request. `stream` is accepted but never honored.
    """
    model_config = ConfigDict(frozen=True)

    model: str
    temperature: Optional[float] = Field(default=None, ge=0)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    top_p: Optional[float] = Field(default=None, ge=0, le=1)
    stream: bool = False

    @field_validator("model")
    @classmethod
    def _model_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("model must be a non-empty string")
        return value

    @classmethod
    def build(cls, **data: Any):
        """Construct a request, raising InvalidRequestError on bad input."""
        try:
            return cls(**data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}"
                for err in e.errors()
            )
            raise InvalidRequestError(f"Invalid {cls.__name__}: {problems}") from e

    def resolved_options(self) -> tuple[float, int, float]:
        """Return (temperature, max_tokens, top_p) with defaults applied."""
        return (
            DEFAULT_TEMPERATURE if self.temperature is None else self.temperature,
            DEFAULT_MAX_TOKENS if self.max_tokens is None else self.max_tokens,
            DEFAULT_TOP_P if self.top_p is None else self.top_p,
        )


class GenerateRequest(_RequestOptions):
    prompt: str


class ChatRequest(_RequestOptions):
    messages: List[Message] = Field(min_length=1)


# ─────────────────────────────────────────────────────────────────────
# RESPONSES
# ─────────────────────────────────────────────────────────────────────

class _ResponseMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    model: str  # As reported by the backend; may differ from the requested id
    tokens_generated: int = Field(default=0, ge=0)
    generation_time_ms: int = Field(default=0, ge=0)

    @computed_field
    @property
    def tokens_per_second(self) -> float:
        return tokens_per_second(self.tokens_generated, self.generation_time_ms)


class GenerateResponse(_ResponseMetrics):
    text: str


class ChatResponse(_ResponseMetrics):
    message: Message


# ─────────────────────────────────────────────────────────────────────
# SERVER STATUS
# ─────────────────────────────────────────────────────────────────────

class ServerConnectionStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    connected: bool
    version: Optional[str] = None
    models_loaded: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class ServerStatus(BaseModel):
    """One connection status per known provider."""
    model_config = ConfigDict(frozen=True)

    ollama: ServerConnectionStatus
    lmstudio: ServerConnectionStatus

    def for_provider(self, provider: Provider) -> ServerConnectionStatus:
        return getattr(self, provider.value)
