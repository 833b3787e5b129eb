"""
Configuration constants and environment loading for local-llm-router.
"""

import os
from typing import Optional

from pydantic import BaseModel


# ─────────────────────────────────────────────────────────────────────
# DEFAULTS - Applied when a request leaves an option unset
# ─────────────────────────────────────────────────────────────────────

DEFAULT_TEMPERATURE: float = 0.7
DEFAULT_MAX_TOKENS: int = 2048
DEFAULT_TOP_P: float = 0.9

# Neither backend reports context length in its listing endpoint
DEFAULT_CONTEXT_LENGTH: int = 4096


# ─────────────────────────────────────────────────────────────────────
# INTERNAL CONSTANTS
# ─────────────────────────────────────────────────────────────────────

DEFAULT_OLLAMA_BASE_URL: str = "http://localhost:11434"
DEFAULT_LM_STUDIO_BASE_URL: str = "http://localhost:1234"

DEFAULT_REQUEST_TIMEOUT_SECONDS: float = 120.0
DEFAULT_HEALTH_TIMEOUT_SECONDS: float = 5.0

ERROR_BODY_LIMIT: int = 500


# ─────────────────────────────────────────────────────────────────────
# ENVIRONMENT LOADING
# ─────────────────────────────────────────────────────────────────────

def _env_url(key: str, default: str) -> str:
    value = os.environ.get(key, "").strip()
    return (value or default).rstrip("/")


def _env_float(key: str, default: float) -> float:
    try:
        value = float(os.environ.get(key, default))
    except ValueError:
        return default
    return value if value > 0 else default


def get_ollama_base_url() -> str:
    """
    Get Ollama base URL from environment or default.

    Set OLLAMA_BASE_URL in .env (default: http://localhost:11434).
    """
    return _env_url("OLLAMA_BASE_URL", DEFAULT_OLLAMA_BASE_URL)


def get_lm_studio_base_url() -> str:
    """
    Get LM Studio base URL from environment or default.

    Set LM_STUDIO_BASE_URL in .env (default: http://localhost:1234).
    """
    return _env_url("LM_STUDIO_BASE_URL", DEFAULT_LM_STUDIO_BASE_URL)


def get_request_timeout() -> float:
    """
    Get per-request timeout in seconds.

    Set LLM_REQUEST_TIMEOUT_SECONDS in .env (default: 120).
    """
    return _env_float("LLM_REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS)


def get_health_timeout() -> float:
    """
    Get health check timeout in seconds.

    Set LLM_HEALTH_TIMEOUT_SECONDS in .env (default: 5).
    """
    return _env_float("LLM_HEALTH_TIMEOUT_SECONDS", DEFAULT_HEALTH_TIMEOUT_SECONDS)


def is_strict_providers() -> bool:
    """
    Check whether unknown provider hints should be rejected.

    Set LLM_STRICT_PROVIDERS=1 in .env to raise InvalidProviderError
    instead of routing unknown hints to the default provider.
    """
    return os.environ.get("LLM_STRICT_PROVIDERS", "").strip().lower() in ("1", "true", "yes", "on")


# ─────────────────────────────────────────────────────────────────────
# DATA MODELS
# ─────────────────────────────────────────────────────────────────────

class RouterSettings(BaseModel):
    """Settings used to build the default adapters of an LLMRouter."""
    ollama_base_url: str = DEFAULT_OLLAMA_BASE_URL
    lm_studio_base_url: str = DEFAULT_LM_STUDIO_BASE_URL
    timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    health_timeout_seconds: float = DEFAULT_HEALTH_TIMEOUT_SECONDS
    strict_providers: bool = False

    @classmethod
    def from_env(cls, strict_providers: Optional[bool] = None) -> "RouterSettings":
        return cls(
            ollama_base_url=get_ollama_base_url(),
            lm_studio_base_url=get_lm_studio_base_url(),
            timeout_seconds=get_request_timeout(),
            health_timeout_seconds=get_health_timeout(),
            strict_providers=is_strict_providers() if strict_providers is None else strict_providers,
        )
