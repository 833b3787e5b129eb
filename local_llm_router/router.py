"""
LLMRouter - one adapter per known provider, with discovery and fallback.

Routing rules:
- A provider hint resolves case-insensitively through an alias table.
- Unknown hints go to the default primary (first declared provider),
  or raise InvalidProviderError when the router is strict.
- generate/chat try the primary once; on any failure they try the other
  provider once and return whatever it returns. No further hops.
- discover_servers/list_all_models never fail because one backend did.

The router holds no mutable state after construction, so a single
instance can serve concurrent callers without locking.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar, Union

from local_llm_router.adapters.base import LLMClient
from local_llm_router.adapters.lmstudio import LMStudioAdapter
from local_llm_router.adapters.ollama import OllamaAdapter
from local_llm_router.adapters.schema import (
    ChatRequest,
    ChatResponse,
    GenerateRequest,
    GenerateResponse,
    ModelInfo,
    Provider,
    ServerConnectionStatus,
    ServerStatus,
)
from local_llm_router.config import RouterSettings
from local_llm_router.errors import InvalidProviderError, ModelNotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PROVIDER = next(iter(Provider))

PROVIDER_ALIASES: dict[str, Provider] = {
    "ollama": Provider.OLLAMA,
    "lmstudio": Provider.LMSTUDIO,
    "lm studio": Provider.LMSTUDIO,
    "lm-studio": Provider.LMSTUDIO,
    "lm_studio": Provider.LMSTUDIO,
}

UNREACHABLE_MESSAGES: dict[Provider, str] = {
    Provider.OLLAMA: "Ollama server not running. Start with: ollama serve",
    Provider.LMSTUDIO: "LM Studio server not running. Start LM Studio and enable server mode.",
}


def fallback_for(provider: Provider) -> Provider:
    """The provider tried after `provider` fails (next in declaration order)."""
    order = list(Provider)
    return order[(order.index(provider) + 1) % len(order)]


class LLMRouter:
    """
    Dispatches to the Ollama and LM Studio adapters.

    Usage:
        async with LLMRouter() as router:
            status = await router.discover_servers()
            response = await router.generate_with_fallback("ollama", request)
    """

    def __init__(
        self,
        ollama: Optional[LLMClient] = None,
        lmstudio: Optional[LLMClient] = None,
        settings: Optional[RouterSettings] = None,
    ):
        settings = settings or RouterSettings()
        self.strict_providers = settings.strict_providers
        self.ollama: LLMClient = ollama or OllamaAdapter(
            base_url=settings.ollama_base_url,
            timeout_seconds=settings.timeout_seconds,
            health_timeout_seconds=settings.health_timeout_seconds,
        )
        self.lmstudio: LLMClient = lmstudio or LMStudioAdapter(
            base_url=settings.lm_studio_base_url,
            timeout_seconds=settings.timeout_seconds,
            health_timeout_seconds=settings.health_timeout_seconds,
        )

    @classmethod
    def from_env(cls) -> "LLMRouter":
        return cls(settings=RouterSettings.from_env())

    async def __aenter__(self) -> "LLMRouter":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await asyncio.gather(*(self.adapter(p).aclose() for p in Provider))

    # ─────────────────────────────────────────────────────────────────
    # PROVIDER RESOLUTION
    # ─────────────────────────────────────────────────────────────────

    def adapter(self, provider: Provider) -> LLMClient:
        if provider is Provider.OLLAMA:
            return self.ollama
        return self.lmstudio

    def resolve_provider(self, hint: Union[str, Provider, None]) -> Provider:
        """Map a provider hint to a Provider."""
        if isinstance(hint, Provider):
            return hint
        key = (hint or "").strip().lower()
        provider = PROVIDER_ALIASES.get(key)
        if provider is not None:
            return provider
        if self.strict_providers:
            raise InvalidProviderError(
                f"Unknown provider '{hint}'. Known: {', '.join(sorted(PROVIDER_ALIASES))}"
            )
        logger.warning(
            "Unknown provider '%s', routing to %s", hint, DEFAULT_PROVIDER.display_name
        )
        return DEFAULT_PROVIDER

    # ─────────────────────────────────────────────────────────────────
    # DISCOVERY
    # ─────────────────────────────────────────────────────────────────

    async def _discover(self, provider: Provider) -> ServerConnectionStatus:
        adapter = self.adapter(provider)
        try:
            connected = await adapter.health_check()
        except Exception as e:
            logger.warning("%s health check raised: %s", provider.display_name, e)
            connected = False

        if not connected:
            return ServerConnectionStatus(
                connected=False, error=UNREACHABLE_MESSAGES[provider]
            )

        try:
            models = await adapter.list_models()
        except Exception as e:
            # Reachable but listing failed: report connected with no models
            logger.warning("%s listing failed after health check: %s", provider.display_name, e)
            return ServerConnectionStatus(connected=True)

        return ServerConnectionStatus(connected=True, models_loaded=[m.id for m in models])

    async def discover_servers(self) -> ServerStatus:
        """Health-check every provider and collect the model ids of reachable ones."""
        providers = list(Provider)
        statuses = await asyncio.gather(*(self._discover(p) for p in providers))
        return ServerStatus(**{p.value: s for p, s in zip(providers, statuses)})

    async def list_all_models(self) -> list[ModelInfo]:
        """
        Concatenate every provider's listing in priority order.

        A provider that fails contributes nothing.
        """
        providers = list(Provider)
        results = await asyncio.gather(
            *(self.adapter(p).list_models() for p in providers),
            return_exceptions=True,
        )

        all_models: list[ModelInfo] = []
        for provider, result in zip(providers, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("Skipping %s models: %s", provider.display_name, result)
                continue
            all_models.extend(result)
        return all_models

    async def get_model_info(
        self, model_id: str, provider_hint: Union[str, Provider, None] = None
    ) -> ModelInfo:
        """
        Find a model by id on the hinted provider, or on any provider.

        Without a hint, providers are searched in priority order and an
        unreachable provider is skipped.
        """
        if provider_hint is not None:
            return await self.adapter(self.resolve_provider(provider_hint)).get_model_info(model_id)

        for model in await self.list_all_models():
            if model.id == model_id:
                return model
        raise ModelNotFoundError(model_id)

    # ─────────────────────────────────────────────────────────────────
    # DISPATCH WITH FALLBACK
    # ─────────────────────────────────────────────────────────────────

    async def _with_fallback(
        self,
        provider_hint: Union[str, Provider, None],
        operation: str,
        call: Callable[[LLMClient], Awaitable[T]],
    ) -> T:
        primary = self.resolve_provider(provider_hint)
        try:
            return await call(self.adapter(primary))
        except Exception as e:
            secondary = fallback_for(primary)
            logger.warning(
                "%s %s failed, trying %s: %s",
                primary.display_name, operation, secondary.display_name, e,
            )
            return await call(self.adapter(secondary))

    async def generate_with_fallback(
        self, provider_hint: Union[str, Provider, None], request: GenerateRequest
    ) -> GenerateResponse:
        return await self._with_fallback(
            provider_hint, "generate", lambda adapter: adapter.generate(request)
        )

    async def chat_with_fallback(
        self, provider_hint: Union[str, Provider, None], request: ChatRequest
    ) -> ChatResponse:
        return await self._with_fallback(
            provider_hint, "chat", lambda adapter: adapter.chat(request)
        )
