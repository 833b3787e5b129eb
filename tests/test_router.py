"""Tests for LLMRouter - provider resolution, discovery, aggregation, fallback.

Router tests mock at the LLMClient boundary; adapter wire formats are
covered in the adapter tests.
"""

import asyncio
import pytest
import respx
import httpx
from unittest.mock import AsyncMock

from local_llm_router.adapters.schema import ChatRequest, GenerateRequest, Message, Provider
from local_llm_router.config import RouterSettings
from local_llm_router.errors import (
    InvalidProviderError,
    ModelNotFoundError,
    TransportError,
    UpstreamError,
)
from local_llm_router.router import LLMRouter, UNREACHABLE_MESSAGES, fallback_for

from conftest import LMSTUDIO_MODELS_RESPONSE, LMSTUDIO_URL, OLLAMA_URL, make_mock_client


def generate_request() -> GenerateRequest:
    return GenerateRequest(model="some-model", prompt="Write a haiku")


def chat_request() -> ChatRequest:
    return ChatRequest(model="some-model", messages=[Message.user("Hello")])


# ─────────────────────────────────────────────────────────────────────
# PROVIDER RESOLUTION
# ─────────────────────────────────────────────────────────────────────

class TestResolveProvider:

    @pytest.mark.parametrize("hint, expected", [
        ("ollama", Provider.OLLAMA),
        ("Ollama", Provider.OLLAMA),
        ("  OLLAMA ", Provider.OLLAMA),
        ("lmstudio", Provider.LMSTUDIO),
        ("LM Studio", Provider.LMSTUDIO),
        ("lm-studio", Provider.LMSTUDIO),
        (Provider.LMSTUDIO, Provider.LMSTUDIO),
    ])
    def test_known_aliases(self, router, hint, expected):
        assert router.resolve_provider(hint) is expected

    @pytest.mark.parametrize("hint", ["olama", "openai", "", None])
    def test_unknown_hint_routes_to_default(self, router, hint):
        assert router.resolve_provider(hint) is Provider.OLLAMA

    def test_unknown_hint_rejected_when_strict(self, ollama_client, lmstudio_client):
        strict = LLMRouter(
            ollama=ollama_client,
            lmstudio=lmstudio_client,
            settings=RouterSettings(strict_providers=True),
        )
        with pytest.raises(InvalidProviderError, match="olama"):
            strict.resolve_provider("olama")

    def test_fallback_pairs(self):
        assert fallback_for(Provider.OLLAMA) is Provider.LMSTUDIO
        assert fallback_for(Provider.LMSTUDIO) is Provider.OLLAMA


# ─────────────────────────────────────────────────────────────────────
# discover_servers()
# ─────────────────────────────────────────────────────────────────────

class TestDiscoverServers:

    @pytest.mark.asyncio
    async def test_both_reachable(self, router):
        status = await router.discover_servers()

        assert status.ollama.connected is True
        assert status.ollama.models_loaded == ["llama3", "codellama:13b"]
        assert status.ollama.error is None
        assert status.lmstudio.connected is True
        assert status.lmstudio.models_loaded == ["qwen2.5-7b-instruct"]

    @pytest.mark.asyncio
    async def test_both_unreachable(self, ollama_client, lmstudio_client, router):
        ollama_client.health_check.return_value = False
        lmstudio_client.health_check.return_value = False

        status = await router.discover_servers()

        for provider in Provider:
            entry = status.for_provider(provider)
            assert entry.connected is False
            assert entry.models_loaded == []
            assert entry.error == UNREACHABLE_MESSAGES[provider]
            assert entry.error
        ollama_client.list_models.assert_not_called()
        lmstudio_client.list_models.assert_not_called()

    @pytest.mark.asyncio
    async def test_listing_failure_after_health_check_gives_empty_list(
        self, lmstudio_client, router
    ):
        lmstudio_client.list_models.side_effect = UpstreamError("boom", status_code=500)

        status = await router.discover_servers()

        assert status.lmstudio.connected is True
        assert status.lmstudio.models_loaded == []
        assert status.lmstudio.error is None
        assert status.ollama.models_loaded == ["llama3", "codellama:13b"]

    @pytest.mark.asyncio
    async def test_health_check_that_raises_counts_as_unreachable(self, ollama_client, router):
        ollama_client.health_check.side_effect = RuntimeError("misbehaving client")

        status = await router.discover_servers()

        assert status.ollama.connected is False
        assert status.lmstudio.connected is True

    @pytest.mark.asyncio
    async def test_health_checks_run_concurrently(self, ollama_client, lmstudio_client, router):
        started = []
        both_started = asyncio.Event()

        async def slow_health():
            started.append(1)
            if len(started) == 2:
                both_started.set()
            await asyncio.wait_for(both_started.wait(), timeout=1.0)
            return True

        ollama_client.health_check.side_effect = slow_health
        lmstudio_client.health_check.side_effect = slow_health

        status = await router.discover_servers()

        assert status.ollama.connected and status.lmstudio.connected

    @pytest.mark.asyncio
    @respx.mock
    async def test_real_adapters_with_one_server_down(self):
        """End to end through both adapters: Ollama refused, LM Studio up."""
        respx.get(f"{OLLAMA_URL}/api/tags").mock(
            side_effect=httpx.ConnectError("Connection refused")
        )
        respx.get(f"{LMSTUDIO_URL}/v1/models").mock(
            return_value=httpx.Response(200, json=LMSTUDIO_MODELS_RESPONSE)
        )
        settings = RouterSettings(ollama_base_url=OLLAMA_URL, lm_studio_base_url=LMSTUDIO_URL)

        async with LLMRouter(settings=settings) as router:
            status = await router.discover_servers()
            models = await router.list_all_models()

        assert status.ollama.connected is False
        assert status.lmstudio.connected is True
        assert [m.id for m in models] == [d["id"] for d in LMSTUDIO_MODELS_RESPONSE["data"]]


# ─────────────────────────────────────────────────────────────────────
# list_all_models()
# ─────────────────────────────────────────────────────────────────────

class TestListAllModels:

    @pytest.mark.asyncio
    async def test_concatenates_in_priority_order(self, router):
        models = await router.list_all_models()

        assert [(m.provider, m.id) for m in models] == [
            (Provider.OLLAMA, "llama3"),
            (Provider.OLLAMA, "codellama:13b"),
            (Provider.LMSTUDIO, "qwen2.5-7b-instruct"),
        ]

    @pytest.mark.asyncio
    async def test_failing_provider_contributes_nothing(self, ollama_client, router):
        ollama_client.list_models.side_effect = TransportError("refused")

        models = await router.list_all_models()

        assert [m.id for m in models] == ["qwen2.5-7b-instruct"]

    @pytest.mark.asyncio
    async def test_all_failing_returns_empty(self, ollama_client, lmstudio_client, router):
        ollama_client.list_models.side_effect = TransportError("refused")
        lmstudio_client.list_models.side_effect = TransportError("refused")

        assert await router.list_all_models() == []


class TestGetModelInfo:

    @pytest.mark.asyncio
    async def test_searches_all_providers(self, router):
        info = await router.get_model_info("qwen2.5-7b-instruct")
        assert info.provider is Provider.LMSTUDIO

    @pytest.mark.asyncio
    async def test_missing_model_raises(self, router):
        with pytest.raises(ModelNotFoundError):
            await router.get_model_info("nope")

    @pytest.mark.asyncio
    async def test_hint_targets_one_adapter(self, lmstudio_client, router):
        lmstudio_client.get_model_info = AsyncMock(side_effect=ModelNotFoundError("llama3"))

        with pytest.raises(ModelNotFoundError):
            await router.get_model_info("llama3", provider_hint="lmstudio")


# ─────────────────────────────────────────────────────────────────────
# FALLBACK
# ─────────────────────────────────────────────────────────────────────

class TestGenerateWithFallback:

    @pytest.mark.asyncio
    async def test_primary_success_skips_fallback(self, ollama_client, lmstudio_client, router):
        response = await router.generate_with_fallback("ollama", generate_request())

        assert response.text == "generated by ollama"
        lmstudio_client.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_primary_failure_uses_fallback_with_same_request(
        self, ollama_client, lmstudio_client, router
    ):
        ollama_client.generate.side_effect = TransportError("refused")
        request = generate_request()

        response = await router.generate_with_fallback("ollama", request)

        assert response.text == "generated by lmstudio"
        lmstudio_client.generate.assert_awaited_once_with(request)

    @pytest.mark.asyncio
    async def test_lmstudio_hint_falls_back_to_ollama(self, ollama_client, lmstudio_client, router):
        lmstudio_client.generate.side_effect = UpstreamError("no model", status_code=400)

        response = await router.generate_with_fallback("LM Studio", generate_request())

        assert response.text == "generated by ollama"

    @pytest.mark.asyncio
    async def test_both_fail_surfaces_fallback_error(self, ollama_client, lmstudio_client, router):
        ollama_client.generate.side_effect = TransportError("ollama refused")
        lmstudio_client.generate.side_effect = UpstreamError("lmstudio exploded", status_code=500)

        with pytest.raises(UpstreamError, match="lmstudio exploded"):
            await router.generate_with_fallback("ollama", generate_request())

        ollama_client.generate.assert_awaited_once()
        lmstudio_client.generate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_primary_failure_is_logged(self, ollama_client, router, caplog):
        ollama_client.generate.side_effect = TransportError("ollama refused")

        with caplog.at_level("WARNING", logger="local_llm_router.router"):
            await router.generate_with_fallback("ollama", generate_request())

        assert "ollama refused" in caplog.text

    @pytest.mark.asyncio
    async def test_unknown_hint_is_deterministic(self, ollama_client, lmstudio_client, router):
        for _ in range(3):
            response = await router.generate_with_fallback("gpt-4", generate_request())
            assert response.text == "generated by ollama"

        assert ollama_client.generate.await_count == 3
        lmstudio_client.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_strict_router_does_not_dispatch_unknown_hint(self, ollama_client, lmstudio_client):
        strict = LLMRouter(
            ollama=ollama_client,
            lmstudio=lmstudio_client,
            settings=RouterSettings(strict_providers=True),
        )

        with pytest.raises(InvalidProviderError):
            await strict.generate_with_fallback("gpt-4", generate_request())

        ollama_client.generate.assert_not_called()
        lmstudio_client.generate.assert_not_called()


class TestChatWithFallback:

    @pytest.mark.asyncio
    async def test_primary_success(self, router):
        response = await router.chat_with_fallback("lmstudio", chat_request())
        assert response.message.content == "chat from lmstudio"

    @pytest.mark.asyncio
    async def test_primary_failure_uses_fallback(self, lmstudio_client, router):
        lmstudio_client.chat.side_effect = TransportError("refused")

        response = await router.chat_with_fallback("lmstudio", chat_request())

        assert response.message.content == "chat from ollama"

    @pytest.mark.asyncio
    async def test_both_fail_surfaces_fallback_error(self, ollama_client, lmstudio_client, router):
        lmstudio_client.chat.side_effect = UpstreamError("first", status_code=500)
        ollama_client.chat.side_effect = TransportError("second")

        with pytest.raises(TransportError, match="second"):
            await router.chat_with_fallback("lmstudio", chat_request())


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_context_manager_closes_adapters(self, ollama_client, lmstudio_client):
        async with LLMRouter(ollama=ollama_client, lmstudio=lmstudio_client):
            pass

        ollama_client.aclose.assert_awaited_once()
        lmstudio_client.aclose.assert_awaited_once()
