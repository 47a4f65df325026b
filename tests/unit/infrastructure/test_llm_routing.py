"""Unit tests for the provider registry and the bounded-timeout router."""

import asyncio
from typing import Optional

import pytest
from pydantic import SecretStr

from lsp_core_lib.config.settings import LLMSettings
from lsp_core_lib.infrastructure.llm.providers import (
    AnthropicProvider,
    BaseLLMProvider,
    LLMResponse,
    OpenAIProvider,
    ProviderConfig,
    ProviderRegistry,
)
from lsp_core_lib.infrastructure.llm.router import LLMRouter
from lsp_core_lib.models.exceptions import ExternalServiceError, ExternalServiceTimeout


class FakeProvider(BaseLLMProvider):
    """Provider returning a fixed reply, failing, or sleeping."""

    def __init__(self, name: str, reply: str = "ok", error: Optional[Exception] = None, delay: float = 0):
        super().__init__(ProviderConfig(name=name, api_key="k", base_url="http://fake", models=["m"]))
        self._name = name
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls = 0

    @property
    def provider_name(self) -> str:
        return self._name

    async def generate(self, prompt, system=None, model=None, max_tokens=1000, temperature=0.7):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return LLMResponse(content=self.reply, provider=self._name, model="m")


def _settings(**overrides) -> LLMSettings:
    return LLMSettings(_env_file=None, **overrides)


class TestProviderRegistry:
    """Tests for provider construction and fallback ordering."""

    def test_skips_providers_without_keys(self):
        registry = ProviderRegistry(settings=_settings())
        assert registry.get_available_providers() == []
        assert registry.get_fallback_chain() == []

    def test_builds_configured_providers(self):
        registry = ProviderRegistry(
            settings=_settings(
                provider="anthropic",
                deepseek_api_key=SecretStr("ds"),
                anthropic_api_key=SecretStr("an"),
            )
        )

        assert registry.get_fallback_chain() == ["anthropic", "deepseek"]
        assert isinstance(registry.get_provider("deepseek"), OpenAIProvider)
        assert registry.get_provider("deepseek").provider_name == "deepseek"
        assert isinstance(registry.get_provider("anthropic"), AnthropicProvider)
        assert registry.get_provider("deepseek").get_supported_models() == ["deepseek-chat"]

    def test_strict_mode_uses_primary_only(self):
        registry = ProviderRegistry(
            settings=_settings(
                strict_provider_mode=True,
                deepseek_api_key=SecretStr("ds"),
                openai_api_key=SecretStr("oa"),
            )
        )
        assert registry.get_fallback_chain() == ["deepseek"]

    def test_invalid_primary_defaults_to_deepseek(self):
        registry = ProviderRegistry(
            settings=_settings(provider="nonsense", deepseek_api_key=SecretStr("ds"))
        )
        assert registry.get_fallback_chain() == ["deepseek"]

    @pytest.mark.asyncio
    async def test_falls_through_failing_provider(self):
        registry = ProviderRegistry(settings=_settings())
        broken = FakeProvider("broken", error=RuntimeError("503"))
        working = FakeProvider("working", reply="fine")
        registry.register_provider(broken, primary=True)
        registry.register_provider(working)

        response = await registry.route_request("prompt", system="sys")

        assert response.content == "fine"
        assert broken.calls == 1

    @pytest.mark.asyncio
    async def test_all_failing_raises(self):
        registry = ProviderRegistry(settings=_settings())
        registry.register_provider(FakeProvider("a", error=RuntimeError("down")))

        with pytest.raises(ExternalServiceError):
            await registry.route_request("prompt")

    @pytest.mark.asyncio
    async def test_no_providers_raises(self):
        with pytest.raises(ExternalServiceError) as exc_info:
            await ProviderRegistry(settings=_settings()).route_request("prompt")
        assert exc_info.value.error_code == "LLM_CONFIG_ERROR"


class TestLLMRouter:
    """Tests for timeout and error mapping."""

    @pytest.mark.asyncio
    async def test_returns_response(self):
        registry = ProviderRegistry(settings=_settings())
        registry.register_provider(FakeProvider("fake", reply="hello"))

        response = await LLMRouter(registry=registry, request_timeout=1).complete("hi")

        assert response.content == "hello"

    @pytest.mark.asyncio
    async def test_timeout_maps_to_external_timeout(self):
        registry = ProviderRegistry(settings=_settings())
        registry.register_provider(FakeProvider("slow", delay=1))

        with pytest.raises(ExternalServiceTimeout):
            await LLMRouter(registry=registry, request_timeout=0.05).complete("hi")

    @pytest.mark.asyncio
    async def test_timeout_is_an_external_service_error(self):
        registry = ProviderRegistry(settings=_settings())
        registry.register_provider(FakeProvider("slow", delay=1))

        with pytest.raises(ExternalServiceError):
            await LLMRouter(registry=registry, request_timeout=0.05).complete("hi")

    @pytest.mark.asyncio
    async def test_rejects_none_prompt(self):
        router = LLMRouter(registry=ProviderRegistry(settings=_settings()), request_timeout=1)
        with pytest.raises(TypeError):
            await router.complete(None)

    def test_default_timeout_from_settings(self, monkeypatch):
        monkeypatch.setenv("LLM_REQUEST_TIMEOUT", "12.5")
        router = LLMRouter(registry=ProviderRegistry(settings=_settings()))
        assert router.request_timeout == 12.5
