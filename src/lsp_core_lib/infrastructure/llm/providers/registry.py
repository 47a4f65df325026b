"""
Centralized Provider Registry for LLM providers.

This module provides a central registry for managing LLM providers, their configurations,
and fallback strategies. Provider settings come from LLMSettings; providers without an
API key are skipped.
"""

import logging
from typing import Dict, List, Optional

from lsp_core_lib.config.settings import LLMSettings, get_settings
from lsp_core_lib.models.exceptions import ExternalServiceError

from .anthropic import AnthropicProvider
from .base import BaseLLMProvider, LLMResponse, ProviderConfig
from .openai_provider import OpenAIProvider


# Data-driven provider schema - single source of truth
PROVIDER_SCHEMA = {
    "deepseek": {
        "settings_prefix": "deepseek",
        "provider_class": OpenAIProvider,  # Compatible API
    },
    "openai": {
        "settings_prefix": "openai",
        "provider_class": OpenAIProvider,
    },
    "anthropic": {
        "settings_prefix": "anthropic",
        "provider_class": AnthropicProvider,
    },
}

FALLBACK_ORDER = ["deepseek", "openai", "anthropic"]


class ProviderRegistry:
    """Central registry for managing LLM providers"""

    def __init__(self, settings: Optional[LLMSettings] = None):
        self.logger = logging.getLogger(__name__)
        self.settings = settings
        self._providers: Dict[str, BaseLLMProvider] = {}
        self._fallback_chain: List[str] = []
        self._initialized = False

    def _ensure_initialized(self):
        """Ensure providers are initialized before use"""
        if not self._initialized:
            if self.settings is None:
                self.settings = get_settings().llm
            self._initialize_from_settings()
            self._initialized = True

    def _initialize_from_settings(self):
        """Initialize providers based on settings configuration using schema"""
        primary_provider = self.settings.provider
        if primary_provider not in PROVIDER_SCHEMA:
            self.logger.error(
                f"Invalid LLM_PROVIDER: '{primary_provider}'. "
                f"Valid options: {list(PROVIDER_SCHEMA)}. Defaulting to 'deepseek'"
            )
            primary_provider = "deepseek"

        for provider_name, schema in PROVIDER_SCHEMA.items():
            config = self._create_provider_config(provider_name, schema)
            if config:
                self._initialize_provider(provider_name, config)

        self._setup_fallback_chain(primary_provider)

    def _create_provider_config(self, provider_name: str, schema: Dict) -> Optional[ProviderConfig]:
        """Create provider configuration from schema and settings"""
        prefix = schema["settings_prefix"]
        secret = getattr(self.settings, f"{prefix}_api_key")
        if not secret:
            self.logger.debug(f"Skipping provider '{provider_name}': no API key configured")
            return None

        return ProviderConfig(
            name=provider_name,
            api_key=secret.get_secret_value(),
            base_url=getattr(self.settings, f"{prefix}_base_url"),
            models=[getattr(self.settings, f"{prefix}_model")],
            max_retries=self.settings.max_retries,
            timeout=self.settings.request_timeout,
        )

    def _initialize_provider(self, name: str, config: ProviderConfig):
        provider_class = PROVIDER_SCHEMA[name]["provider_class"]
        try:
            provider = provider_class(config)
        except Exception as e:
            self.logger.error(f"Error creating provider '{name}': {e}")
            return

        if provider.is_available():
            self._providers[name] = provider
            self.logger.info(f"Provider '{name}' initialized")
        else:
            self.logger.warning(f"Provider '{name}' not available (missing config)")

    def _setup_fallback_chain(self, primary_provider: str):
        """Set up the provider fallback chain"""
        chain = [primary_provider] if primary_provider in self._providers else []

        if self.settings.strict_provider_mode:
            self.logger.info(f"Strict provider mode enabled - using only '{primary_provider}'")
        else:
            for provider in FALLBACK_ORDER:
                if provider != primary_provider and provider in self._providers:
                    chain.append(provider)

        self._fallback_chain = chain
        self.logger.info(f"Provider fallback chain: {' -> '.join(chain) or '(empty)'}")

    def register_provider(self, provider: BaseLLMProvider, primary: bool = False):
        """Register a provider instance directly (custom endpoints, testing)"""
        self._ensure_initialized()
        name = provider.provider_name
        self._providers[name] = provider
        if name in self._fallback_chain:
            self._fallback_chain.remove(name)
        if primary:
            self._fallback_chain.insert(0, name)
        else:
            self._fallback_chain.append(name)
        self.logger.info(f"Registered provider: {name} (primary={primary})")

    def get_provider(self, name: str) -> Optional[BaseLLMProvider]:
        self._ensure_initialized()
        return self._providers.get(name)

    def get_available_providers(self) -> List[str]:
        self._ensure_initialized()
        return list(self._providers.keys())

    def get_fallback_chain(self) -> List[str]:
        self._ensure_initialized()
        return self._fallback_chain.copy()

    async def route_request(
        self,
        prompt: str,
        system: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """
        Route request through the fallback chain until success

        Raises:
            ExternalServiceError: If no provider is configured or all providers fail
        """
        self._ensure_initialized()

        if not self._fallback_chain:
            raise ExternalServiceError("No LLM providers configured", error_code="LLM_CONFIG_ERROR")

        last_error = None
        for provider_name in self._fallback_chain:
            provider = self._providers[provider_name]
            try:
                self.logger.debug(f"Trying provider: {provider_name}")
                return await provider.generate(
                    prompt=prompt,
                    system=system,
                    model=model,
                    max_tokens=max_tokens,
                    temperature=temperature,
                )
            except Exception as e:
                self.logger.warning(f"Provider {provider_name} failed: {e}")
                last_error = e

        raise ExternalServiceError(
            f"All providers failed. Last error: {last_error}",
            context={"providers": self._fallback_chain.copy()},
        )

    def get_provider_status(self) -> Dict[str, Dict[str, object]]:
        """Get status information for all providers"""
        self._ensure_initialized()
        return {
            name: {
                "available": provider.is_available(),
                "models": provider.get_supported_models(),
                "in_fallback_chain": name in self._fallback_chain,
            }
            for name, provider in self._providers.items()
        }


# Global registry instance
_registry = None


def get_registry(settings: Optional[LLMSettings] = None) -> ProviderRegistry:
    """Get the global provider registry instance"""
    global _registry
    if _registry is None:
        _registry = ProviderRegistry(settings=settings)
    return _registry


def reset_registry():
    """Reset the global registry (mainly for testing)"""
    global _registry
    _registry = None


def get_valid_provider_names() -> List[str]:
    return list(PROVIDER_SCHEMA.keys())
