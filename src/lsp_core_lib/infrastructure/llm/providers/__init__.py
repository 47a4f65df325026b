"""
LLM Provider Package

This package contains the centralized provider registry and implementations
for the LLM providers backing case analysis and advocate matching.
"""

from .base import BaseLLMProvider, LLMResponse, ProviderConfig
from .registry import ProviderRegistry, get_registry, reset_registry, get_valid_provider_names
from .openai_provider import OpenAIProvider
from .anthropic import AnthropicProvider

__all__ = [
    "BaseLLMProvider",
    "LLMResponse",
    "ProviderConfig",
    "ProviderRegistry",
    "get_registry",
    "reset_registry",
    "get_valid_provider_names",
    "OpenAIProvider",
    "AnthropicProvider",
]
