"""
Anthropic provider implementation.

This module implements the Anthropic Claude LLM provider using the
messages API.
"""

from typing import Optional

import aiohttp

from .base import BaseLLMProvider, LLMResponse


class AnthropicProviderError(Exception):
    """Non-200 reply or unusable payload from the messages API"""


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude LLM provider implementation"""

    @property
    def provider_name(self) -> str:
        return "anthropic"

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """
        Generate text using Anthropic Claude API

        Args:
            prompt: User prompt
            system: Optional system instruction
            model: Specific Claude model to use
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature (0.0-1.0)

        Returns:
            LLMResponse with generated text
        """
        self._start_timing()

        selected_model = self.get_effective_model(model)

        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.config.api_key,
            "anthropic-version": "2023-06-01",
        }

        request_body = {
            "model": selected_model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request_body["system"] = system

        url = f"{self.config.base_url.rstrip('/')}/messages"

        async with aiohttp.ClientSession() as session:
            async with session.post(
                url,
                headers=headers,
                json=request_body,
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            ) as response:

                if response.status != 200:
                    error_text = await response.text()
                    raise AnthropicProviderError(
                        f"Anthropic API request failed: {response.status} - {error_text}"
                    )

                response_data = await response.json()

        # Anthropic returns content as a list of blocks
        content = "".join(
            block.get("text", "")
            for block in response_data.get("content") or []
            if block.get("type") == "text"
        )

        return LLMResponse(
            content=self._validate_response_content(content),
            provider=self.provider_name,
            model=selected_model,
            tokens_used=response_data.get("usage", {}).get("output_tokens", 0),
            response_time_ms=self._get_response_time_ms(),
        )
