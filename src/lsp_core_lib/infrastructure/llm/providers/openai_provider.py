"""
OpenAI-compatible provider implementation.

Speaks the chat-completions protocol used by DeepSeek, OpenAI and other
compatible endpoints.
"""

from typing import Optional

import aiohttp

from .base import BaseLLMProvider, LLMResponse, ProviderConfig


class OpenAICompatibleError(Exception):
    """Non-200 reply or unusable payload from a chat-completions endpoint"""


class OpenAIProvider(BaseLLMProvider):
    """Chat-completions LLM provider"""

    def __init__(self, config: ProviderConfig):
        super().__init__(config)
        self._name = config.name or "openai"

    @property
    def provider_name(self) -> str:
        return self._name

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Generate response using a chat-completions API

        Args:
            prompt: User prompt
            system: Optional system message sent ahead of the prompt
            model: Specific model to use
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
        """

        self._start_timing()

        effective_model = self.get_effective_model(model)

        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": effective_model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        async with aiohttp.ClientSession() as session:
            async with session.post(
                f"{self.config.base_url.rstrip('/')}/chat/completions",
                headers=headers,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            ) as response:

                if response.status != 200:
                    error_text = await response.text()
                    raise OpenAICompatibleError(
                        f"{self.provider_name} API error {response.status}: {error_text}"
                    )

                data = await response.json()

        if not data.get("choices"):
            raise OpenAICompatibleError(f"{self.provider_name} API returned no choices")

        content = self._validate_response_content(data["choices"][0]["message"].get("content"))

        usage = data.get("usage") or {}

        return LLMResponse(
            content=content,
            provider=self.provider_name,
            model=effective_model,
            tokens_used=usage.get("total_tokens", 0),
            response_time_ms=self._get_response_time_ms(),
        )
