"""
LLM Router using the Centralized Provider Registry.

Every external model call goes through LLMRouter.complete(), which bounds the
call with the configured timeout and maps failures onto the library's
external-service errors. Callers (AnalysisClient, MatchingEngine,
LegalAssistant) absorb those errors into their deterministic fallbacks.
"""

import asyncio
import logging
from typing import Optional

from lsp_core_lib.config.settings import get_settings
from lsp_core_lib.models.exceptions import ExternalServiceError, ExternalServiceTimeout

from .providers import LLMResponse, ProviderRegistry, get_registry

logger = logging.getLogger(__name__)


class LLMRouter:
    """Bounded-timeout front door to the provider registry"""

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        request_timeout: Optional[float] = None,
    ):
        self.registry = registry or get_registry()
        if request_timeout is None:
            request_timeout = get_settings().llm.request_timeout
        self.request_timeout = request_timeout
        logger.info(f"LLMRouter created, request timeout: {self.request_timeout}s")

    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """
        Route one request through the registry.

        Raises:
            TypeError: If prompt is None
            ExternalServiceTimeout: If the call exceeds request_timeout
            ExternalServiceError: If every provider fails
        """
        if prompt is None:
            raise TypeError("Prompt cannot be None")

        try:
            return await asyncio.wait_for(
                self.registry.route_request(
                    prompt=prompt,
                    system=system,
                    model=model,
                    max_tokens=max_tokens,
                    temperature=temperature,
                ),
                timeout=self.request_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"LLM Router: request timed out after {self.request_timeout}s")
            raise ExternalServiceTimeout(
                f"LLM request exceeded {self.request_timeout}s",
                context={"timeout": self.request_timeout},
            ) from e
        except ExternalServiceError:
            raise
        except Exception as e:
            logger.error(f"LLM Router: request failed: {e}")
            raise ExternalServiceError(f"LLM request failed: {e}") from e

    def get_provider_status(self):
        return self.registry.get_provider_status()
