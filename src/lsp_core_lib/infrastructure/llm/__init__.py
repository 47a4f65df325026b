"""LLM provider registry and bounded-timeout router"""

from lsp_core_lib.infrastructure.llm.router import LLMRouter

__all__ = ["LLMRouter"]
