"""Settings for lsp-core-lib."""

from lsp_core_lib.config.settings import LLMSettings, Settings, get_settings, reset_settings

__all__ = ["LLMSettings", "Settings", "get_settings", "reset_settings"]
