"""Utility Functions"""

from lsp_core_lib.utils.resilience import (
    create_custom_retry,
    is_retryable_http_error,
)

__all__ = [
    "create_custom_retry",
    "is_retryable_http_error",
]
