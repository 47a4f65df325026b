"""Orchestration services"""

from lsp_core_lib.services.case_service import CaseLifecycleService

__all__ = ["CaseLifecycleService"]
