"""Case lifecycle and AI-assisted matching core"""

from lsp_core_lib.core.analysis import AnalysisClient
from lsp_core_lib.core.assistant import LegalAssistant
from lsp_core_lib.core.matching import MatchingEngine
from lsp_core_lib.core.recommendations import RecommendationStore
from lsp_core_lib.core.state_machine import TRANSITIONS, CaseAction, CaseStateMachine

__all__ = [
    "AnalysisClient",
    "LegalAssistant",
    "MatchingEngine",
    "RecommendationStore",
    "TRANSITIONS",
    "CaseAction",
    "CaseStateMachine",
]
