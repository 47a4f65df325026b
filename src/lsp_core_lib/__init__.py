"""Legal Services Platform Core Library

Case lifecycle, AI-assisted analysis and advocate matching shared by the
platform's services.
"""

__version__ = "0.1.0"

# Export shared models first (no dependencies)
from lsp_core_lib.models import (
    AdvocateCandidate,
    AIAnalysis,
    CaseRecord,
    CaseStatus,
    MatchResult,
    Provenance,
)

# Export service discovery (no model dependencies)
from lsp_core_lib.discovery import (
    ServiceRegistry,
    DeploymentMode,
    get_service_registry,
    reset_service_registry,
)


# Lazy import for the service and clients; they pull in the LLM and HTTP stacks
def __getattr__(name):
    """Lazy import for CaseLifecycleService and the collaborator clients."""
    if name == "CaseLifecycleService":
        from lsp_core_lib.services import CaseLifecycleService
        return CaseLifecycleService
    if name in (
        "CaseStoreClient",
        "NotificationServiceClient",
        "create_case_store_client",
        "create_notification_client",
    ):
        from lsp_core_lib import clients
        return getattr(clients, name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    # Models
    "AdvocateCandidate", "AIAnalysis", "CaseRecord", "CaseStatus",
    "MatchResult", "Provenance",
    # Service & clients (lazy loaded)
    "CaseLifecycleService", "CaseStoreClient", "NotificationServiceClient",
    "create_case_store_client", "create_notification_client",
    # Service Discovery
    "ServiceRegistry",
    "DeploymentMode",
    "get_service_registry",
    "reset_service_registry",
]
