"""Exception taxonomy for the case lifecycle and matching engine.

Surfaced to callers:
- InvalidTransition: action attempted from a disallowed source status
- ValidationError: action arguments rejected (ineligible advocate, empty reason, ...)
- CaseNotFoundError: unknown case id
- ConcurrentModificationError: optimistic version check failed

Absorbed internally (never leave AnalysisClient / MatchingEngine / LegalAssistant):
- MalformedAIResponse
- ExternalServiceError
- ExternalServiceTimeout
"""

from typing import Any, Dict, Optional


class LSPCoreError(Exception):
    """Base error carrying a machine-readable code and context"""

    default_error_code = "LSP_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
        }


class InvalidTransition(LSPCoreError):
    """Raised when an action is not allowed from the case's current status"""

    default_error_code = "INVALID_TRANSITION"

    def __init__(self, case_id: Optional[str], action: str, status: Optional[str]):
        self.case_id = case_id
        self.action = action
        self.status = status
        super().__init__(
            f"Cannot apply '{action}' to case {case_id} in status '{status}'",
            context={"case_id": case_id, "action": action, "status": status},
        )


class ValidationError(LSPCoreError):
    """Raised when an action's arguments are rejected"""

    default_error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, case_id: Optional[str] = None, action: Optional[str] = None):
        self.case_id = case_id
        self.action = action
        super().__init__(message, context={"case_id": case_id, "action": action})


class CaseNotFoundError(LSPCoreError):
    default_error_code = "CASE_NOT_FOUND"

    def __init__(self, case_id: str):
        self.case_id = case_id
        super().__init__(f"Case {case_id} not found", context={"case_id": case_id})


class ConcurrentModificationError(LSPCoreError):
    """Raised when a case was updated by someone else since it was read"""

    default_error_code = "CONCURRENT_MODIFICATION"

    def __init__(self, case_id: str, expected_version: int, actual_version: int):
        super().__init__(
            f"Case {case_id} is at version {actual_version}, expected {expected_version}",
            context={
                "case_id": case_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )


class MalformedAIResponse(LSPCoreError):
    """Model reply could not be parsed or failed schema validation"""

    default_error_code = "MALFORMED_AI_RESPONSE"


class ExternalServiceError(LSPCoreError):
    """External model call failed (network, provider error, no providers)"""

    default_error_code = "EXTERNAL_SERVICE_ERROR"


class ExternalServiceTimeout(ExternalServiceError):
    """External model call exceeded its time bound"""

    default_error_code = "EXTERNAL_SERVICE_TIMEOUT"
