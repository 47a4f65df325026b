"""Case analysis client.

Asks the external model to classify a case and turns its reply into an
AIAnalysis. Any failure (provider error, timeout, non-JSON text, schema
mismatch) yields the deterministic default analysis instead: analyze()
never raises.
"""

import logging
import time
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from lsp_core_lib.core.preprocessing import (
    ANALYSIS_SYSTEM_PROMPT,
    build_analysis_prompt,
    parse_json_reply,
)
from lsp_core_lib.infrastructure.ai_log import AICallLog, record_safely
from lsp_core_lib.infrastructure.llm.router import LLMRouter
from lsp_core_lib.models.analysis import (
    AIAnalysis,
    AICallRecord,
    AICallStatus,
    AICallType,
    AnalysisOutcome,
    Provenance,
    default_analysis,
)
from lsp_core_lib.models.exceptions import (
    ExternalServiceError,
    ExternalServiceTimeout,
    MalformedAIResponse,
)

logger = logging.getLogger(__name__)

ANALYSIS_TEMPERATURE = 0.3
ANALYSIS_MAX_TOKENS = 1000


class AnalysisClient:
    """Classifies cases through the LLM router"""

    def __init__(
        self,
        router: Optional[LLMRouter] = None,
        call_log: Optional[AICallLog] = None,
    ):
        self.router = router or LLMRouter()
        self.call_log = call_log

    async def analyze(
        self,
        title: str,
        description: str,
        category: Optional[str] = None,
        *,
        case_id: Optional[str] = None,
    ) -> AnalysisOutcome:
        """
        Classify one case.

        Args:
            title: Case title
            description: Case description (truncated for the prompt)
            category: Optional client-chosen category
            case_id: Recorded on the AI call log entry

        Returns:
            AnalysisOutcome with AI provenance, or the default analysis with
            DEFAULT provenance when the reply cannot be used
        """
        prompt = build_analysis_prompt(title, description, category)
        started = time.monotonic()
        response = None
        status = AICallStatus.SUCCESS
        error_message = None

        try:
            response = await self.router.complete(
                prompt,
                system=ANALYSIS_SYSTEM_PROMPT,
                max_tokens=ANALYSIS_MAX_TOKENS,
                temperature=ANALYSIS_TEMPERATURE,
            )
            analysis = AIAnalysis.model_validate(parse_json_reply(response.content))
            provenance = Provenance.AI
        except ExternalServiceTimeout as e:
            status, error_message = AICallStatus.TIMEOUT, str(e)
        except (ExternalServiceError, MalformedAIResponse) as e:
            status, error_message = AICallStatus.ERROR, str(e)
        except PydanticValidationError as e:
            status = AICallStatus.ERROR
            error_message = f"Analysis reply failed validation: {e.error_count()} errors"
        except Exception as e:
            logger.error(f"Unexpected error during case analysis: {e}")
            status, error_message = AICallStatus.ERROR, str(e)

        if status != AICallStatus.SUCCESS:
            logger.warning(
                f"Case analysis fell back to default assessment (case={case_id}): {error_message}"
            )
            analysis = default_analysis(category)
            provenance = Provenance.DEFAULT

        call = AICallRecord(
            call_type=AICallType.CASE_ANALYSIS,
            case_id=case_id,
            input={"title": title, "description": description, "category": category},
            output=response.content if response is not None else None,
            model=response.model if response is not None else None,
            provider=response.provider if response is not None else None,
            tokens_used=response.tokens_used if response is not None else 0,
            latency_ms=int((time.monotonic() - started) * 1000),
            status=status,
            error_message=error_message,
        )
        await record_safely(self.call_log, call)

        return AnalysisOutcome(analysis=analysis, provenance=provenance, call=call)
