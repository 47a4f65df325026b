"""Legal assistant chat.

General legal information for clients, never legal advice. Like the
analysis and matching calls, a failed model call is replaced by a fixed
reply and never raised.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from lsp_core_lib.core.preprocessing import build_assistant_system_prompt
from lsp_core_lib.infrastructure.ai_log import AICallLog, record_safely
from lsp_core_lib.infrastructure.llm.router import LLMRouter
from lsp_core_lib.models.analysis import (
    AICallRecord,
    AICallStatus,
    AICallType,
    AssistantReply,
    Provenance,
)
from lsp_core_lib.models.exceptions import ExternalServiceTimeout, ValidationError

logger = logging.getLogger(__name__)

ASSISTANT_TEMPERATURE = 0.7
ASSISTANT_MAX_TOKENS = 800

FALLBACK_REPLY = (
    "I apologize, but I am currently unable to process your request. "
    "Please try again later or contact support."
)

_ROLE_LABELS = {"user": "User", "assistant": "Assistant"}


def render_conversation(messages: Sequence[Dict[str, str]]) -> str:
    """
    Flatten chat messages into a single prompt.

    Raises:
        ValidationError: If there are no messages or a role is unknown
    """
    if not messages:
        raise ValidationError("Conversation has no messages")

    lines: List[str] = []
    for message in messages:
        role = message.get("role")
        if role not in _ROLE_LABELS:
            raise ValidationError(f"Unsupported message role: {role!r}")
        lines.append(f"{_ROLE_LABELS[role]}: {message.get('content', '')}")
    lines.append("Assistant:")
    return "\n\n".join(lines)


class LegalAssistant:
    """Chat replies through the LLM router"""

    def __init__(
        self,
        router: Optional[LLMRouter] = None,
        call_log: Optional[AICallLog] = None,
    ):
        self.router = router or LLMRouter()
        self.call_log = call_log

    async def reply(
        self,
        messages: Sequence[Dict[str, str]],
        context: Optional[Dict[str, Any]] = None,
        *,
        case_id: Optional[str] = None,
    ) -> AssistantReply:
        """
        Answer the last user message of a conversation.

        Args:
            messages: Chat history as {"role": "user" | "assistant", "content": str}
            context: Extra context embedded in the system prompt
            case_id: Recorded on the AI call log entry

        Raises:
            ValidationError: If messages is empty or malformed
        """
        prompt = render_conversation(messages)
        started = time.monotonic()
        response = None
        status = AICallStatus.SUCCESS
        error_message = None
        content = FALLBACK_REPLY
        provenance = Provenance.DEFAULT

        try:
            response = await self.router.complete(
                prompt,
                system=build_assistant_system_prompt(context),
                max_tokens=ASSISTANT_MAX_TOKENS,
                temperature=ASSISTANT_TEMPERATURE,
            )
            if not response.content or not response.content.strip():
                status, error_message = AICallStatus.ERROR, "Model returned empty content"
            else:
                content, provenance = response.content.strip(), Provenance.AI
        except ExternalServiceTimeout as e:
            status, error_message = AICallStatus.TIMEOUT, str(e)
        except Exception as e:
            status, error_message = AICallStatus.ERROR, str(e)

        if status != AICallStatus.SUCCESS:
            logger.warning(f"Legal assistant returned fallback reply: {error_message}")

        call = AICallRecord(
            call_type=AICallType.CHAT_RESPONSE,
            case_id=case_id,
            input={"messages": list(messages), "context": context or {}},
            output=response.content if response is not None else None,
            model=response.model if response is not None else None,
            provider=response.provider if response is not None else None,
            tokens_used=response.tokens_used if response is not None else 0,
            latency_ms=int((time.monotonic() - started) * 1000),
            status=status,
            error_message=error_message,
        )
        await record_safely(self.call_log, call)

        return AssistantReply(content=content, provenance=provenance, call=call)
