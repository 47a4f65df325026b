"""AI call log collaborator.

Every analysis, matching and assistant call produces one AICallRecord. The
log is an audit sink: a failing log must never change the outcome of the
call it describes, so callers go through record_safely().
"""

import logging
from typing import List, Optional, Protocol, runtime_checkable

from lsp_core_lib.models.analysis import AICallRecord, AICallStatus, AICallType

logger = logging.getLogger(__name__)


@runtime_checkable
class AICallLog(Protocol):
    async def record(self, call: AICallRecord) -> None:
        ...


class InMemoryAICallLog:
    """Keeps records in a list, in arrival order"""

    def __init__(self):
        self.records: List[AICallRecord] = []

    async def record(self, call: AICallRecord) -> None:
        self.records.append(call)

    def by_type(self, call_type: AICallType) -> List[AICallRecord]:
        return [record for record in self.records if record.call_type == call_type]

    def by_case(self, case_id: str) -> List[AICallRecord]:
        return [record for record in self.records if record.case_id == case_id]


class LoggingAICallLog:
    """Writes one log line per call; failures at WARNING"""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    async def record(self, call: AICallRecord) -> None:
        message = (
            f"[AICall] type={call.call_type.value} case={call.case_id} "
            f"provider={call.provider} model={call.model} status={call.status.value} "
            f"latency={call.latency_ms}ms tokens={call.tokens_used}"
        )
        if call.status == AICallStatus.SUCCESS:
            self.log.info(message)
        else:
            self.log.warning(f"{message} error={call.error_message}")


async def record_safely(call_log: Optional[AICallLog], call: AICallRecord) -> None:
    """Hand a record to the log, logging and swallowing any failure"""
    if call_log is None:
        return
    try:
        await call_log.record(call)
    except Exception as e:
        logger.warning(f"AI call log failed for {call.call_type.value} call: {e}")
