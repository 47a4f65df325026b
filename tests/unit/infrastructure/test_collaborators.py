"""Unit tests for the in-memory collaborators and the AI call log."""

import logging

import pytest

from lsp_core_lib.infrastructure.ai_log import (
    AICallLog,
    InMemoryAICallLog,
    LoggingAICallLog,
    record_safely,
)
from lsp_core_lib.infrastructure.notifications import (
    InMemoryNotifier,
    Notification,
    NotificationKind,
    Notifier,
)
from lsp_core_lib.infrastructure.persistence import (
    CaseRepository,
    InMemoryCaseNumberSequence,
    InMemoryCaseRepository,
)
from lsp_core_lib.models.analysis import AICallRecord, AICallStatus, AICallType
from lsp_core_lib.models.exceptions import (
    CaseNotFoundError,
    ConcurrentModificationError,
    ValidationError,
)


class TestInMemoryCaseRepository:
    """Tests for the dict-backed repository."""

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryCaseRepository(), CaseRepository)

    @pytest.mark.asyncio
    async def test_create_and_get(self, submitted_case):
        repository = InMemoryCaseRepository()
        await repository.create(submitted_case)

        assert await repository.get(submitted_case.id) == submitted_case
        assert await repository.get("case_missing") is None

    @pytest.mark.asyncio
    async def test_duplicate_case_number_rejected(self, submitted_case, state_machine):
        repository = InMemoryCaseRepository()
        await repository.create(submitted_case)
        twin = state_machine.submit(
            client_id="client_2",
            title="Other",
            description="",
            case_number=submitted_case.case_number,
        )

        with pytest.raises(ValidationError):
            await repository.create(twin)

    @pytest.mark.asyncio
    async def test_update_checks_version(self, submitted_case, state_machine):
        repository = InMemoryCaseRepository()
        await repository.create(submitted_case)
        analyzing = state_machine.begin_analysis(submitted_case)

        await repository.update(analyzing, expected_version=1)

        with pytest.raises(ConcurrentModificationError) as exc_info:
            await repository.update(analyzing, expected_version=1)
        assert exc_info.value.context["actual_version"] == 2

    @pytest.mark.asyncio
    async def test_update_unknown_case(self, submitted_case):
        with pytest.raises(CaseNotFoundError):
            await InMemoryCaseRepository().update(submitted_case, expected_version=1)

    @pytest.mark.asyncio
    async def test_update_cannot_change_case_number(self, submitted_case, state_machine):
        repository = InMemoryCaseRepository()
        await repository.create(submitted_case)
        renumbered = state_machine.begin_analysis(submitted_case).model_copy(
            update={"case_number": "LSP-2024-999999"}
        )

        with pytest.raises(ValidationError):
            await repository.update(renumbered, expected_version=1)

    @pytest.mark.asyncio
    async def test_lists_only_eligible_advocates(self, repository):
        eligible = await repository.list_eligible_advocates()

        assert [a.id for a in eligible] == ["adv_1", "adv_2", "adv_3"]
        assert (await repository.get_advocate("adv_pending")) is not None


class TestInMemoryCaseNumberSequence:
    """Tests for the per-year counter."""

    @pytest.mark.asyncio
    async def test_counts_per_year(self):
        sequence = InMemoryCaseNumberSequence()

        assert [await sequence.next_value(2024) for _ in range(3)] == [1, 2, 3]
        assert await sequence.next_value(2025) == 1


class TestNotifier:
    """Tests for the in-memory notifier."""

    @pytest.mark.asyncio
    async def test_collects_notifications(self):
        notifier = InMemoryNotifier()
        note = Notification(
            kind=NotificationKind.CASE_RESOLVED,
            case_id="case_1",
            recipient_id="client_1",
            title="Case Resolved",
            message="Done",
        )

        await notifier.notify(note)

        assert isinstance(notifier, Notifier)
        assert notifier.of_kind(NotificationKind.CASE_RESOLVED) == [note]
        assert note.model_dump(by_alias=True)["recipientId"] == "client_1"


def _record(status=AICallStatus.SUCCESS) -> AICallRecord:
    return AICallRecord(
        call_type=AICallType.CASE_ANALYSIS,
        case_id="case_1",
        input={"title": "t"},
        status=status,
        error_message=None if status == AICallStatus.SUCCESS else "boom",
    )


class TestAICallLog:
    """Tests for the AI call log sinks."""

    @pytest.mark.asyncio
    async def test_in_memory_filters(self):
        log = InMemoryAICallLog()
        await log.record(_record())

        assert isinstance(log, AICallLog)
        assert len(log.by_case("case_1")) == 1
        assert log.by_type(AICallType.ADVOCATE_MATCHING) == []

    @pytest.mark.asyncio
    async def test_logging_sink_levels(self, caplog):
        log = LoggingAICallLog()
        with caplog.at_level(logging.INFO, logger="lsp_core_lib.infrastructure.ai_log"):
            await log.record(_record())
            await log.record(_record(AICallStatus.TIMEOUT))

        levels = [r.levelno for r in caplog.records]
        assert levels == [logging.INFO, logging.WARNING]
        assert "error=boom" in caplog.records[1].getMessage()

    @pytest.mark.asyncio
    async def test_record_safely_swallows_failures(self, caplog):
        class BrokenLog:
            async def record(self, call):
                raise RuntimeError("disk full")

        with caplog.at_level(logging.WARNING):
            await record_safely(BrokenLog(), _record())

        assert "disk full" in caplog.text

    @pytest.mark.asyncio
    async def test_record_safely_without_log(self):
        await record_safely(None, _record())
