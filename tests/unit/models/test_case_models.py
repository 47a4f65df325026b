"""Unit tests for case, advocate and timeline models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from lsp_core_lib.models import (
    AdvocateCandidate,
    AnalysisCompleted,
    CasePriority,
    CaseRecord,
    CaseStatus,
    CaseSubmitted,
    LSPCoreError,
    InvalidTransition,
    UrgencyLevel,
    VerificationStatus,
    default_analysis,
)
from lsp_core_lib.models.case import format_case_number

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _case(**overrides) -> CaseRecord:
    fields = {
        "client_id": "client_1",
        "case_number": "LSP-2024-000001",
        "title": "Tenancy deposit",
    }
    fields.update(overrides)
    return CaseRecord(**fields)


class TestCaseNumber:
    """Tests for case number formatting."""

    def test_zero_padded(self):
        assert format_case_number(2024, 42) == "LSP-2024-000042"
        assert format_case_number(2024, 999_999) == "LSP-2024-999999"

    @pytest.mark.parametrize("year,sequence", [(2024, 0), (2024, 1_000_000), (24, 1)])
    def test_out_of_range(self, year, sequence):
        with pytest.raises(ValueError):
            format_case_number(year, sequence)

    @pytest.mark.parametrize("number", ["LSP-24-000001", "ABC-2024-000001", "LSP-2024-1"])
    def test_record_rejects_malformed_number(self, number):
        with pytest.raises(PydanticValidationError):
            _case(case_number=number)


class TestCaseRecord:
    """Tests for record validation."""

    def test_defaults(self):
        case = _case()

        assert case.status == CaseStatus.SUBMITTED
        assert case.priority == CasePriority.NORMAL
        assert case.version == 1
        assert case.id.startswith("case_")
        assert case.latest_event is None

    def test_title_is_stripped(self):
        assert _case(title="  Deposit  ").title == "Deposit"

    def test_blank_title_rejected(self):
        with pytest.raises(PydanticValidationError):
            _case(title="   ")

    def test_records_are_frozen(self):
        with pytest.raises(PydanticValidationError):
            _case().status = CaseStatus.CLOSED

    def test_advocate_requires_assignment_time(self):
        with pytest.raises(PydanticValidationError):
            _case(advocate_id="adv_1")

    def test_timeline_must_be_ordered(self):
        events = (
            CaseSubmitted(description="Submitted", case_number="LSP-2024-000001", timestamp=T0),
            CaseSubmitted(
                description="Submitted", case_number="LSP-2024-000001", timestamp=T0 - timedelta(1)
            ),
        )
        with pytest.raises(PydanticValidationError):
            _case(timeline=events)

    def test_terminal_statuses(self):
        assert CaseStatus.CLOSED.is_terminal
        assert CaseStatus.WITHDRAWN.is_terminal
        assert not CaseStatus.RESOLVED.is_terminal
        assert CaseStatus.ON_HOLD.is_active


class TestTimelineSerialization:
    """The timeline union is discriminated on its event field."""

    def test_camel_case_json_round_trip(self):
        analysis_event = AnalysisCompleted(
            description="Analysis completed",
            urgency_level=UrgencyLevel.HIGH,
            risk_score=70,
            timestamp=T0 + timedelta(minutes=1),
        )
        submitted = CaseSubmitted(
            description="Submitted", case_number="LSP-2024-000001", timestamp=T0
        )
        case = _case(timeline=(submitted, analysis_event), ai_analysis=default_analysis("Housing"))

        payload = case.model_dump(mode="json", by_alias=True)
        restored = CaseRecord.model_validate(payload)

        assert payload["caseNumber"] == "LSP-2024-000001"
        assert payload["timeline"][1]["riskScore"] == 70
        assert isinstance(restored.timeline[1], AnalysisCompleted)
        assert restored.timeline[1].urgency_level == UrgencyLevel.HIGH
        assert restored.ai_analysis.case_type == "Housing"

    def test_unknown_event_rejected(self):
        payload = _case().model_dump(mode="json", by_alias=True)
        payload["timeline"] = [{"event": "case_teleported", "description": "?"}]

        with pytest.raises(PydanticValidationError):
            CaseRecord.model_validate(payload)


class TestAdvocateCandidate:
    """Tests for eligibility and the prompt projection."""

    @pytest.mark.parametrize(
        "accepting,status,eligible",
        [
            (True, VerificationStatus.VERIFIED, True),
            (False, VerificationStatus.VERIFIED, False),
            (True, VerificationStatus.PENDING, False),
            (True, VerificationStatus.REJECTED, False),
        ],
    )
    def test_eligibility(self, accepting, status, eligible):
        advocate = AdvocateCandidate(
            id="adv_1", is_accepting_cases=accepting, verification_status=status
        )
        assert advocate.is_eligible is eligible

    def test_prompt_projection(self):
        advocate = AdvocateCandidate(
            id="adv_1",
            name="A. Okafor",
            specialization={"Tax Law", "Corporate Law"},
            experience_years=7,
            success_rate=81.5,
            rating=4.2,
        )

        assert advocate.to_prompt_dict() == {
            "id": "adv_1",
            "name": "A. Okafor",
            "specialization": ["Corporate Law", "Tax Law"],
            "experience": 7,
            "successRate": 81.5,
            "rating": 4.2,
        }

    def test_rating_bounds(self):
        with pytest.raises(PydanticValidationError):
            AdvocateCandidate(id="adv_1", rating=5.5)


class TestPriorityMapping:
    """Urgency maps onto case priority."""

    @pytest.mark.parametrize(
        "urgency,priority",
        [
            (UrgencyLevel.LOW, CasePriority.LOW),
            (UrgencyLevel.MEDIUM, CasePriority.NORMAL),
            (UrgencyLevel.HIGH, CasePriority.HIGH),
            (UrgencyLevel.CRITICAL, CasePriority.URGENT),
        ],
    )
    def test_from_urgency(self, urgency, priority):
        assert CasePriority.from_urgency(urgency) == priority


class TestErrors:
    """Tests for the error hierarchy."""

    def test_to_dict(self):
        error = InvalidTransition("case_1", "hire", "closed")
        payload = error.to_dict()

        assert isinstance(error, LSPCoreError)
        assert payload["error_code"] == "INVALID_TRANSITION"
        assert payload["context"]["status"] == "closed"
