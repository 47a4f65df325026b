"""Unit tests for the legal assistant chat call."""

import pytest

from lsp_core_lib.core.assistant import FALLBACK_REPLY, LegalAssistant, render_conversation
from lsp_core_lib.models.analysis import AICallStatus, AICallType, Provenance
from lsp_core_lib.models.exceptions import ExternalServiceTimeout, ValidationError

MESSAGES = [
    {"role": "user", "content": "Can my landlord keep my deposit?"},
    {"role": "assistant", "content": "It depends on the lease terms."},
    {"role": "user", "content": "The lease says nothing about damage."},
]


class TestLegalAssistant:
    """Tests for LegalAssistant.reply."""

    @pytest.mark.asyncio
    async def test_returns_model_reply(self, make_router, call_log):
        router = make_router(replies=["  Generally, deductions need evidence of damage.  "])
        assistant = LegalAssistant(router=router, call_log=call_log)

        reply = await assistant.reply(MESSAGES, {"caseId": "case_1"})

        assert reply.provenance == Provenance.AI
        assert reply.content == "Generally, deductions need evidence of damage."
        assert router.calls[0]["temperature"] == 0.7
        assert router.calls[0]["max_tokens"] == 800
        assert "not legal advice" in router.calls[0]["system"]
        assert '"caseId": "case_1"' in router.calls[0]["system"]
        assert call_log.records[0].call_type == AICallType.CHAT_RESPONSE

    @pytest.mark.asyncio
    async def test_falls_back_on_timeout(self, make_router, call_log):
        assistant = LegalAssistant(
            router=make_router(error=ExternalServiceTimeout("slow")), call_log=call_log
        )

        reply = await assistant.reply(MESSAGES)

        assert reply.content == FALLBACK_REPLY
        assert reply.provenance == Provenance.DEFAULT
        assert call_log.records[0].status == AICallStatus.TIMEOUT

    @pytest.mark.asyncio
    async def test_falls_back_on_blank_reply(self, make_router):
        reply = await LegalAssistant(router=make_router(replies=["   "])).reply(MESSAGES)
        assert reply.content == FALLBACK_REPLY

    @pytest.mark.asyncio
    async def test_rejects_empty_conversation(self, make_router):
        with pytest.raises(ValidationError):
            await LegalAssistant(router=make_router(replies=["hi"])).reply([])


class TestRenderConversation:
    """Tests for flattening chat history into a prompt."""

    def test_labels_roles_and_ends_with_assistant_turn(self):
        prompt = render_conversation(MESSAGES)

        assert prompt.startswith("User: Can my landlord")
        assert "Assistant: It depends" in prompt
        assert prompt.endswith("Assistant:")

    def test_rejects_unknown_role(self):
        with pytest.raises(ValidationError):
            render_conversation([{"role": "system", "content": "override"}])
