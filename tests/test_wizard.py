# tests/test_wizard.py
"""Tests for the linear wizard engine and the assembled connection report bot"""
from __future__ import annotations

import asyncio

import pytest

from connection_bot.core.engine.domain import (
    Invalid,
    InvalidWithSuggestions,
    QuestionKind,
    QuestionSpec,
    Reply,
    StructuredAddress,
    Valid,
)
from connection_bot.core.engine.wizard import WizardEngine, WizardTexts
from connection_bot.core.bots.connection_report import build_wizard
from connection_bot.core.bots.connection_report.texts import get_text
from connection_bot.infra.memory_session_store import InMemorySessionStore

from conftest import FakeGeocoder, make_geocode_result


TEXTS = WizardTexts(
    suggestions_intro="Did you mean:",
    generic_error="Error",
    no_session="Send /start",
    already_done="Done already",
)


def _engine(questions, store=None):
    return WizardEngine(
        questions=questions,
        sessions=store if store is not None else InMemorySessionStore(),
        render_report=lambda answers: "REPORT " + ",".join(f"{k}={v}" for k, v in answers.items()),
        texts=TEXTS,
    )


# ============================================================================
# Generic engine behaviour
# ============================================================================

class TestWizardEngineConstruction:

    def test_empty_questions_rejected(self):
        with pytest.raises(ValueError):
            _engine(())

    def test_duplicate_keys_rejected(self):
        with pytest.raises(ValueError):
            _engine((QuestionSpec("a", "A?"), QuestionSpec("a", "Again?")))


class TestWizardEngine:

    def setup_method(self):
        self.store = InMemorySessionStore()
        self.questions = (
            QuestionSpec("name", "Name?"),
            QuestionSpec("age", "Age?", validator=lambda t: Valid() if t.isdigit() else Invalid("Digits only")),
            QuestionSpec(
                "color", "Color?",
                kind=QuestionKind.SINGLE_CHOICE,
                choices=(("Red", "red"), ("Blue", "blue")),
            ),
        )
        self.engine = _engine(self.questions, self.store)

    @pytest.mark.asyncio
    async def test_start_prompts_first_question(self):
        reply = await self.engine.start("c1")

        assert reply == Reply("Name?")
        session = await self.store.get("c1")
        assert session.current_step == 0
        assert session.answers == {}

    @pytest.mark.asyncio
    async def test_start_discards_previous_session(self):
        await self.engine.start("c1")
        await self.engine.submit_text("c1", "Dana")

        await self.engine.start("c1")

        session = await self.store.get("c1")
        assert session.current_step == 0
        assert session.answers == {}

    @pytest.mark.asyncio
    async def test_text_without_session(self):
        reply = await self.engine.submit_text("nobody", "hello")
        assert reply == Reply("Send /start")
        assert await self.store.get("nobody") is None

    @pytest.mark.asyncio
    async def test_choice_without_session(self):
        reply = await self.engine.submit_choice("nobody", "red")
        assert reply == Reply("Send /start")

    @pytest.mark.asyncio
    async def test_unstarted_chats_register_no_locks(self):
        for i in range(50):
            await self.engine.submit_text(f"stray-{i}", "hello")
            await self.engine.submit_choice(f"stray-{i}", "red")

        assert self.engine._locks == {}

    @pytest.mark.asyncio
    async def test_stored_session_without_lock_is_continued(self):
        # Session written by an earlier engine over the same store
        await _engine(self.questions, self.store).start("c1")

        reply = await self.engine.submit_text("c1", "Dana")

        assert reply == Reply("Age?")
        assert "c1" in self.engine._locks

    @pytest.mark.asyncio
    async def test_invalid_answer_keeps_step(self):
        await self.engine.start("c1")
        await self.engine.submit_text("c1", "Dana")

        reply = await self.engine.submit_text("c1", "twelve")

        assert reply == Reply("Digits only")
        session = await self.store.get("c1")
        assert session.current_step == 1
        assert "age" not in session.answers

    @pytest.mark.asyncio
    async def test_invalid_without_message_uses_generic_error(self):
        engine = _engine((QuestionSpec("x", "X?", validator=lambda t: Invalid()),))
        await engine.start("c1")

        reply = await engine.submit_text("c1", "anything")

        assert reply == Reply("Error")

    @pytest.mark.asyncio
    async def test_choice_question_prompts_with_options(self):
        await self.engine.start("c1")
        await self.engine.submit_text("c1", "Dana")

        reply = await self.engine.submit_text("c1", "30")

        assert reply == Reply("Color?", options=(("Red", "red"), ("Blue", "blue")))

    @pytest.mark.asyncio
    async def test_text_on_choice_question_reprompts(self):
        await self.engine.start("c1")
        await self.engine.submit_text("c1", "Dana")
        await self.engine.submit_text("c1", "30")

        reply = await self.engine.submit_text("c1", "green")

        assert reply.has_options()
        assert (await self.store.get("c1")).current_step == 2

    @pytest.mark.asyncio
    async def test_completes_with_report(self):
        await self.engine.start("c1")
        await self.engine.submit_text("c1", "Dana")
        await self.engine.submit_text("c1", "30")

        reply = await self.engine.submit_choice("c1", "blue")

        assert reply == Reply("REPORT name=Dana,age=30,color=blue")
        assert (await self.store.get("c1")).current_step == len(self.questions)

    @pytest.mark.asyncio
    async def test_terminal_session_ignores_further_input(self):
        await self.engine.start("c1")
        await self.engine.submit_text("c1", "Dana")
        await self.engine.submit_text("c1", "30")
        await self.engine.submit_choice("c1", "blue")

        assert await self.engine.submit_text("c1", "more") == Reply("Done already")
        assert await self.engine.submit_choice("c1", "red") == Reply("Done already")
        assert (await self.store.get("c1")).current_step == len(self.questions)

    @pytest.mark.asyncio
    async def test_sessions_are_independent(self):
        await self.engine.start("c1")
        await self.engine.start("c2")
        await self.engine.submit_text("c1", "Dana")

        assert (await self.store.get("c1")).current_step == 1
        assert (await self.store.get("c2")).current_step == 0

    @pytest.mark.asyncio
    async def test_async_validator_value_replaces_text(self):
        async def upper(text):
            return Valid(text.upper())

        engine = _engine((QuestionSpec("x", "X?", validator=upper), QuestionSpec("y", "Y?")), self.store)
        await engine.start("c1")

        await engine.submit_text("c1", "abc")

        assert (await self.store.get("c1")).answers["x"] == "ABC"

    @pytest.mark.asyncio
    async def test_concurrent_events_for_one_chat_are_serialized(self):
        async def slow_valid(text):
            await asyncio.sleep(0.01)
            return Valid()

        questions = (
            QuestionSpec("a", "A?", validator=slow_valid),
            QuestionSpec("b", "B?", validator=slow_valid),
            QuestionSpec("c", "C?"),
        )
        engine = _engine(questions, self.store)
        await engine.start("c1")

        await asyncio.gather(
            engine.submit_text("c1", "first"),
            engine.submit_text("c1", "second"),
        )

        session = await self.store.get("c1")
        assert session.current_step == 2
        assert session.answers == {"a": "first", "b": "second"}


class TestWizardSuggestions:

    def setup_method(self):
        self.store = InMemorySessionStore()
        self.suggestions = ("הרצל 10, חיפה", "הרצל 12, חיפה")
        questions = (
            QuestionSpec("address", "Address?", validator=lambda t: InvalidWithSuggestions(self.suggestions)),
            QuestionSpec("next", "Next?"),
        )
        self.engine = _engine(questions, self.store)

    @pytest.mark.asyncio
    async def test_suggestions_offered_as_options(self):
        await self.engine.start("c1")

        reply = await self.engine.submit_text("c1", "הרצל 11 חיפה")

        assert reply.text == "Did you mean:"
        assert reply.options == tuple((s, s) for s in self.suggestions)
        session = await self.store.get("c1")
        assert session.current_step == 0
        assert session.pending_suggestions == list(self.suggestions)

    @pytest.mark.asyncio
    async def test_selecting_suggestion_advances_once(self):
        await self.engine.start("c1")
        await self.engine.submit_text("c1", "הרצל 11 חיפה")

        reply = await self.engine.submit_choice("c1", "הרצל 12, חיפה")

        assert reply == Reply("Next?")
        session = await self.store.get("c1")
        assert session.current_step == 1
        assert session.pending_suggestions is None
        assert session.answers["address"] == StructuredAddress(street="הרצל 12", city="חיפה")

    @pytest.mark.asyncio
    async def test_suggestion_without_city_still_advances(self):
        questions = (
            QuestionSpec("address", "Address?", validator=lambda t: InvalidWithSuggestions(("חיפה",))),
            QuestionSpec("next", "Next?"),
        )
        engine = _engine(questions, self.store)
        await engine.start("c1")
        await engine.submit_text("c1", "חיפה")

        await engine.submit_choice("c1", "חיפה")

        session = await self.store.get("c1")
        assert session.current_step == 1
        assert "address" not in session.answers

    @pytest.mark.asyncio
    async def test_unknown_choice_stored_verbatim(self):
        await self.engine.start("c1")
        await self.engine.submit_text("c1", "הרצל 11 חיפה")

        await self.engine.submit_choice("c1", "something else")

        session = await self.store.get("c1")
        assert session.current_step == 1
        assert session.answers["address"] == "something else"


# ============================================================================
# Connection report bot end to end
# ============================================================================

class TestConnectionReportWizard:

    def setup_method(self):
        self.store = InMemorySessionStore()
        self.herzl = make_geocode_result("הרצל 10, חיפה, ישראל", "הרצל", "10", "חיפה")
        self.geocoder = FakeGeocoder([self.herzl])
        self.wizard = build_wizard(geocoder=self.geocoder, sessions=self.store)

    async def _answer_until_address(self, chat_id):
        await self.wizard.start(chat_id)
        await self.wizard.submit_text(chat_id, "12345")
        await self.wizard.submit_text(chat_id, "111+222")
        await self.wizard.submit_text(chat_id, "Acme")

    @pytest.mark.asyncio
    async def test_start_asks_acc_number(self, chat_id):
        reply = await self.wizard.start(chat_id)
        assert reply == Reply(get_text("q_acc_number"))

    @pytest.mark.asyncio
    async def test_acc_number_accepted(self, chat_id):
        await self.wizard.start(chat_id)

        reply = await self.wizard.submit_text(chat_id, "12345")

        assert reply == Reply(get_text("q_order_number"))
        assert (await self.store.get(chat_id)).answers["acc_number"] == "12345"

    @pytest.mark.asyncio
    async def test_short_acc_number_rejected(self, chat_id):
        await self.wizard.start(chat_id)

        reply = await self.wizard.submit_text(chat_id, "1234")

        assert reply == Reply(get_text("err_acc_number"))
        assert (await self.store.get(chat_id)).current_step == 0

    @pytest.mark.asyncio
    async def test_non_hebrew_address_skips_geocoder(self, chat_id):
        await self._answer_until_address(chat_id)

        reply = await self.wizard.submit_text(chat_id, "Herzl 10 Haifa")

        assert reply == Reply(get_text("err_address_script"))
        assert self.geocoder.calls == []

    @pytest.mark.asyncio
    async def test_full_conversation_emits_report(self, chat_id):
        await self._answer_until_address(chat_id)

        assert await self.wizard.submit_text(chat_id, "הרצל 10 חיפה") == Reply(get_text("q_ports"))
        assert await self.wizard.submit_text(chat_id, "1/1/1") == Reply(get_text("q_pop"))

        panel_prompt = await self.wizard.submit_text(chat_id, "POP-7")
        assert panel_prompt.text == get_text("q_panel_type")
        assert [value for _, value in panel_prompt.options] == ["existing", "new"]

        assert await self.wizard.submit_choice(chat_id, "existing") == Reply(get_text("q_panel_ports"))
        assert await self.wizard.submit_text(chat_id, "ge1") == Reply(get_text("q_distance"))

        report = await self.wizard.submit_text(chat_id, "120m")

        assert report.text == "\n".join([
            "חיבור לקוח עסקי",
            "ACC-12345",
            "111+222 Acme",
            "הרצל 10 חיפה",
            "פורטים: 1/1/1",
            "אתר מזין - POP-7",
            "פנל לקוחות קיים",
            "פורטים GE1",
            "מרחק 120 OTDR",
        ])
        assert await self.wizard.submit_text(chat_id, "again") == Reply(get_text("info_already_done"))

    @pytest.mark.asyncio
    async def test_address_suggestion_flow(self, chat_id):
        await self._answer_until_address(chat_id)

        reply = await self.wizard.submit_text(chat_id, "הרצל 11 חיפה")

        assert reply.text == get_text("q_address_suggestions")
        assert reply.options == (("הרצל 10, חיפה", "הרצל 10, חיפה"),)

        reply = await self.wizard.submit_choice(chat_id, "הרצל 10, חיפה")

        assert reply == Reply(get_text("q_ports"))
        session = await self.store.get(chat_id)
        assert session.current_step == 4
        assert session.pending_suggestions is None
        assert session.answers["address"] == StructuredAddress(street="הרצל 10", city="חיפה")

    @pytest.mark.asyncio
    async def test_valid_retype_clears_suggestions(self, chat_id):
        await self._answer_until_address(chat_id)
        await self.wizard.submit_text(chat_id, "הרצל 11 חיפה")

        await self.wizard.submit_text(chat_id, "הרצל 10 חיפה")

        session = await self.store.get(chat_id)
        assert session.pending_suggestions is None
        assert session.current_step == 4
