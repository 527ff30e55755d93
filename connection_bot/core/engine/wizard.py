# connection_bot/core/engine/wizard.py
"""
Linear wizard engine.

Walks a fixed tuple of QuestionSpecs one step at a time.  Each session
is an integer step pointer ``0..N`` plus collected answers; step ``N``
is terminal (report emitted, nothing else accepted).

There is no back-navigation and no failure state: invalid input simply
re-prompts at the same step.
"""
from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from connection_bot.core.engine.domain import (
    Invalid,
    InvalidWithSuggestions,
    QuestionKind,
    QuestionSpec,
    Reply,
    Session,
    StructuredAddress,
    Valid,
    ValidationResult,
)
from connection_bot.core.engine.ports import AsyncSessionStore
from connection_bot.infra.logging_config import get_logger, LogContext
from connection_bot.infra.metrics import AppMetrics

logger = get_logger(__name__)

# Suggestions are provider-formatted "street building, city[, ...]"
SUGGESTION_DELIMITER = ","


@dataclass(frozen=True)
class WizardTexts:
    """Engine-level messages that don't belong to any single question."""
    suggestions_intro: str
    generic_error: str
    no_session: str
    already_done: str


class WizardEngine:
    """
    Drives sessions through the question sequence.

    Every operation on a started chat takes the lock for its chat id, so
    events for one chat are applied strictly one after another even when
    the transport delivers them concurrently.  The validator await is the
    only suspension point while the lock is held.  Chats that never sent
    /start are answered without registering a lock.
    """

    def __init__(
        self,
        *,
        questions: Sequence[QuestionSpec],
        sessions: AsyncSessionStore,
        render_report: Callable[[Mapping[str, Any]], str],
        texts: WizardTexts,
    ) -> None:
        if not questions:
            raise ValueError("WizardEngine needs at least one question")
        keys = [q.key for q in questions]
        if len(set(keys)) != len(keys):
            raise ValueError(f"Duplicate question keys: {keys}")

        self.questions = tuple(questions)
        self.sessions = sessions
        self.render_report = render_report
        self.texts = texts
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, chat_id: str) -> asyncio.Lock:
        lock = self._locks.get(chat_id)
        if lock is None:
            lock = self._locks[chat_id] = asyncio.Lock()
        return lock

    async def _never_started(self, chat_id: str) -> bool:
        """No lock and no stored session: nothing can be in flight for this chat."""
        return chat_id not in self._locks and await self.sessions.get(chat_id) is None

    def _current_question(self, session: Session) -> QuestionSpec | None:
        if session.current_step < len(self.questions):
            return self.questions[session.current_step]
        return None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def start(self, chat_id: str) -> Reply:
        """Create a fresh session at step 0 (discarding any previous one)."""
        async with self._lock_for(chat_id):
            session = Session(chat_id=chat_id)
            await self.sessions.upsert(session)
            AppMetrics.session_started()
            LogContext(logger, chat_id=chat_id, step=0).info("Session started")
            return self._prompt(self.questions[0])

    async def submit_text(self, chat_id: str, text: str) -> Reply:
        """Answer the current FREE_TEXT question."""
        if await self._never_started(chat_id):
            return Reply(self.texts.no_session)

        async with self._lock_for(chat_id):
            session = await self.sessions.get(chat_id)
            if session is None:
                return Reply(self.texts.no_session)

            question = self._current_question(session)
            if question is None:
                return Reply(self.texts.already_done)

            if question.kind != QuestionKind.FREE_TEXT:
                # Buttons expected: show them again
                return self._prompt(question)

            log_ctx = LogContext(logger, chat_id=chat_id, step=session.current_step)

            value: Any = text
            if question.validator is not None:
                result = await self._run_validator(question, text)

                if isinstance(result, InvalidWithSuggestions) and result.suggestions:
                    session.pending_suggestions = list(result.suggestions)
                    await self.sessions.upsert(session)
                    AppMetrics.validation_failed(question.key, "suggestions")
                    log_ctx.info(
                        f"Answer for '{question.key}' needs confirmation: "
                        f"{len(result.suggestions)} suggestion(s)"
                    )
                    return Reply(
                        self.texts.suggestions_intro,
                        options=tuple((s, s) for s in result.suggestions),
                    )

                if not isinstance(result, Valid):
                    error = (result.error if isinstance(result, Invalid) else None) or self.texts.generic_error
                    AppMetrics.validation_failed(question.key, "invalid")
                    log_ctx.info(f"Answer for '{question.key}' rejected")
                    return Reply(error)

                if result.value is not None:
                    value = result.value

            session.answers[question.key] = value
            session.pending_suggestions = None
            return await self._advance(session)

    async def submit_choice(self, chat_id: str, value: str) -> Reply:
        """Apply a button press: a pending address suggestion or a SINGLE_CHOICE value."""
        if await self._never_started(chat_id):
            return Reply(self.texts.no_session)

        async with self._lock_for(chat_id):
            session = await self.sessions.get(chat_id)
            if session is None:
                return Reply(self.texts.no_session)

            question = self._current_question(session)
            if question is None:
                return Reply(self.texts.already_done)

            if session.has_suggestion(value):
                # Assumes "street, city" shape; anything else leaves the answer unset
                parts = value.split(SUGGESTION_DELIMITER)
                if len(parts) >= 2:
                    session.answers[question.key] = StructuredAddress(
                        street=parts[0].strip(),
                        city=parts[1].strip(),
                    )
                session.pending_suggestions = None
                return await self._advance(session)

            session.answers[question.key] = value
            return await self._advance(session)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    async def _run_validator(question: QuestionSpec, text: str) -> ValidationResult:
        result = question.validator(text)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _advance(self, session: Session) -> Reply:
        """Move one step forward, then prompt the next question or emit the report."""
        session.current_step += 1
        await self.sessions.upsert(session)

        question = self._current_question(session)
        if question is not None:
            return self._prompt(question)

        LogContext(logger, chat_id=session.chat_id, step=session.current_step).info(
            "All answers collected, emitting report"
        )
        AppMetrics.report_emitted()
        return Reply(self.render_report(session.answers))

    @staticmethod
    def _prompt(question: QuestionSpec) -> Reply:
        if question.kind == QuestionKind.SINGLE_CHOICE:
            return Reply(question.prompt, options=question.choices)
        return Reply(question.prompt)
