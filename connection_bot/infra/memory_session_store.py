# connection_bot/infra/memory_session_store.py
from __future__ import annotations

from typing import Optional

from connection_bot.core.engine.domain import Session
from connection_bot.infra.logging_config import get_logger

logger = get_logger(__name__)


class InMemorySessionStore:
    """
    Process-local session store keyed by chat id.

    Sessions live as long as the process; nothing survives a restart.
    Each WizardEngine owns one store instance, so two engines never share state.
    """

    def __init__(self):
        self._sessions: dict[str, Session] = {}

    async def get(self, chat_id: str) -> Optional[Session]:
        return self._sessions.get(chat_id)

    async def upsert(self, session: Session) -> None:
        self._sessions[session.chat_id] = session

    def __len__(self) -> int:
        return len(self._sessions)
