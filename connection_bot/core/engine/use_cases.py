# connection_bot/core/engine/use_cases.py
from __future__ import annotations

from typing import Optional

from connection_bot.core.engine.domain import InboundKind, InboundMessage, Reply
from connection_bot.core.engine.wizard import WizardEngine
from connection_bot.infra.logging_config import get_logger, LogContext
from connection_bot.infra.metrics import AppMetrics

logger = get_logger(__name__)


class ConversationService:
    """
    Application service / use-case layer.
    Routes normalized inbound events to the wizard: start -> text -> choice.

    Transport-agnostic: the Telegram poller and webhook both call
    ``process_inbound_message`` and send whatever Reply comes back.
    """

    def __init__(self, *, wizard: WizardEngine, provider: str = "telegram") -> None:
        self.wizard = wizard
        self.provider = provider

    async def process_inbound_message(self, message: InboundMessage) -> Optional[Reply]:
        """
        Process a normalized InboundMessage from any provider.

        Returns the reply to send, or None when the event carries nothing
        to act on (e.g. a choice event without payload).
        """
        AppMetrics.event_received(message.provider, message.kind.value)
        log_ctx = LogContext(logger, chat_id=message.chat_id)

        if message.kind == InboundKind.START:
            return await self.wizard.start(message.chat_id)

        if message.kind == InboundKind.CHOICE:
            if message.choice is None:
                log_ctx.warning("Choice event without payload, ignoring")
                return None
            return await self.wizard.submit_choice(message.chat_id, message.choice)

        if not message.has_text():
            log_ctx.debug("Text event without content, ignoring")
            return None

        return await self.wizard.submit_text(message.chat_id, message.text or "")
