# connection_bot/transport/telegram_dispatch.py
"""
Shared per-update processing for Telegram polling and webhook modes.

One inbound message is handled to completion: acknowledge the button
press (if any), run it through the ConversationService, send the reply.
Send failures are logged and counted, never raised, so one bad chat
cannot stop the update loop.
"""
from __future__ import annotations

from connection_bot.core.engine.domain import InboundMessage
from connection_bot.core.engine.use_cases import ConversationService
from connection_bot.infra.logging_config import get_logger, LogContext
from connection_bot.infra.metrics import inc_counter
from connection_bot.transport.telegram_sender import (
    TelegramSendError,
    answer_callback_query,
    send_reply,
)

logger = get_logger(__name__)


async def handle_telegram_message(
    service: ConversationService,
    message: InboundMessage,
    token: str | None = None,
) -> bool:
    """
    Process one inbound Telegram message and send the reply.

    Returns True if a reply was sent.
    """
    log_ctx = LogContext(logger, chat_id=message.chat_id)

    if message.callback_id:
        try:
            await answer_callback_query(message.callback_id, token=token)
        except TelegramSendError as err:
            log_ctx.warning(f"Could not answer callback query: {err}")

    reply = await service.process_inbound_message(message)
    if reply is None:
        return False

    try:
        await send_reply(message.chat_id, reply, token=token)
    except TelegramSendError as err:
        log_ctx.error(f"Telegram outbound send failed: {err}")
        inc_counter("outbound_messages_total", provider="telegram", status="failed")
        return False

    inc_counter("outbound_messages_total", provider="telegram", status="sent")
    return True
