# connection_bot/transport/telegram_webhook.py
"""
Webhook delivery mode: Telegram POSTs each Update to /webhooks/telegram.

When ``telegram_webhook_secret`` is set, the secret registered through
setWebhook must come back in X-Telegram-Bot-Api-Secret-Token.  Anything
that passes the check is answered with 200, even an unreadable body,
because any other status makes Telegram redeliver the same update.
"""
from __future__ import annotations

import hmac

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from connection_bot.config import settings
from connection_bot.core.engine.use_cases import ConversationService
from connection_bot.transport.adapters import TelegramAdapter
from connection_bot.transport.telegram_dispatch import handle_telegram_message
from connection_bot.infra.logging_config import get_logger, LogContext
from connection_bot.infra.metrics import AppMetrics, inc_counter

logger = get_logger(__name__)

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

_ACK = {"ok": True}


def _verify_secret_token(request: Request) -> bool:
    """True when no secret is configured or the header carries it."""
    expected = settings.telegram_webhook_secret
    if not expected:
        return True

    received = request.headers.get(SECRET_HEADER, "")
    if not received:
        logger.warning(f"Telegram webhook: {SECRET_HEADER} header absent")
        return False
    return hmac.compare_digest(received, expected)


async def telegram_webhook_handler(request: Request) -> JSONResponse:
    """
    Process one Update inline, then acknowledge it.

    Concurrent deliveries for one chat are serialized by the wizard's
    per-chat lock.
    """
    if not _verify_secret_token(request):
        AppMetrics.webhook_validation_failed("telegram")
        raise HTTPException(status_code=403, detail="Invalid secret token")

    try:
        update = await request.json()
    except ValueError:
        update = None

    if not isinstance(update, dict):
        logger.warning("Telegram webhook: body is not a JSON object, acknowledging anyway")
        inc_counter("telegram_webhook_malformed_payload")
        return JSONResponse(_ACK)

    service: ConversationService = request.app.state.service
    for message in TelegramAdapter().adapt_update(update):
        inc_counter("inbound_messages_total", provider="telegram")
        try:
            await handle_telegram_message(service, message)
        except Exception:
            LogContext(logger, chat_id=message.chat_id).error(
                f"Telegram webhook update {update.get('update_id')} failed",
                exc_info=True,
            )

    return JSONResponse(_ACK)
