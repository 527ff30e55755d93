# connection_bot/transport/telegram_sender.py
"""
Telegram Bot API client.

Every method goes through ``_call()``, which POSTs JSON on the shared
``sender`` session and turns any non-ok answer into a TelegramSendError.
``TelegramSendError.retryable`` is informational: the bot never retries,
callers log and move on.

Call ``close_all_sessions()`` (connection_bot.infra.http_client) on shutdown.
"""
from __future__ import annotations

import aiohttp

from connection_bot.config import settings
from connection_bot.core.engine.domain import Reply
from connection_bot.infra.http_client import get_sender_session
from connection_bot.infra.logging_config import get_logger, mask_chat_id
from connection_bot.infra.metrics import inc_counter

logger = get_logger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"
ALLOWED_UPDATES = ["message", "callback_query"]
# Bot API limit on inline button callback_data, in UTF-8 bytes
CALLBACK_DATA_MAX_BYTES = 64


class TelegramSendError(Exception):
    """Bot API call failed.

    Attributes:
        status:     HTTP status code (0 for connection-level errors).
        error_code: ``error_code`` from the response body, if any.
        retryable:  Whether the failure looks transient.
    """

    def __init__(
        self,
        status: int,
        error_code: int | None,
        message: str,
        *,
        retryable: bool = False,
    ):
        self.status = status
        self.error_code = error_code
        self.retryable = retryable
        super().__init__(f"Telegram API error {status} (code={error_code}): {message}")


def _bot_url(method: str, token: str | None = None) -> str:
    return f"{TELEGRAM_API_BASE}/bot{token or settings.telegram_bot_token}/{method}"


async def _safe_response_json(resp: aiohttp.ClientResponse) -> dict | None:
    """Response body as a dict, or None when it isn't JSON."""
    try:
        return await resp.json()
    except (aiohttp.ContentTypeError, ValueError):
        logger.warning(f"Telegram API returned non-JSON body: status={resp.status}")
        return None


def _api_error(method: str, status: int, body: dict | None) -> TelegramSendError:
    """Classify a failed Bot API answer."""
    body = body or {}
    description = body.get("description", "Unknown error")
    error_code = body.get("error_code")

    if status == 401 or error_code == 401:
        kind, retryable = "auth", False  # token revoked or mistyped
    elif status in (400, 403):
        kind, retryable = "rejected", False  # blocked bot, unknown chat, bad markup
    elif status == 429:
        kind, retryable = "rate_limited", True
        description = f"{description} (retry_after={body.get('parameters', {}).get('retry_after')})"
    else:
        kind, retryable = "server", status >= 500

    log = logger.warning if kind in ("rejected", "rate_limited") else logger.error
    log(f"Telegram {method} failed [{kind}]: status={status}, code={error_code}, {description}")
    inc_counter("telegram_api_errors_total", method=method, kind=kind)
    return TelegramSendError(status, error_code, description, retryable=retryable)


async def _call(
    method: str,
    payload: dict,
    *,
    token: str | None = None,
    timeout: aiohttp.ClientTimeout | None = None,
) -> dict:
    """POST one Bot API method and return the ok response body."""
    request_kwargs: dict = {"json": payload}
    if timeout is not None:
        request_kwargs["timeout"] = timeout

    session = get_sender_session()
    try:
        async with session.post(_bot_url(method, token), **request_kwargs) as resp:
            body = await _safe_response_json(resp)
            if resp.status == 200 and body and body.get("ok"):
                inc_counter("telegram_api_calls_total", method=method)
                return body
            raise _api_error(method, resp.status, body)

    except TelegramSendError:
        raise
    except (aiohttp.ClientError, TimeoutError) as exc:
        logger.error(f"Telegram {method} connection error: {exc}")
        inc_counter("telegram_api_errors_total", method=method, kind="connection")
        raise TelegramSendError(0, None, str(exc), retryable=True) from exc


def build_inline_keyboard(options: tuple[tuple[str, str], ...]) -> dict:
    """One button per row: ``{"inline_keyboard": [[{text, callback_data}], ...]}``.

    Values longer than CALLBACK_DATA_MAX_BYTES are sent as they are and
    logged; Telegram then rejects the whole message.
    """
    for _, value in options:
        size = len(value.encode("utf-8"))
        if size > CALLBACK_DATA_MAX_BYTES:
            logger.warning(
                f"Inline button callback_data is {size} bytes "
                f"(limit {CALLBACK_DATA_MAX_BYTES}), Telegram will reject the message"
            )
            inc_counter("telegram_callback_data_too_long_total")

    return {
        "inline_keyboard": [
            [{"text": label, "callback_data": value}]
            for label, value in options
        ],
    }


async def send_text_message(
    chat_id: str,
    text: str,
    reply_markup: dict | None = None,
    token: str | None = None,
) -> dict:
    """
    sendMessage as plain text (no parse mode, so user input is never
    interpreted as markup).

    Raises:
        TelegramSendError: On API or connection errors
    """
    payload: dict = {"chat_id": chat_id, "text": text}
    if reply_markup:
        payload["reply_markup"] = reply_markup

    body = await _call("sendMessage", payload, token=token)
    logger.info(
        f"Telegram message sent: to={mask_chat_id(chat_id)}, "
        f"msg_id={body.get('result', {}).get('message_id', 'unknown')}"
    )
    return body


async def send_reply(chat_id: str, reply: Reply, token: str | None = None) -> dict:
    """Send a domain Reply; its options become an inline keyboard."""
    markup = build_inline_keyboard(reply.options) if reply.has_options() else None
    return await send_text_message(chat_id, reply.text, reply_markup=markup, token=token)


async def answer_callback_query(callback_id: str, token: str | None = None) -> dict:
    """Stop the loading spinner on the pressed inline button."""
    return await _call("answerCallbackQuery", {"callback_query_id": callback_id}, token=token)


async def delete_webhook(token: str | None = None) -> dict:
    return await _call("deleteWebhook", {}, token=token)


async def set_webhook(
    webhook_url: str,
    secret_token: str | None = None,
    token: str | None = None,
) -> dict:
    """Register ``webhook_url``; Telegram echoes ``secret_token`` in every delivery."""
    payload: dict = {"url": webhook_url, "allowed_updates": ALLOWED_UPDATES}
    if secret_token:
        payload["secret_token"] = secret_token
    return await _call("setWebhook", payload, token=token)


async def get_updates(
    offset: int | None = None,
    timeout: int = 30,
    token: str | None = None,
) -> list[dict]:
    """
    Long-poll getUpdates.

    The HTTP timeout is the long-poll timeout plus a margin, so an idle
    poll ends with an empty list rather than a client-side timeout.
    """
    payload: dict = {"timeout": timeout, "allowed_updates": ALLOWED_UPDATES}
    if offset is not None:
        payload["offset"] = offset

    body = await _call(
        "getUpdates",
        payload,
        token=token,
        timeout=aiohttp.ClientTimeout(total=timeout + 10, connect=5),
    )
    return body.get("result", [])
