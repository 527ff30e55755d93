# connection_bot/transport/adapters.py
"""
Adapters to convert provider-specific payloads into domain models.
These are pure converters - they don't contain domain logic.
"""
from __future__ import annotations

from connection_bot.core.engine.domain import InboundKind, InboundMessage
from connection_bot.infra.logging_config import get_logger, mask_chat_id

logger = get_logger(__name__)

START_COMMAND = "/start"


class TelegramAdapter:
    """
    Adapter for Telegram Bot API updates.

    Handles two update types:

    - ``message`` with text  -> START (for ``/start``) or TEXT
    - ``callback_query``     -> CHOICE (inline keyboard button press)

    Telegram sends JSON Updates with structure:
    {
      "update_id": 123456,
      "message": {
        "message_id": 42,
        "from": {"id": 123, "first_name": "User", ...},
        "chat": {"id": 123, "type": "private", ...},
        "text": "Hello"
      }
    }
    or
    {
      "update_id": 123457,
      "callback_query": {
        "id": "4382bfdwdsb323b2d9",
        "from": {...},
        "message": {"message_id": 43, "chat": {"id": 123, ...}, ...},
        "data": "existing"
      }
    }
    """

    def adapt_update(self, update: dict) -> list[InboundMessage]:
        """
        Convert a Telegram Update dict to list of InboundMessages.
        Returns empty list for updates the bot doesn't act on.
        """
        if "callback_query" in update:
            return self._parse_callback(update["callback_query"])

        message = update.get("message")
        if not message:
            logger.debug(f"Telegram update: no 'message' field, ignoring (keys={list(update.keys())})")
            return []
        return self._parse_message(message)

    def _parse_message(self, message: dict) -> list[InboundMessage]:
        chat_id = str(message.get("chat", {}).get("id", ""))
        message_id = str(message.get("message_id", ""))

        if not chat_id:
            logger.warning("Telegram message: missing chat.id, ignoring")
            return []

        text = message.get("text")
        if not text:
            logger.debug(f"Telegram message: no text, ignoring (type keys: {list(message.keys())})")
            return []

        kind = InboundKind.TEXT
        # Handle bot commands: strip bot mention suffix (e.g. "/start@MyBot" → "/start")
        if text.startswith("/"):
            command = text.split()[0].split("@")[0]
            if command == START_COMMAND:
                kind = InboundKind.START

        logger.info(
            f"Telegram message: from={mask_chat_id(chat_id)}, msg_id={message_id}, kind={kind.value}"
        )

        return [InboundMessage(
            provider="telegram",
            chat_id=chat_id,
            message_id=f"tg_{chat_id}_{message_id}",  # Ensure uniqueness across chats
            kind=kind,
            text=text,
            sender_name=self._extract_sender_name(message.get("from", {})),
        )]

    def _parse_callback(self, callback: dict) -> list[InboundMessage]:
        message = callback.get("message") or {}
        chat_id = str(message.get("chat", {}).get("id", ""))
        callback_id = callback.get("id")

        if not chat_id:
            logger.warning("Telegram callback_query: missing message.chat.id, ignoring")
            return []

        logger.info(f"Telegram callback: from={mask_chat_id(chat_id)}, callback_id={callback_id}")

        return [InboundMessage(
            provider="telegram",
            chat_id=chat_id,
            message_id=f"tg_cb_{callback_id}",
            kind=InboundKind.CHOICE,
            choice=callback.get("data"),
            callback_id=callback_id,
            sender_name=self._extract_sender_name(callback.get("from", {})),
        )]

    @staticmethod
    def _extract_sender_name(sender: dict) -> str | None:
        """
        Build a human-readable sender identifier from Telegram ``from``.
        Prefer "Full Name (@username)", fallback to whichever is present.
        """
        if not sender:
            return None

        full_name = f"{sender.get('first_name', '')} {sender.get('last_name', '')}".strip()
        username = sender.get("username")

        if username and full_name:
            return f"{full_name} (@{username})"
        if username:
            return f"@{username}"
        return full_name or None
