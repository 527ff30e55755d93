# connection_bot/transport/telegram_polling.py
"""
getUpdates long-polling transport (the default delivery mode).

No public URL is needed.  Starting the poller removes any registered
webhook, since Telegram refuses getUpdates while one is set.

Usage:
    poller = TelegramPoller(service=service)
    await poller.start()
    ...
    await poller.stop()
"""
from __future__ import annotations

import asyncio
import contextlib

from connection_bot.config import settings
from connection_bot.core.engine.use_cases import ConversationService
from connection_bot.transport.adapters import TelegramAdapter
from connection_bot.transport.telegram_dispatch import handle_telegram_message
from connection_bot.transport.telegram_sender import (
    get_updates,
    delete_webhook,
    TelegramSendError,
)
from connection_bot.infra.logging_config import get_logger, LogContext
from connection_bot.infra.metrics import inc_counter

logger = get_logger(__name__)


class TelegramPoller:
    """
    Background task that polls getUpdates and feeds the ConversationService.

    Updates are handled one by one in update_id order, so a chat's events
    reach the wizard in the order the user sent them.  A failed poll is
    followed by a fixed ``error_pause``; a failed update is logged and
    skipped (its offset is still acknowledged).
    """

    def __init__(
        self,
        service: ConversationService,
        poll_timeout: int | None = None,
        error_pause: float | None = None,
        token: str | None = None,
    ):
        self.service = service
        self.poll_timeout = settings.telegram_poll_timeout if poll_timeout is None else poll_timeout
        self.error_pause = settings.telegram_poll_error_pause if error_pause is None else error_pause
        self._token = token
        self._adapter = TelegramAdapter()
        self._task: asyncio.Task | None = None
        self._offset: int | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            logger.warning("Telegram poller already running")
            return

        try:
            await delete_webhook(token=self._token)
        except TelegramSendError as e:
            logger.warning(f"Could not delete Telegram webhook: {e}")

        self._task = asyncio.create_task(self._poll_loop(), name="tg_poller")
        logger.info(f"Telegram poller started (timeout={self.poll_timeout}s)")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info("Telegram poller stopped")

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                # TelegramSendError is the expected case; anything else is a bug worth a traceback
                logger.error(
                    f"Telegram polling failed: {e}, pausing {self.error_pause}s",
                    exc_info=not isinstance(e, TelegramSendError),
                )
                inc_counter("telegram_poll_errors_total")
                await asyncio.sleep(self.error_pause)

    async def poll_once(self) -> int:
        """
        Fetch and process one batch of updates; returns the batch size.

        Raises TelegramSendError if getUpdates itself fails.
        """
        updates = await get_updates(
            offset=self._offset,
            timeout=self.poll_timeout,
            token=self._token,
        )

        for update in updates:
            self._offset = update.get("update_id", 0) + 1
            await self._process_update(update)

        return len(updates)

    async def _process_update(self, update: dict) -> None:
        for message in self._adapter.adapt_update(update):
            inc_counter("inbound_messages_total", provider="telegram")
            try:
                await handle_telegram_message(self.service, message, token=self._token)
            except Exception as exc:
                LogContext(logger, chat_id=message.chat_id).error(
                    f"Telegram poll processing failed: {exc.__class__.__name__}",
                    exc_info=True,
                )
