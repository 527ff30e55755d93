# connection_bot/transport/http_app.py
"""
HTTP application hosting the bot.

- Polling mode: the lifespan starts a TelegramPoller; HTTP only serves
  health and metrics.
- Webhook mode: Telegram POSTs updates to /webhooks/telegram.

Run with:
    uvicorn connection_bot.transport.http_app:app
or:
    python -m connection_bot
"""
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from connection_bot.config import settings
from connection_bot.core.bots.connection_report import build_wizard
from connection_bot.core.engine.use_cases import ConversationService
from connection_bot.infra.geocoding import GoogleGeocoder
from connection_bot.infra.http_client import close_all_sessions
from connection_bot.infra.logging_config import setup_logging, get_logger
from connection_bot.infra.memory_session_store import InMemorySessionStore
from connection_bot.infra.metrics import get_metrics_collector
from connection_bot.transport.telegram_polling import TelegramPoller
from connection_bot.transport.telegram_sender import set_webhook, TelegramSendError
from connection_bot.transport.telegram_webhook import telegram_webhook_handler

setup_logging(
    level=settings.log_level,
    use_json=settings.is_production
)

logger = get_logger(__name__)


def build_service() -> ConversationService:
    """Wire geocoder, session store and wizard into a ConversationService."""
    geocoder = GoogleGeocoder(
        api_key=settings.google_api_key,
        timeout_seconds=settings.geocoding_timeout_seconds,
    )
    wizard = build_wizard(
        geocoder=geocoder,
        sessions=InMemorySessionStore(),
        region=settings.geocoding_region,
        language=settings.geocoding_language,
    )
    return ConversationService(wizard=wizard, provider="telegram")


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Application lifecycle: startup and shutdown"""
    logger.info(f"Starting application: env={settings.app_env}, telegram_mode={settings.telegram_mode}")

    fastapi_app.state.service = build_service()
    fastapi_app.state.poller = None

    if not settings.telegram_bot_token:
        logger.warning("Telegram bot token is not configured, transport disabled")
    elif settings.telegram_mode == "polling":
        poller = TelegramPoller(service=fastapi_app.state.service)
        await poller.start()
        fastapi_app.state.poller = poller
    elif settings.telegram_webhook_url:
        try:
            await set_webhook(
                settings.telegram_webhook_url,
                secret_token=settings.telegram_webhook_secret,
            )
            logger.info("Telegram webhook registered")
        except TelegramSendError as e:
            logger.error(f"Could not register Telegram webhook: {e}")

    yield

    # SHUTDOWN
    if fastapi_app.state.poller is not None:
        await fastapi_app.state.poller.stop()
    await close_all_sessions()
    logger.info("Application shutdown complete")


app = FastAPI(
    title="Connection Report Bot",
    description="Telegram wizard collecting business-customer connection reports",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None,
    openapi_url=None if settings.is_production else "/openapi.json",
)


@app.get("/health")
def health(request: Request):
    """Basic health check."""
    poller = getattr(request.app.state, "poller", None)
    return {
        "status": "healthy",
        "telegram_mode": settings.telegram_mode,
        "poller_running": bool(poller and poller.running),
    }


@app.get("/metrics")
def metrics():
    """In-process counters and histograms."""
    return get_metrics_collector().get_metrics()


@app.post("/webhooks/telegram")
async def webhook_telegram(request: Request):
    """Telegram webhook endpoint (secret-token validated when configured)."""
    return await telegram_webhook_handler(request)
