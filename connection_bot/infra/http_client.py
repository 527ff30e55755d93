# connection_bot/infra/http_client.py
"""
Shared aiohttp sessions, one per outbound service.

Sessions are created on first use inside the running event loop and
recreated if something closed them.  ``close_all_sessions()`` runs once
in the FastAPI lifespan shutdown.
"""
from __future__ import annotations

from typing import NamedTuple

import aiohttp

from connection_bot.infra.logging_config import get_logger

logger = get_logger(__name__)


class SessionProfile(NamedTuple):
    total: float
    connect: float
    pool_limit: int


PROFILES: dict[str, SessionProfile] = {
    # total must outlast the getUpdates long-poll timeout
    "sender": SessionProfile(total=45, connect=5, pool_limit=20),
    "geocoder": SessionProfile(total=10, connect=5, pool_limit=10),
}

_sessions: dict[str, aiohttp.ClientSession] = {}


def get_session(name: str) -> aiohttp.ClientSession:
    """Return the live session for profile *name*, creating it if needed."""
    session = _sessions.get(name)
    if session is not None and not session.closed:
        return session

    profile = PROFILES[name]
    session = aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=profile.total, connect=profile.connect),
        connector=aiohttp.TCPConnector(
            limit=profile.pool_limit,
            keepalive_timeout=30,
            enable_cleanup_closed=True,
        ),
    )
    _sessions[name] = session
    logger.debug("HTTP session '%s' opened (%s)", name, profile)
    return session


def get_sender_session() -> aiohttp.ClientSession:
    """Telegram Bot API."""
    return get_session("sender")


def get_geocoder_session() -> aiohttp.ClientSession:
    """Google Geocoding API."""
    return get_session("geocoder")


async def close_all_sessions() -> None:
    while _sessions:
        name, session = _sessions.popitem()
        if not session.closed:
            await session.close()
            logger.debug("HTTP session '%s' closed", name)
