# connection_bot/core/engine/ports.py
from __future__ import annotations
from typing import Protocol, Optional
from connection_bot.core.engine.domain import GeocodeResult, Session


class AsyncSessionStore(Protocol):
    async def get(self, chat_id: str) -> Optional[Session]: ...
    async def upsert(self, session: Session) -> None: ...


class AsyncGeocoder(Protocol):
    async def geocode(self, address: str, *, region: str, language: str) -> list[GeocodeResult]:
        """
        Look up candidates for a free-text address, best match first.

        Raises GeocodingError on network or provider failure.
        An empty list means the provider found nothing.
        """
        ...
