# connection_bot/core/bots/connection_report/address.py
"""
Address normalization and geocoder-backed validation.

The address step accepts Hebrew free text ("street building city"),
looks it up via the geocoder and accepts it only when the first result,
rebuilt as ``"{street} {building} {city}"``, normalizes to exactly the
same string as the user's input.  Otherwise the user is offered up to
five provider-formatted candidates.

Comparison is strict string equality after normalization, no fuzzy or
edit-distance matching.
"""
from __future__ import annotations

import re

from connection_bot.core.engine.domain import (
    Invalid,
    InvalidWithSuggestions,
    StructuredAddress,
    Valid,
    ValidationResult,
)
from connection_bot.core.engine.ports import AsyncGeocoder
from connection_bot.core.bots.connection_report.texts import get_text
from connection_bot.infra.geocoding import GeocodingError
from connection_bot.infra.logging_config import get_logger

logger = get_logger(__name__)

__all__ = [
    "normalize_address", "is_hebrew_address", "strip_country_suffix",
    "AddressValidator",
    "MAX_SUGGESTIONS", "COUNTRY_SUFFIX",
]

# Hebrew block, whitespace, digits, double quote and the ASCII run ' ( ) * + ,
_HEBREW_ADDRESS_RE = re.compile(r"[\u0590-\u05FF\s0-9\"'-,]+")

_NON_ADDRESS_CHARS_RE = re.compile(r"[^א-ת0-9\s-]")
_WHITESPACE_RE = re.compile(r"\s+")

MAX_SUGGESTIONS = 5
COUNTRY_SUFFIX = ", ישראל"


def normalize_address(raw: str) -> str:
    """Canonicalize an address for comparison.

    Lowercases, keeps only Hebrew letters, digits, whitespace and ``-``,
    collapses whitespace runs and trims.  Idempotent.
    """
    t = (raw or "").lower()
    t = _NON_ADDRESS_CHARS_RE.sub("", t)
    t = _WHITESPACE_RE.sub(" ", t)
    return t.strip()


def is_hebrew_address(raw: str) -> bool:
    """Fast pre-filter run before any network call."""
    return bool(_HEBREW_ADDRESS_RE.fullmatch(raw or ""))


def strip_country_suffix(formatted: str) -> str:
    return formatted.removesuffix(COUNTRY_SUFFIX).strip()


class AddressValidator:
    """
    Async validator for the address step.

    Instances are callables so they can be attached to a QuestionSpec
    directly: ``QuestionSpec(..., validator=AddressValidator(geocoder))``.
    """

    def __init__(
        self,
        geocoder: AsyncGeocoder,
        *,
        region: str = "il",
        language: str = "he",
    ) -> None:
        self.geocoder = geocoder
        self.region = region
        self.language = language

    async def __call__(self, raw: str) -> ValidationResult:
        return await self.validate(raw)

    async def validate(self, raw: str) -> ValidationResult:
        if not is_hebrew_address(raw):
            return Invalid(get_text("err_address_script"))

        normalized_input = normalize_address(raw)

        try:
            results = await self.geocoder.geocode(
                normalized_input,
                region=self.region,
                language=self.language,
            )
        except GeocodingError as exc:
            logger.error(f"Address lookup failed: {exc}")
            return Invalid(get_text("err_geocoding_unavailable"))
        except Exception:
            # The user stays on this step either way
            logger.exception("Address lookup failed unexpectedly")
            return Invalid(get_text("err_geocoding_unavailable"))

        if not results:
            return Invalid(get_text("err_address_not_found"))

        first = results[0]
        city = first.component("locality")
        street = first.component("route")
        building = first.component("street_number")

        rebuilt = normalize_address(f"{street or ''} {building or ''} {city or ''}")
        if normalized_input == rebuilt:
            logger.info("Address matched first geocoding result")
            return Valid(StructuredAddress(street=street, building=building, city=city))

        suggestions = tuple(
            strip_country_suffix(r.formatted_address)
            for r in results[:MAX_SUGGESTIONS]
        )
        logger.info(
            f"Address mismatch: {len(results)} result(s), "
            f"offering {len(suggestions)} suggestion(s)"
        )
        return InvalidWithSuggestions(suggestions)
