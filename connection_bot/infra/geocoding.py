# connection_bot/infra/geocoding.py
"""
Forward geocoding via the Google Geocoding API.

Provides ``GoogleGeocoder.geocode(address, region=..., language=...)``
which returns a list of :class:`GeocodeResult` (best match first).

Unlike a best-effort lookup, failures here are surfaced to the caller:
network errors, timeouts, non-200 responses and provider error statuses
all raise :class:`GeocodingError`.  ``ZERO_RESULTS`` is not an error;
it yields an empty list.  No retries are attempted.
"""
from __future__ import annotations

import aiohttp

from connection_bot.core.engine.domain import AddressComponent, GeocodeResult
from connection_bot.infra.http_client import get_geocoder_session
from connection_bot.infra.logging_config import get_logger
from connection_bot.infra.metrics import AppMetrics

logger = get_logger(__name__)

GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

_OK_STATUSES = {"OK", "ZERO_RESULTS"}


class GeocodingError(Exception):
    """Geocoding provider could not answer (transport or API error).

    Attributes:
        status: HTTP status code, or 0 for connection-level errors.
        api_status: Provider status string (e.g. ``"REQUEST_DENIED"``) if known.
    """

    def __init__(self, status: int, api_status: str | None, message: str):
        self.status = status
        self.api_status = api_status
        super().__init__(f"Geocoding error {status} ({api_status}): {message}")


def _parse_result(raw: dict) -> GeocodeResult:
    """Convert one Google result object into a GeocodeResult."""
    components = [
        AddressComponent(
            long_name=comp.get("long_name", ""),
            types=list(comp.get("types", [])),
        )
        for comp in raw.get("address_components", [])
    ]
    return GeocodeResult(
        formatted_address=raw.get("formatted_address", ""),
        components=components,
    )


def parse_response(data: dict) -> list[GeocodeResult]:
    """
    Convert a Google Geocoding JSON body into results.

    Raises GeocodingError if the body reports a provider-side failure or
    its results are not shaped like Google results.
    """
    if not isinstance(data, dict):
        raise GeocodingError(200, None, "Response body is not an object")

    api_status = data.get("status")
    if api_status not in _OK_STATUSES:
        raise GeocodingError(
            200, api_status, data.get("error_message") or "Unexpected geocoding status",
        )
    try:
        return [_parse_result(raw) for raw in data.get("results") or []]
    except (AttributeError, TypeError, KeyError) as exc:
        # e.g. a result or component that is not an object
        raise GeocodingError(200, api_status, "Malformed response body") from exc


class GoogleGeocoder:
    """
    Async client for the Google Geocoding API.

    Uses the shared ``geocoder`` aiohttp session from ``http_client``.
    """

    def __init__(self, api_key: str | None, timeout_seconds: int = 10):
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    async def geocode(self, address: str, *, region: str, language: str) -> list[GeocodeResult]:
        if not self.api_key:
            AppMetrics.geocode_request("not_configured")
            raise GeocodingError(0, None, "Google API key is not configured")

        params = {
            "address": address,
            "region": region,
            "language": language,
            "key": self.api_key,
        }

        try:
            session = get_geocoder_session()
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)

            with AppMetrics.track_geocode_time():
                async with session.get(
                    GOOGLE_GEOCODE_URL,
                    params=params,
                    timeout=timeout,
                ) as resp:
                    if resp.status != 200:
                        logger.warning("Geocoding API returned status %d", resp.status)
                        AppMetrics.geocode_request("http_error")
                        raise GeocodingError(resp.status, None, "Unexpected HTTP status")

                    data = await resp.json(content_type=None)

        except GeocodingError:
            raise

        except TimeoutError as exc:
            logger.warning("Geocoding API timeout")
            AppMetrics.geocode_request("timeout")
            raise GeocodingError(0, None, "Request timed out") from exc

        except aiohttp.ClientError as exc:
            logger.warning("Geocoding API network error: %s", exc)
            AppMetrics.geocode_request("network_error")
            raise GeocodingError(0, None, str(exc)) from exc

        except ValueError as exc:
            logger.warning("Geocoding API returned malformed JSON: %s", exc)
            AppMetrics.geocode_request("malformed")
            raise GeocodingError(200, None, "Malformed response body") from exc

        try:
            results = parse_response(data)
        except GeocodingError as exc:
            logger.error("Geocoding API response rejected: %s", exc)
            AppMetrics.geocode_request("api_error" if exc.api_status not in _OK_STATUSES else "malformed")
            raise

        AppMetrics.geocode_request("ok")
        logger.info("Geocoded address: %d result(s)", len(results))
        return results
