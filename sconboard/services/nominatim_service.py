"""
SConboard — Nominatim Reverse Geocoder
=======================================

What:  Resolves coordinates to city, state and postcode with OpenStreetMap
       Nominatim's /reverse endpoint.
How:   One GET per call through httpx.AsyncClient, JSON format, address
       details on, zoom 10 (city/district level), English names. The
       User-Agent header identifies the application, which Nominatim's usage
       policy requires.
Who:   Called by FormSession.autofill_address().

City resolution:
    Indian addresses rarely carry a plain `city` at zoom 10, so the city is
    the first non-blank of:
        city → state_district → county → town → suburb → village
"""

import logging
import time
import uuid
from typing import Any, Dict, Optional

import httpx

from sconboard.config import settings
from sconboard.exceptions import EnrichmentError
from sconboard.schemas.location import ResolvedAddress
from sconboard.services.geocoder_base import ReverseGeocoder

logger = logging.getLogger(__name__)

CITY_KEYS = ("city", "state_district", "county", "town", "suburb", "village")

NO_ADDRESS_MESSAGE = "Could not determine address details from these coordinates."
LOOKUP_FAILED_MESSAGE = "Failed to fetch address details. Please enter manually."


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def extract_address(address: Dict[str, Any]) -> ResolvedAddress:
    """Pick city, state and postcode out of a Nominatim `address` object."""
    city = next((_text(address.get(key)) for key in CITY_KEYS if _text(address.get(key))), "")
    return ResolvedAddress(
        city=city,
        state=_text(address.get("state")),
        postcode=_text(address.get("postcode")),
    )


class NominatimGeocoder(ReverseGeocoder):
    """
    Args:
        client: Shared httpx.AsyncClient. When omitted, each lookup opens and
                closes its own client.
        url, user_agent, zoom, language, timeout: Overrides for the geocoder_*
                settings.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        url: Optional[str] = None,
        user_agent: Optional[str] = None,
        zoom: Optional[int] = None,
        language: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.client = client
        self.url = url or settings.geocoder_url
        self.user_agent = user_agent or settings.geocoder_user_agent
        self.zoom = zoom or settings.geocoder_zoom
        self.language = language or settings.geocoder_language
        self.timeout = timeout or settings.geocoder_timeout

    def build_params(self, latitude: str, longitude: str) -> Dict[str, Any]:
        return {
            "format": "json",
            "lat": latitude,
            "lon": longitude,
            "zoom": self.zoom,
            "addressdetails": 1,
            "accept-language": self.language,
        }

    async def _get(self, latitude: str, longitude: str) -> httpx.Response:
        params = self.build_params(latitude, longitude)
        headers = {"User-Agent": self.user_agent}
        if self.client is not None:
            return await self.client.get(self.url, params=params, headers=headers, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(self.url, params=params, headers=headers)

    async def reverse(self, latitude: str, longitude: str) -> ResolvedAddress:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()
        logger.info("[%s] Reverse geocoding %s,%s", request_id, latitude, longitude)

        try:
            response = await self._get(latitude, longitude)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "[%s] Nominatim returned HTTP %d", request_id, e.response.status_code
            )
            raise EnrichmentError(
                message=LOOKUP_FAILED_MESSAGE,
                context={"request_id": request_id, "status_code": e.response.status_code},
            )
        except httpx.HTTPError as e:
            logger.warning("[%s] Nominatim request failed: %s", request_id, str(e))
            raise EnrichmentError(
                message=LOOKUP_FAILED_MESSAGE,
                context={"request_id": request_id, "error_type": type(e).__name__},
            )
        except ValueError as e:
            logger.warning("[%s] Nominatim returned invalid JSON: %s", request_id, str(e))
            raise EnrichmentError(
                message=LOOKUP_FAILED_MESSAGE,
                context={"request_id": request_id, "error_type": "invalid_json"},
            )

        address = payload.get("address") if isinstance(payload, dict) else None
        if not isinstance(address, dict) or not address:
            # Nominatim answers {"error": "Unable to geocode"} over open water
            logger.info("[%s] No address for these coordinates", request_id)
            raise EnrichmentError(
                message=NO_ADDRESS_MESSAGE,
                context={"request_id": request_id},
            )

        resolved = extract_address(address)
        logger.info(
            "[%s] Reverse geocode completed in %.0fms (city=%r, state=%r, postcode=%r)",
            request_id,
            (time.time() - start_time) * 1000,
            resolved.city,
            resolved.state,
            resolved.postcode,
        )
        return resolved
