"""
SConboard — Location Acquisition Service
=========================================

What:  Acquires one fresh device fix and translates every failure into a
       LocationError the form can show.
How:   Calls the provider under asyncio.wait_for so the timeout holds even for
       providers that ignore options.timeout_ms. No retry, no cache.
Who:   Called by FormSession.use_my_location().

Failure mapping:
    no provider              → code 0 "Geolocation not supported"
    PERMISSION_DENIED (1)    → "Location permission denied. Check permissions."
    POSITION_UNAVAILABLE (2) → "Unable to retrieve location. Check permissions."
    TIMEOUT (3) / wait_for   → "Timed out while retrieving location. Please try again."
"""

import asyncio
import logging
import time
from typing import Optional

from sconboard.exceptions import LocationError
from sconboard.schemas.location import Coordinates, PositionOptions
from sconboard.services.location_base import LocationProvider, PositionError

logger = logging.getLogger(__name__)

UNSUPPORTED = 0

LOCATION_MESSAGES = {
    UNSUPPORTED: "Geolocation not supported",
    PositionError.PERMISSION_DENIED: "Location permission denied. Check permissions.",
    PositionError.POSITION_UNAVAILABLE: "Unable to retrieve location. Check permissions.",
    PositionError.TIMEOUT: "Timed out while retrieving location. Please try again.",
}


def location_error(code: int, **context) -> LocationError:
    message = LOCATION_MESSAGES.get(code, LOCATION_MESSAGES[PositionError.POSITION_UNAVAILABLE])
    return LocationError(message=message, code=code, context=context or None)


class LocationService:
    """
    Args:
        options: Position options; defaults to PositionOptions.from_settings()
                 (high accuracy, 10s timeout, no cached fix).
    """

    def __init__(self, options: Optional[PositionOptions] = None):
        self.options = options or PositionOptions.from_settings()

    async def acquire(self, provider: Optional[LocationProvider]) -> Coordinates:
        """
        Request a single current position.

        Raises:
            LocationError: unsupported, denied, unavailable or timed out.
        """
        if provider is None:
            logger.warning("Location requested but no location provider is configured")
            raise location_error(UNSUPPORTED)

        start_time = time.time()
        try:
            coordinates = await asyncio.wait_for(
                provider.get_current_position(self.options),
                timeout=self.options.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Location request timed out after %dms", self.options.timeout_ms)
            raise location_error(PositionError.TIMEOUT, timeout_ms=self.options.timeout_ms)
        except PositionError as e:
            logger.warning("Location provider failed with code %d: %s", e.code, e.message)
            raise location_error(e.code, provider_message=e.message)
        except Exception as e:
            logger.error("Unexpected location provider error: %s", str(e), exc_info=True)
            raise location_error(
                PositionError.POSITION_UNAVAILABLE, error_type=type(e).__name__
            )

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Location acquired in %.0fms (accuracy=%s)",
            duration_ms,
            "unknown" if coordinates.accuracy is None else f"{coordinates.accuracy:.0f}m",
        )
        return coordinates


location_service = LocationService()
