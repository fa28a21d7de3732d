"""
SConboard — Device Location Provider Interface
===============================================

What:  Abstract contract for whatever can produce the device's current
       position, modelled on the browser Geolocation API.
How:   Concrete providers implement get_current_position() and raise
       PositionError with a W3C error code on failure.
Who:   Called by LocationService.acquire().

Implementations:
    - FixedLocationProvider: returns a configured fix (or fails with a
      configured code). Used for kiosks that sit at a known address, for
      scripted onboarding and in tests.
"""

from abc import ABC, abstractmethod
from typing import Optional

from sconboard.schemas.location import Coordinates, PositionOptions


class PositionError(Exception):
    """
    Raw provider failure, before LocationService turns it into a LocationError.

    Codes (W3C GeolocationPositionError):
        1 PERMISSION_DENIED, 2 POSITION_UNAVAILABLE, 3 TIMEOUT
    """

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3

    def __init__(self, code: int, message: str = ""):
        self.code = code
        self.message = message
        super().__init__(message or f"position error {code}")


class LocationProvider(ABC):
    """
    Contract:
        - One call yields at most one fix.
        - options.maximum_age_ms == 0 means a cached fix must not be returned.
        - Failures raise PositionError; anything else is treated as
          POSITION_UNAVAILABLE by the caller.
        - The provider may ignore options.timeout_ms; LocationService enforces it.
    """

    @abstractmethod
    async def get_current_position(self, options: PositionOptions) -> Coordinates:
        ...


class FixedLocationProvider(LocationProvider):
    """
    Returns the same fix on every call, or raises a fixed PositionError.

    Args:
        coordinates: Fix to return.
        error_code: If set, every call fails with this PositionError code.
    """

    def __init__(self, coordinates: Optional[Coordinates] = None, error_code: Optional[int] = None):
        if coordinates is None and error_code is None:
            raise ValueError("FixedLocationProvider needs coordinates or an error_code")
        self.coordinates = coordinates
        self.error_code = error_code
        self.calls = 0

    async def get_current_position(self, options: PositionOptions) -> Coordinates:
        self.calls += 1
        if self.error_code is not None:
            raise PositionError(self.error_code)
        return self.coordinates
