"""
SConboard — Location Schemas
=============================

What:  Device fixes, position request options and reverse-geocoded addresses.
"""

from typing import Optional, Tuple

from pydantic import BaseModel, Field

from sconboard.config import settings


class Coordinates(BaseModel):
    """A single fix returned by a LocationProvider."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: Optional[float] = Field(default=None, ge=0, description="Radius in meters")

    model_config = {"frozen": True}

    def as_form_values(self) -> Tuple[str, str]:
        """Latitude and longitude formatted with six decimals, as the form stores them."""
        return f"{self.latitude:.6f}", f"{self.longitude:.6f}"


class PositionOptions(BaseModel):
    """
    What:  Options passed to LocationProvider.get_current_position().
    Mirrors the browser geolocation options (enableHighAccuracy, timeout,
    maximumAge). maximum_age_ms=0 means a cached fix must not be reused.
    """

    enable_high_accuracy: bool = True
    timeout_ms: int = Field(default=10_000, gt=0)
    maximum_age_ms: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls) -> "PositionOptions":
        return cls(
            enable_high_accuracy=settings.location_high_accuracy,
            timeout_ms=settings.location_timeout_ms,
            maximum_age_ms=settings.location_maximum_age_ms,
        )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


class ResolvedAddress(BaseModel):
    """Best-effort address extracted from a reverse-geocoding response. Blank means unknown."""

    city: str = ""
    state: str = ""
    postcode: str = ""

    model_config = {"frozen": True}
