"""
SConboard — Reverse Geocoder Interface
=======================================

What:  Abstract contract for turning coordinates into a postal address.
Who:   Called by FormSession.autofill_address().

Implementations:
    - NominatimGeocoder: OpenStreetMap Nominatim over HTTP (default)
"""

from abc import ABC, abstractmethod

from sconboard.schemas.location import ResolvedAddress


class ReverseGeocoder(ABC):
    """
    Contract:
        - reverse() is single-shot: no retry, no caching.
        - Blank fields in the result mean "unknown", never "clear this field".
        - Every failure is raised as EnrichmentError.
    """

    @abstractmethod
    async def reverse(self, latitude: str, longitude: str) -> ResolvedAddress:
        """
        Args:
            latitude, longitude: Decimal strings exactly as the form holds them.
        Raises:
            EnrichmentError
        """
        ...
