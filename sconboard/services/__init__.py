"""
SConboard — Services Layer
===========================

What:  Everything that touches the outside world, plus the session that
       orchestrates it around the pure state layer.

Service Inventory:
    - ImageService: reads and validates attached images (extension, size, MIME)
    - PreviewRegistry: owned preview references for attached images
    - LocationProvider (abstract) / FixedLocationProvider: device position source
    - LocationService: single-shot, time-bounded fix acquisition
    - ReverseGeocoder (abstract) / NominatimGeocoder: coordinates → address
    - ServiceCenterClient: multipart POST to the create-service-center API
    - FormSession: orchestrates user operations, enrichment and submission
"""

from sconboard.services.form_service import FormSession
from sconboard.services.geocoder_base import ReverseGeocoder
from sconboard.services.image_service import ImageService
from sconboard.services.location_base import FixedLocationProvider, LocationProvider, PositionError
from sconboard.services.location_service import LocationService
from sconboard.services.nominatim_service import NominatimGeocoder
from sconboard.services.preview_service import PreviewRegistry
from sconboard.services.submission_service import ServiceCenterClient

__all__ = [
    "FixedLocationProvider",
    "FormSession",
    "ImageService",
    "LocationProvider",
    "LocationService",
    "NominatimGeocoder",
    "PositionError",
    "PreviewRegistry",
    "ReverseGeocoder",
    "ServiceCenterClient",
]
