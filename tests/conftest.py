"""
SConboard — Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the whole suite.
How:   Environment overrides are applied before any sconboard import so the
       settings singleton picks them up.

Fixtures:
    ├── sample_jpeg_bytes / sample_png_bytes: smallest valid image headers
    ├── make_image: factory for in-memory ImageFile objects
    ├── image_paths: JPEG files written to a temp directory
    ├── pune: Coordinates of Pune city centre
    ├── stub_geocoder: ReverseGeocoder returning a canned address
    └── filled_session: FormSession with every field valid
"""

import os

os.environ["LOG_LEVEL"] = "WARNING"
os.environ["GEOCODER_USER_AGENT"] = "SConboardTests/1.0"
os.environ["API_BASE_URL"] = "http://api.test"

from typing import Optional

import pytest

from sconboard.exceptions import EnrichmentError
from sconboard.schemas.form import Category, ImageFile
from sconboard.schemas.location import Coordinates, ResolvedAddress
from sconboard.services.form_service import FormSession
from sconboard.services.geocoder_base import ReverseGeocoder
from sconboard.services.location_base import FixedLocationProvider


JPEG_BYTES = (
    b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
    b'\xff\xd9'
)
PNG_BYTES = b'\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR' + b'\x00' * 17


class StubGeocoder(ReverseGeocoder):
    """Returns a fixed address, or raises a fixed EnrichmentError."""

    def __init__(self, address: Optional[ResolvedAddress] = None, error: Optional[EnrichmentError] = None):
        self.address = address or ResolvedAddress()
        self.error = error
        self.calls = []

    async def reverse(self, latitude: str, longitude: str) -> ResolvedAddress:
        self.calls.append((latitude, longitude))
        if self.error is not None:
            raise self.error
        return self.address


@pytest.fixture
def sample_jpeg_bytes():
    """Minimal JPEG: SOI marker + JFIF header + EOI marker."""
    return JPEG_BYTES


@pytest.fixture
def sample_png_bytes():
    return PNG_BYTES


@pytest.fixture
def make_image():
    """Factory for ImageFile objects that skip intake validation."""

    def _make(filename: str = "front.jpg", content: bytes = JPEG_BYTES, content_type: str = "image/jpeg"):
        return ImageFile(filename=filename, content_type=content_type, content=content)

    return _make


@pytest.fixture
def image_paths(tmp_path):
    paths = []
    for name in ("front.jpg", "workshop.jpg"):
        path = tmp_path / name
        path.write_bytes(JPEG_BYTES)
        paths.append(path)
    return paths


@pytest.fixture
def pune():
    return Coordinates(latitude=18.5204303, longitude=73.8567437, accuracy=12.0)


@pytest.fixture
def stub_geocoder():
    return StubGeocoder(ResolvedAddress(city="Pune", state="Maharashtra", postcode="411001"))


@pytest.fixture
def filled_session(pune, stub_geocoder, make_image):
    """A session whose record passes every submit rule (no submitter configured)."""
    session = FormSession(
        location_provider=FixedLocationProvider(pune),
        geocoder=stub_geocoder,
    )
    session.edit_field("centerName", "A1 Auto Repairs")
    session.edit_field("phone", "9876543210")
    session.edit_field("email", "contact@a1auto.in")
    session.edit_field("city", "Pune")
    session.edit_field("state", "Maharashtra")
    session.edit_field("zipCode", "411001")
    session.toggle_category(Category.MECHANIC)
    session.attach_images([make_image()])
    return session
