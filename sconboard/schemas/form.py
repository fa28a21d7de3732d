"""
SConboard — Form Schemas
=========================

What:  Pydantic models for the onboarding record, its images and the outcome
       of a submit.
How:   All models are frozen; the reducers produce new instances with
       model_copy(update=...) instead of mutating.

Naming:
    Python attributes are snake_case. Each text field also carries the name
    the HTML form (and the create-service-center API) uses as its alias,
    e.g. zip_code ↔ zipCode. model_dump(by_alias=True) yields the wire names.
"""

import uuid
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import AliasChoices, BaseModel, Field, field_validator

from sconboard.config import settings


class Category(str, Enum):
    """Service categories a center can offer."""

    MECHANIC = "Mechanic"
    AC = "AC"
    ELECTRICIAN = "Electrician"


class ImageFile(BaseModel):
    """
    What:  One attached image, already validated by ImageService.
    Why image_id: Removing image i must not change the identity of the others;
           the id is what tests and previews compare, not the list position.
    """

    filename: str = Field(description="Original filename as selected by the user")
    content_type: str = Field(description="MIME type detected from the file header")
    content: bytes = Field(repr=False, description="Raw image bytes")
    image_id: str = Field(default_factory=lambda: uuid.uuid4().hex)

    model_config = {"frozen": True}

    @property
    def size(self) -> int:
        return len(self.content)


class FormRecord(BaseModel):
    """
    What:  Every user-entered and enrichment-derived field of one submission.

    Invariant:
        latitude and longitude are both empty or both populated. Only the
        location reducers write them, and they always write the pair.
    """

    center_name: str = Field(default="", alias="centerName")
    phone: str = Field(default="")
    email: str = Field(default="")
    city: str = Field(default="")
    state: str = Field(default="")
    zip_code: str = Field(default="", alias="zipCode")
    country: str = Field(default_factory=lambda: settings.default_country)
    latitude: str = Field(default="", description="Six-decimal latitude, e.g. '18.520430'")
    longitude: str = Field(default="", description="Six-decimal longitude, e.g. '73.856743'")
    categories: Tuple[Category, ...] = Field(default=())
    images: Tuple[ImageFile, ...] = Field(default=())

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def has_location(self) -> bool:
        return bool(self.latitude) and bool(self.longitude)

    def text_fields(self) -> Dict[str, str]:
        """Scalar fields under their wire names (no categories, no images)."""
        return self.model_dump(by_alias=True, exclude={"categories", "images"})


class SubmissionResponse(BaseModel):
    """
    What:  Body returned by the create-service-center API on success.
    How:   Accepts either `id` or Mongo-style `_id`; numeric ids become strings.
    """

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    message: Optional[str] = Field(default=None)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return None if v is None else str(v)


class SubmitResult(BaseModel):
    """
    What:  Outcome of FormSession.submit().

    Fields:
        ok: True iff validation passed and the API (if configured) accepted it
        errors: Validation errors from this submit (empty when ok)
        message: Text suitable for a one-shot notice
        record: The record that was validated (and submitted, when ok)
        response: API response body, when a submission client is configured
    """

    ok: bool
    errors: Dict[str, str] = Field(default_factory=dict)
    message: str = ""
    record: Optional[FormRecord] = None
    response: Optional[SubmissionResponse] = None
