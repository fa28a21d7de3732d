"""Pydantic models shared by the state layer and the services."""

from sconboard.schemas.form import Category, FormRecord, ImageFile, SubmissionResponse, SubmitResult
from sconboard.schemas.location import Coordinates, PositionOptions, ResolvedAddress

__all__ = [
    "Category",
    "Coordinates",
    "FormRecord",
    "ImageFile",
    "PositionOptions",
    "ResolvedAddress",
    "SubmissionResponse",
    "SubmitResult",
]
