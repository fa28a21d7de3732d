"""
SConboard — Form Events
========================

What:  One frozen model per thing that can happen to the form.
Who:   Built by FormSession (or a UI adapter) and fed to state.reducer.reduce().

Events carry results, never collaborators: ImagesAdded already holds the
preview references, LocationSucceeded already holds the fix. That keeps every
reducer pure.
"""

from typing import Tuple

from pydantic import BaseModel, model_validator

from sconboard.schemas.form import ImageFile
from sconboard.schemas.location import Coordinates, ResolvedAddress


class FormEvent(BaseModel):
    model_config = {"frozen": True}


class FieldEdited(FormEvent):
    """A text field changed. `field` may be the Python name or the HTML name."""

    field: str
    value: str


class CategoryToggled(FormEvent):
    category: str


class ImagesAdded(FormEvent):
    images: Tuple[ImageFile, ...]
    previews: Tuple[str, ...]

    @model_validator(mode="after")
    def one_preview_per_image(self) -> "ImagesAdded":
        if len(self.images) != len(self.previews):
            raise ValueError(
                f"ImagesAdded needs one preview per image "
                f"(got {len(self.images)} images, {len(self.previews)} previews)"
            )
        return self


class ImagesRejected(FormEvent):
    """An attached batch failed intake validation; nothing was appended."""

    message: str


class ImageRemoved(FormEvent):
    index: int


class LocationRequested(FormEvent):
    pass


class FlowResult(FormEvent):
    """
    Outcome of an async flow.

    `generation` is the FormState.generation the request was started in. A
    result from an older generation belongs to a form that has since been
    reset and only ends the in-flight status.
    """

    generation: int = 0


class LocationSucceeded(FlowResult):
    coordinates: Coordinates


class LocationFailed(FlowResult):
    message: str


class EnrichRequested(FormEvent):
    pass


class EnrichSucceeded(FlowResult):
    address: ResolvedAddress


class EnrichFailed(FlowResult):
    message: str


class SubmitRequested(FormEvent):
    pass


class SubmitFailed(FormEvent):
    """The record was valid but the submission API did not accept it."""

    message: str


class NoticeRaised(FormEvent):
    message: str


class NoticeDismissed(FormEvent):
    pass


class FormReset(FormEvent):
    """Blank the form. Flows still in flight stay in flight until they report."""
