"""
SConboard — Form Session (Workflow Orchestrator)
=================================================

What:  Drives one onboarding form: user operations, the two async enrichment
       flows, and submission.
How:   Holds the current FormState and replaces it through reduce() for every
       event. Side effects (reading images, creating/releasing previews,
       asking for a fix, calling Nominatim, calling the API) happen here and
       their outcomes are dispatched as events.
Who:   Used by whatever renders the form; in this package, by the tests.

Flow:
    edit_field / toggle_category ───────────────▶ FieldEdited / CategoryToggled
    add_images ──▶ ImageService ──▶ previews ───▶ ImagesAdded | ImagesRejected
    remove_image ──────────────▶ release preview ▶ ImageRemoved
    use_my_location ──▶ LocationService ────────▶ LocationSucceeded | LocationFailed
    autofill_address ──▶ ReverseGeocoder ───────▶ EnrichSucceeded | EnrichFailed
    submit ──▶ SubmitRequested ──▶ ServiceCenterClient ──▶ FormReset | SubmitFailed

Re-entrancy:
    A second use_my_location() while one is in flight raises LocationBusyError
    and leaves the state untouched; autofill_address() does the same with
    EnrichmentBusyError. The in-flight flag is set synchronously before the
    first await, so on a single event loop no second call can slip in.
    reset() (and so a successful submit) keeps the in-flight flags; the
    pending result, tagged with the pre-reset generation, then only clears
    its flag and never writes into the blank form.

Preview ownership:
    Every reference in state.previews is live in the PreviewRegistry and is
    released exactly once: on remove_image(), on reset(), or on close().
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from sconboard.exceptions import (
    EnrichmentBusyError,
    EnrichmentError,
    FileStorageError,
    LocationBusyError,
    LocationError,
    SubmissionError,
    ValidationError,
)
from sconboard.schemas.form import Category, ImageFile, SubmitResult
from sconboard.services.geocoder_base import ReverseGeocoder
from sconboard.services.image_service import ImageService, image_service
from sconboard.services.location_base import LocationProvider
from sconboard.services.location_service import LocationService, location_service
from sconboard.services.nominatim_service import NominatimGeocoder
from sconboard.services.preview_service import PreviewRegistry
from sconboard.services.submission_service import ServiceCenterClient
from sconboard.state import events as ev
from sconboard.state.form_state import FormState
from sconboard.state.reducer import reduce

logger = logging.getLogger(__name__)

COORDINATES_FIRST_MESSAGE = "Please fetch coordinates first."
SUBMITTED_MESSAGE = "Form submitted successfully!"
FIX_ERRORS_MESSAGE = "Please fix the errors in the form."


class FormSession:
    """
    One open onboarding form.

    Args:
        location_provider: Device location source. None means the capability
                           is unsupported; use_my_location() then records
                           "Geolocation not supported".
        geocoder: Reverse geocoder for auto-fill (default: NominatimGeocoder).
        submitter: create-service-center client. None means submit() only
                   validates and returns the record.
        images: Image intake service (default: module singleton).
        previews: Preview registry (default: a private one per session).
        locator: Location acquisition service (default: module singleton).
    """

    def __init__(
        self,
        location_provider: Optional[LocationProvider] = None,
        geocoder: Optional[ReverseGeocoder] = None,
        submitter: Optional[ServiceCenterClient] = None,
        images: Optional[ImageService] = None,
        previews: Optional[PreviewRegistry] = None,
        locator: Optional[LocationService] = None,
    ):
        self.location_provider = location_provider
        self.geocoder = geocoder or NominatimGeocoder()
        self.submitter = submitter
        self.images = images or image_service
        self.previews = previews or PreviewRegistry()
        self.locator = locator or location_service
        self.state = FormState()
        self.closed = False

    # ── Dispatch ──────────────────────────────────────────────────────────

    def dispatch(self, event: ev.FormEvent) -> FormState:
        """
        Apply one event and keep the result as the current state.

        Every state change in the session goes through here.
        """
        self.state = reduce(self.state, event)
        return self.state

    # ── Field operations ──────────────────────────────────────────────────

    def edit_field(self, field: str, value: str) -> FormState:
        return self.dispatch(ev.FieldEdited(field=field, value=value))

    def toggle_category(self, category: Union[Category, str]) -> FormState:
        value = category.value if isinstance(category, Category) else category
        return self.dispatch(ev.CategoryToggled(category=value))

    # ── Images ────────────────────────────────────────────────────────────

    def attach_images(self, images: Sequence[ImageFile]) -> FormState:
        """Append already-validated images, creating one preview each."""
        images = tuple(images)
        refs = tuple(self.previews.create(image) for image in images)
        try:
            return self.dispatch(ev.ImagesAdded(images=images, previews=refs))
        except Exception:
            self.previews.release_all(refs)
            raise

    async def add_images(self, paths: Iterable[Union[str, Path]]) -> FormState:
        """
        Read, validate and append a selection of image files.

        A rejected selection appends nothing and records the reason as the
        images error.
        """
        try:
            images = await self.images.load_images(paths)
        except (ValidationError, FileStorageError) as e:
            logger.warning("Image selection rejected: %s", e.message)
            return self.dispatch(ev.ImagesRejected(message=e.message))
        return self.attach_images(images)

    def remove_image(self, index: int) -> FormState:
        """
        Raises:
            IndexError: No image at that index.
        """
        previews = self.state.previews
        ref = previews[index] if 0 <= index < len(previews) else None
        state = self.dispatch(ev.ImageRemoved(index=index))
        if ref is not None:
            self.previews.release(ref)
        return state

    # ── Location ──────────────────────────────────────────────────────────

    async def use_my_location(self) -> FormState:
        """
        Acquire a fresh fix and store it as six-decimal latitude/longitude.

        Raises:
            LocationBusyError: A previous request is still in flight.
        """
        if self.state.is_locating:
            raise LocationBusyError()

        generation = self.dispatch(ev.LocationRequested()).generation
        try:
            coordinates = await self.locator.acquire(self.location_provider)
        except LocationError as e:
            return self.dispatch(ev.LocationFailed(message=e.message, generation=generation))
        return self.dispatch(ev.LocationSucceeded(coordinates=coordinates, generation=generation))

    async def autofill_address(self) -> FormState:
        """
        Fill blank city/state/zip_code from the current coordinates.

        Raises:
            EnrichmentBusyError: A previous lookup is still in flight.
        """
        record = self.state.record
        if not record.has_location:
            return self.dispatch(ev.NoticeRaised(message=COORDINATES_FIRST_MESSAGE))
        if self.state.is_fetching_address:
            raise EnrichmentBusyError()

        generation = self.dispatch(ev.EnrichRequested()).generation
        try:
            address = await self.geocoder.reverse(record.latitude, record.longitude)
        except EnrichmentError as e:
            return self.dispatch(ev.EnrichFailed(message=e.message, generation=generation))
        return self.dispatch(ev.EnrichSucceeded(address=address, generation=generation))

    # ── Submit ────────────────────────────────────────────────────────────

    async def submit(self) -> SubmitResult:
        """
        Validate everything, then hand the record to the submission client.

        Invalid → errors stay in state, nothing is sent, data is kept.
        API failure → notice is set, data is kept.
        Success → the form resets (previews released).
        """
        state = self.dispatch(ev.SubmitRequested())
        record = state.record

        if state.errors:
            return SubmitResult(
                ok=False, errors=dict(state.errors), message=FIX_ERRORS_MESSAGE, record=record
            )

        response = None
        if self.submitter is not None:
            try:
                response = await self.submitter.create_service_center(record)
            except SubmissionError as e:
                self.dispatch(ev.SubmitFailed(message=e.message))
                return SubmitResult(ok=False, message=e.message, record=record)

        logger.info("Onboarding form for '%s' accepted", record.center_name)
        message = (response.message if response and response.message else SUBMITTED_MESSAGE)
        self.reset()
        return SubmitResult(ok=True, message=message, record=record, response=response)

    # ── Notices / lifecycle ───────────────────────────────────────────────

    def take_notice(self) -> Optional[str]:
        """Return the pending notice, if any, and dismiss it."""
        notice = self.state.notice
        if notice is not None:
            self.dispatch(ev.NoticeDismissed())
        return notice

    def reset(self) -> FormState:
        """Release every preview and blank the form. In-flight flows keep running."""
        self.previews.release_all(self.state.previews)
        return self.dispatch(ev.FormReset())

    def close(self) -> None:
        """Release every preview. Safe to call more than once."""
        if self.closed:
            return
        released = self.previews.release_all(self.state.previews)
        self.closed = True
        logger.debug("Form session closed, %d previews released", released)

    def __enter__(self) -> "FormSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    async def __aenter__(self) -> "FormSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()
