"""
SConboard — Form Reducer
=========================

What:  Pure functions turning (FormState, FormEvent) into the next FormState.
How:   One function per event type, registered with @_handles. reduce() looks
       the handler up by the event's exact type.
Who:   Called by FormSession.dispatch(); usable directly in tests or by any UI
       adapter that performs its own side effects.

Error-clearing rules:
    - Editing a field clears that field's error and no other.
    - Toggling a category clears the categories error.
    - Adding images clears the images error.
    - Requesting or acquiring a location clears the location error.
    - A successful auto-fill clears the city, state and zip_code errors.
    - Submitting recomputes the whole mapping.

Stale results:
    Location and enrichment results from before the last reset only end
    their flow (status back to IDLE) and leave the rest of the state alone.
"""

import logging
from typing import Any, Callable, Dict, Type

from sconboard.config import settings
from sconboard.exceptions import ValidationError
from sconboard.schemas.form import Category
from sconboard.state import events as ev
from sconboard.state.form_state import FlowStatus, FormState
from sconboard.state.validation import (
    CATEGORIES,
    CENTER_NAME,
    CITY,
    EMAIL,
    IMAGES,
    LOCATION,
    PHONE,
    STATE,
    ZIP_CODE,
    validate_record,
)

logger = logging.getLogger(__name__)

# Editable text fields, by Python name and by HTML form name → record attribute.
# The attribute name doubles as the error key.
EDITABLE_FIELDS = {
    "center_name": CENTER_NAME,
    "centerName": CENTER_NAME,
    "phone": PHONE,
    "email": EMAIL,
    "city": CITY,
    "state": STATE,
    "zip_code": ZIP_CODE,
    "zipCode": ZIP_CODE,
}

_REDUCERS: Dict[Type[ev.FormEvent], Callable[[FormState, Any], FormState]] = {}


def _handles(event_type: Type[ev.FormEvent]):
    def register(fn):
        _REDUCERS[event_type] = fn
        return fn
    return register


def reduce(state: FormState, event: ev.FormEvent) -> FormState:
    """
    Apply one event to the state.

    Raises:
        TypeError: No reducer is registered for the event's type.
        ValidationError: The event names an unknown field or category.
        IndexError: ImageRemoved points outside the image list.
    """
    handler = _REDUCERS.get(type(event))
    if handler is None:
        raise TypeError(f"No reducer registered for {type(event).__name__}")
    return handler(state, event)


def resolve_field(name: str) -> str:
    """Map a Python or HTML field name to the record attribute it edits."""
    try:
        return EDITABLE_FIELDS[name]
    except KeyError:
        raise ValidationError(
            message=f"'{name}' is not an editable field",
            field=name,
            context={"editable": sorted(set(EDITABLE_FIELDS.values()))},
        ) from None


def resolve_category(value: Any) -> Category:
    try:
        return Category(value)
    except ValueError:
        raise ValidationError(
            message=f"Unknown category '{value}'",
            field=CATEGORIES,
            context={"allowed": [c.value for c in Category]},
        ) from None


def _without(errors: Dict[str, str], *keys: str) -> Dict[str, str]:
    return {k: v for k, v in errors.items() if k not in keys}


def _stale(state: FormState, event: ev.FlowResult) -> bool:
    if event.generation == state.generation:
        return False
    logger.debug(
        "Dropping %s from generation %d (form is at %d)",
        type(event).__name__, event.generation, state.generation,
    )
    return True


def _fill(current: str, detected: str) -> str:
    # Enrichment only fills gaps; anything the user typed wins
    if current.strip() or not detected:
        return current
    return detected


# ── Field edits ───────────────────────────────────────────────────────────

@_handles(ev.FieldEdited)
def _on_field_edited(state: FormState, event: ev.FieldEdited) -> FormState:
    attr = resolve_field(event.field)
    return state.model_copy(update={
        "record": state.record.model_copy(update={attr: event.value}),
        "errors": _without(state.errors, attr),
    })


@_handles(ev.CategoryToggled)
def _on_category_toggled(state: FormState, event: ev.CategoryToggled) -> FormState:
    category = resolve_category(event.category)
    selected = state.record.categories
    if category in selected:
        selected = tuple(c for c in selected if c is not category)
    else:
        selected = selected + (category,)
    return state.model_copy(update={
        "record": state.record.model_copy(update={"categories": selected}),
        "errors": _without(state.errors, CATEGORIES),
    })


# ── Images ────────────────────────────────────────────────────────────────

@_handles(ev.ImagesAdded)
def _on_images_added(state: FormState, event: ev.ImagesAdded) -> FormState:
    if not event.images:
        return state
    return state.model_copy(update={
        "record": state.record.model_copy(update={"images": state.record.images + event.images}),
        "previews": state.previews + event.previews,
        "errors": _without(state.errors, IMAGES),
    })


@_handles(ev.ImagesRejected)
def _on_images_rejected(state: FormState, event: ev.ImagesRejected) -> FormState:
    return state.model_copy(update={"errors": {**state.errors, IMAGES: event.message}})


@_handles(ev.ImageRemoved)
def _on_image_removed(state: FormState, event: ev.ImageRemoved) -> FormState:
    images = state.record.images
    if not 0 <= event.index < len(images):
        raise IndexError(f"No image at index {event.index} (have {len(images)})")
    keep = [i for i in range(len(images)) if i != event.index]
    return state.model_copy(update={
        "record": state.record.model_copy(update={"images": tuple(images[i] for i in keep)}),
        "previews": tuple(state.previews[i] for i in keep),
    })


# ── Location ──────────────────────────────────────────────────────────────

@_handles(ev.LocationRequested)
def _on_location_requested(state: FormState, event: ev.LocationRequested) -> FormState:
    return state.model_copy(update={
        "location_status": FlowStatus.IN_FLIGHT,
        "errors": _without(state.errors, LOCATION),
    })


@_handles(ev.LocationSucceeded)
def _on_location_succeeded(state: FormState, event: ev.LocationSucceeded) -> FormState:
    if _stale(state, event):
        return state.model_copy(update={"location_status": FlowStatus.IDLE})
    latitude, longitude = event.coordinates.as_form_values()
    return state.model_copy(update={
        "record": state.record.model_copy(update={"latitude": latitude, "longitude": longitude}),
        "location_status": FlowStatus.SUCCEEDED,
        "errors": _without(state.errors, LOCATION),
    })


@_handles(ev.LocationFailed)
def _on_location_failed(state: FormState, event: ev.LocationFailed) -> FormState:
    if _stale(state, event):
        return state.model_copy(update={"location_status": FlowStatus.IDLE})
    return state.model_copy(update={
        "location_status": FlowStatus.FAILED,
        "errors": {**state.errors, LOCATION: event.message},
    })


# ── Address enrichment ────────────────────────────────────────────────────

@_handles(ev.EnrichRequested)
def _on_enrich_requested(state: FormState, event: ev.EnrichRequested) -> FormState:
    return state.model_copy(update={"address_status": FlowStatus.IN_FLIGHT})


@_handles(ev.EnrichSucceeded)
def _on_enrich_succeeded(state: FormState, event: ev.EnrichSucceeded) -> FormState:
    if _stale(state, event):
        return state.model_copy(update={"address_status": FlowStatus.IDLE})
    record = state.record
    address = event.address
    filled = record.model_copy(update={
        "city": _fill(record.city, address.city),
        "state": _fill(record.state, address.state),
        "zip_code": _fill(record.zip_code, address.postcode),
        "country": settings.default_country,
    })
    return state.model_copy(update={
        "record": filled,
        "address_status": FlowStatus.SUCCEEDED,
        "errors": _without(state.errors, CITY, STATE, ZIP_CODE),
    })


@_handles(ev.EnrichFailed)
def _on_enrich_failed(state: FormState, event: ev.EnrichFailed) -> FormState:
    if _stale(state, event):
        return state.model_copy(update={"address_status": FlowStatus.IDLE})
    return state.model_copy(update={
        "address_status": FlowStatus.FAILED,
        "notice": event.message,
    })


# ── Submit / notices / reset ──────────────────────────────────────────────

@_handles(ev.SubmitRequested)
def _on_submit_requested(state: FormState, event: ev.SubmitRequested) -> FormState:
    errors = validate_record(state.record)
    if errors:
        logger.debug("Submit validation failed for: %s", ", ".join(errors))
    return state.model_copy(update={"errors": errors})


@_handles(ev.SubmitFailed)
def _on_submit_failed(state: FormState, event: ev.SubmitFailed) -> FormState:
    return state.model_copy(update={"notice": event.message})


@_handles(ev.NoticeRaised)
def _on_notice_raised(state: FormState, event: ev.NoticeRaised) -> FormState:
    return state.model_copy(update={"notice": event.message})


@_handles(ev.NoticeDismissed)
def _on_notice_dismissed(state: FormState, event: ev.NoticeDismissed) -> FormState:
    return state.model_copy(update={"notice": None})


@_handles(ev.FormReset)
def _on_form_reset(state: FormState, event: ev.FormReset) -> FormState:
    def carried(status: FlowStatus) -> FlowStatus:
        return status if status is FlowStatus.IN_FLIGHT else FlowStatus.IDLE

    return FormState(
        location_status=carried(state.location_status),
        address_status=carried(state.address_status),
        generation=state.generation + 1,
    )
