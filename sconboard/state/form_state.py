"""
SConboard — Form State
=======================

What:  The complete UI state of one onboarding form as a single frozen value.
How:   Only state.reducer produces new FormState instances; nothing mutates one.

    FormState
    ├── record            FormRecord (fields, coordinates, categories, images)
    ├── errors            error key → message (see state.validation)
    ├── previews          one preview reference per image, same order
    ├── location_status   FlowStatus of "use my location"
    ├── address_status    FlowStatus of "auto-fill address"
    ├── notice            one-shot message for the user, or None
    └── generation        bumped by every reset

Resets and in-flight flows:
    A reset blanks the record but keeps IN_FLIGHT statuses, so the busy guards
    still hold until the pending request reports. That report carries the
    generation it started in; if the form has been reset since, the result is
    dropped and only the status returns to IDLE.
"""

from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field

from sconboard.schemas.form import FormRecord


class FlowStatus(str, Enum):
    """Lifecycle of one async flow (location acquisition or address auto-fill)."""

    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FormState(BaseModel):
    record: FormRecord = Field(default_factory=FormRecord)
    errors: Dict[str, str] = Field(default_factory=dict)
    previews: Tuple[str, ...] = Field(default=())
    location_status: FlowStatus = FlowStatus.IDLE
    address_status: FlowStatus = FlowStatus.IDLE
    notice: Optional[str] = None
    generation: int = 0

    model_config = {"frozen": True}

    @property
    def is_locating(self) -> bool:
        return self.location_status is FlowStatus.IN_FLIGHT

    @property
    def is_fetching_address(self) -> bool:
        return self.address_status is FlowStatus.IN_FLIGHT

    @property
    def can_autofill(self) -> bool:
        """The auto-fill trigger is offered only once coordinates exist."""
        return self.record.has_location and not self.is_fetching_address
