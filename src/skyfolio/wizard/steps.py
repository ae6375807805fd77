"""Wizard step identifiers and their user-facing messages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class StepId(StrEnum):
    """Step ids double as the payload group names on the wire."""

    IMAGES = "images"
    IMAGE_DETAILS = "imageDetails"
    LOCATION = "locationDetails"
    GEAR = "gearDetails"
    SESSION = "sessionDetails"


@dataclass(frozen=True)
class StepDefinition:
    step_id: StepId
    label: str
    blocking_message: str
    success_message: str | None = None


DEFAULT_STEPS: tuple[StepDefinition, ...] = (
    StepDefinition(
        StepId.IMAGES,
        "Image Upload",
        "Please upload a main observation image to continue.",
    ),
    StepDefinition(
        StepId.IMAGE_DETAILS,
        "Image Details",
        "Please fill in all required fields in Image Details to continue.",
        "Image details saved successfully!",
    ),
    StepDefinition(
        StepId.LOCATION,
        "Location details",
        "Please select or create a location to continue.",
        "Location details saved successfully!",
    ),
    StepDefinition(
        StepId.GEAR,
        "Gear details",
        "Please add at least one equipment item to continue.",
        "Gear details saved successfully!",
    ),
    StepDefinition(
        StepId.SESSION,
        "Session details",
        "Please select or create a session to continue.",
        "Session details saved successfully!",
    ),
)

DEFAULTS_BY_ID: dict[StepId, StepDefinition] = {d.step_id: d for d in DEFAULT_STEPS}
