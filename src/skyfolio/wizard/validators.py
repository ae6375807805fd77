"""Step validity predicates.

Pure functions from a step's current data to a boolean. Step controllers
run them on every change and report the result upward; the orchestrator
trusts the reported flag and never calls these itself.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from skyfolio.wizard.steps import StepId

IMAGE_DETAILS_REQUIRED = (
    "selectedObjectType",
    "selectedObjectName",
    "title",
    "iso",
    "focal_length",
    "aperture",
    "confirm_ownership",
)


def _present(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, (list, tuple, dict, bytes)):
        return len(value) > 0
    return True


def _images_missing(data: Mapping[str, Any]) -> list[str]:
    return [] if _present(data.get("mainImage")) else ["mainImage"]


def _image_details_missing(data: Mapping[str, Any]) -> list[str]:
    return [name for name in IMAGE_DETAILS_REQUIRED if not _present(data.get(name))]


def _location_missing(data: Mapping[str, Any]) -> list[str]:
    return [] if _present(data.get("location_id")) else ["location_id"]


def _gear_missing(data: Mapping[str, Any]) -> list[str]:
    return [] if _present(data.get("selectedGear")) else ["selectedGear"]


def _session_missing(data: Mapping[str, Any]) -> list[str]:
    return [] if _present(data.get("session_id")) else ["session_id"]


_MISSING: dict[StepId, Callable[[Mapping[str, Any]], list[str]]] = {
    StepId.IMAGES: _images_missing,
    StepId.IMAGE_DETAILS: _image_details_missing,
    StepId.LOCATION: _location_missing,
    StepId.GEAR: _gear_missing,
    StepId.SESSION: _session_missing,
}


def missing_fields(step_id: StepId, data: Mapping[str, Any]) -> list[str]:
    """Required keys of ``step_id`` that ``data`` leaves empty."""
    return _MISSING[step_id](data)


def is_step_valid(step_id: StepId, data: Mapping[str, Any]) -> bool:
    return not missing_fields(step_id, data)


def images_valid(data: Mapping[str, Any]) -> bool:
    return is_step_valid(StepId.IMAGES, data)


def image_details_valid(data: Mapping[str, Any]) -> bool:
    return is_step_valid(StepId.IMAGE_DETAILS, data)


def location_valid(data: Mapping[str, Any]) -> bool:
    return is_step_valid(StepId.LOCATION, data)


def gear_valid(data: Mapping[str, Any]) -> bool:
    return is_step_valid(StepId.GEAR, data)


def session_valid(data: Mapping[str, Any]) -> bool:
    return is_step_valid(StepId.SESSION, data)


VALIDATORS: dict[StepId, Callable[[Mapping[str, Any]], bool]] = {
    StepId.IMAGES: images_valid,
    StepId.IMAGE_DETAILS: image_details_valid,
    StepId.LOCATION: location_valid,
    StepId.GEAR: gear_valid,
    StepId.SESSION: session_valid,
}
