"""Tests for step validity predicates."""

import pytest

from skyfolio.wizard import validators
from skyfolio.wizard.steps import StepId


def test_images_need_main_image(main_image):
    assert not validators.images_valid({"mainImage": None, "lightFrames": [main_image]})
    assert validators.images_valid({"mainImage": main_image})


def test_image_details_complete(image_details):
    assert validators.image_details_valid(image_details)
    assert validators.missing_fields(StepId.IMAGE_DETAILS, image_details) == []


@pytest.mark.parametrize("field", validators.IMAGE_DETAILS_REQUIRED)
def test_image_details_each_required_field(image_details, field):
    data = dict(image_details)
    data[field] = False if field == "confirm_ownership" else ""

    assert not validators.image_details_valid(data)
    assert validators.missing_fields(StepId.IMAGE_DETAILS, data) == [field]


def test_image_details_optional_fields_may_be_empty(image_details):
    data = dict(image_details, description="", exposure_time="", focus_score="")
    assert validators.image_details_valid(data)


def test_numbers_count_as_present(image_details):
    assert validators.image_details_valid(dict(image_details, iso=800, focal_length=400))


def test_whitespace_is_missing(image_details):
    assert not validators.image_details_valid(dict(image_details, title="   "))


def test_location_needs_id():
    assert not validators.location_valid({"location_id": None, "name": "Backyard"})
    assert validators.location_valid({"location_id": 7})


def test_gear_needs_selection():
    assert not validators.gear_valid({"selectedGear": []})
    assert not validators.gear_valid({})
    assert validators.gear_valid({"selectedGear": [{"gear_id": 3}]})


def test_session_needs_id():
    assert validators.missing_fields(StepId.SESSION, {"session_date": "2024-03-01"}) == [
        "session_id"
    ]
    assert validators.session_valid({"session_id": 12})


def test_every_step_has_a_validator():
    assert set(validators.VALIDATORS) == set(StepId)
    assert validators.is_step_valid(StepId.LOCATION, {"location_id": 1})
