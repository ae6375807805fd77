"""End-to-end wizard runs against the in-process backend."""

import asyncio
import json

from skyfolio.core.events import Severity
from skyfolio.linking.store import LinkableEntity
from skyfolio.wizard.builder import build_observation_wizard
from skyfolio.wizard.orchestrator import WizardPhase
from skyfolio.wizard.steps import StepId


def _fill_first_two_steps(wizard, main_image, image_details):
    wizard.current_controller.set_field("mainImage", main_image)
    assert wizard.advance()
    wizard.current_controller.update(**image_details)
    assert wizard.advance()


def test_full_wizard_with_new_location(backend, api, auth, bus, main_image, image_details):
    """One file, new location (id 42), one gear item, a new session on 2024-03-01."""
    wizard = build_observation_wizard(api, auth, bus=bus)
    _fill_first_two_steps(wizard, main_image, image_details)

    # Location: create
    backend.next_id = 42
    location = wizard.entity_store(StepId.LOCATION)
    asyncio.run(wizard.current_controller.load())
    location.start_create()
    wizard.current_controller.update(name="Backyard", latitude="45.5", longitude="-73.6")
    saved = asyncio.run(location.save())
    assert saved.value.id == 42
    assert wizard.snapshot.step_data[StepId.LOCATION]["location_id"] == 42
    assert wizard.advance()

    # Gear: create one item
    gear = wizard.entity_store(StepId.GEAR)
    asyncio.run(wizard.current_controller.load())
    gear.start_create()
    wizard.current_controller.update(
        gear_type="Telescope", brand="Sky-Watcher", model="Esprit 100"
    )
    gear_id = asyncio.run(gear.save()).value.id
    assert wizard.advance()

    # Session: the draft already points at the new location
    session = wizard.entity_store(StepId.SESSION)
    assert session.active.fields["location_id"] == 42
    asyncio.run(wizard.current_controller.load())
    session.start_create()
    wizard.current_controller.update(session_date="2024-03-01", moon_phase="Waxing Crescent")
    asyncio.run(session.save())
    assert wizard.advance()
    assert wizard.phase == WizardPhase.COMPLETE

    result = asyncio.run(wizard.submit())

    assert result.success
    upload = backend.uploads[0]
    assert upload["files"]["images.mainImage"] == [("m31.jpg", main_image.content)]

    fields = upload["fields"]
    assert fields["imageDetails.title"] == "M31 from the backyard"
    assert fields["imageDetails.selectedObjectName"] == "Andromeda Galaxy"
    assert fields["locationDetails.location_id"] == "42"
    assert fields["locationDetails.name"] == "Backyard"
    assert fields["sessionDetails.session_date"] == "2024-03-01"
    assert fields["sessionDetails.location_id"] == "42"
    assert not [k for k in fields if "isValid" in k]

    selected = json.loads(fields["gearDetails.selectedGear"])
    assert [g["gear_id"] for g in selected] == [gear_id]
    assert selected[0]["model"] == "Esprit 100"

    assert backend.sessions[int(fields["sessionDetails.session_id"])]["location_id"] == 42
    assert backend.calls("GET").count(("GET", "/user_id")) == 1
    assert wizard.notifications.messages(Severity.SUCCESS)[-1] == (
        "Your work has been uploaded successfully!"
    )


def test_late_gear_save_reaches_snapshot(backend, api, auth, bus, main_image, image_details):
    """A gear save that finishes after the user moved on still updates the snapshot."""
    backend.seed("locations", 7, name="Backyard")
    backend.seed("gear", 3, gear_type="Camera", brand="ZWO", model="ASI294MC")
    wizard = build_observation_wizard(api, auth, bus=bus)
    _fill_first_two_steps(wizard, main_image, image_details)
    asyncio.run(wizard.current_controller.load())
    wizard.current_controller.store.select_id(7)
    wizard.advance()
    asyncio.run(wizard.current_controller.load())
    wizard.current_controller.store.select_id(3)
    wizard.advance()
    assert wizard.snapshot.current_step_id == StepId.SESSION

    gear = wizard.entity_store(StepId.GEAR)
    extra = LinkableEntity(
        schema=gear.schema,
        fields=gear.schema.new_fields(
            {"gear_type": "Filter", "brand": "Optolong", "model": "L-Pro"}
        ),
    )
    asyncio.run(gear.save(extra))

    selected = wizard.snapshot.step_data[StepId.GEAR]["selectedGear"]
    assert [g["gear_id"] for g in selected] == [3, extra.id]
    assert wizard.snapshot.current_step_id == StepId.SESSION


def test_gear_linked_to_uploaded_image(backend, api, auth, bus, main_image, image_details):
    """After upload, the selected gear can be attached to the new image."""
    backend.seed("locations", 7, name="Backyard")
    backend.seed("gear", 3, gear_type="Camera", brand="ZWO", model="ASI294MC")
    backend.seed("sessions", 20, session_date="2024-03-01", location_id=7)
    wizard = build_observation_wizard(api, auth, bus=bus)
    _fill_first_two_steps(wizard, main_image, image_details)
    for entity_id in (7, 3, 20):
        asyncio.run(wizard.current_controller.load())
        wizard.current_controller.store.select_id(entity_id)
        assert wizard.advance()

    result = asyncio.run(wizard.submit())
    image_id = result.response["image_id"]

    linked = asyncio.run(wizard.entity_store(StepId.GEAR).link_to_image(image_id))

    assert linked.success
    assert backend.image_gear[image_id] == [3]


def test_server_rejection_then_retry(backend, api, auth, bus, main_image, image_details):
    backend.seed("locations", 7, name="Backyard")
    backend.seed("gear", 3, gear_type="Camera", brand="ZWO", model="ASI294MC")
    backend.seed("sessions", 20, session_date="2024-03-01", location_id=7)
    wizard = build_observation_wizard(api, auth, bus=bus)
    _fill_first_two_steps(wizard, main_image, image_details)
    for entity_id in (7, 3, 20):
        asyncio.run(wizard.current_controller.load())
        wizard.current_controller.store.select_id(entity_id)
        assert wizard.advance()
    backend.fail("POST", "/upload-image", 500, None)

    first = asyncio.run(wizard.submit())
    second = asyncio.run(wizard.submit())

    assert first.message == "Error uploading your work. Please try again."
    assert first.detail == "Request failed with status 500"
    assert second.success
    assert wizard.phase == WizardPhase.DONE
