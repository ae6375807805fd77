"""Step controllers.

A controller owns the local form state of one wizard step. Every change
re-runs the step's validator and publishes ``step_changed`` with
``{"step_id": ..., "data": {..., "isValid": bool}}`` on the wizard bus.
The reported ``isValid`` is the contract the orchestrator relies on.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from typing import Any

from skyfolio.core.events import ENTITY_CHANGED, STEP_CHANGED, EventBus
from skyfolio.linking.gear import GearLinkStore
from skyfolio.linking.store import EntityLinkStore, StoreResult
from skyfolio.wizard import validators
from skyfolio.wizard.steps import StepId

IMAGES_DEFAULTS: dict[str, Any] = {
    "mainImage": None,
    "lightFrames": [],
    "darkFrames": [],
    "flatFrames": [],
    "biasFrames": [],
    "darkFlats": [],
}

IMAGE_DETAILS_DEFAULTS: dict[str, Any] = {
    "selectedObjectType": "",
    "selectedObjectName": "",
    "title": "",
    "description": "",
    "iso": "",
    "exposure_time": "",
    "focal_length": "",
    "focus_score": "",
    "aperture": "",
    "capture_date_time": None,
    "confirm_ownership": False,
}


class StepController:
    """Plain data-entry step."""

    def __init__(
        self,
        step_id: StepId,
        bus: EventBus,
        defaults: Mapping[str, Any] | None = None,
        validator: Callable[[Mapping[str, Any]], bool] | None = None,
    ) -> None:
        self.step_id = step_id
        self.bus = bus
        self._defaults = dict(defaults or {})
        self.validator = validator or validators.VALIDATORS[step_id]
        self.state: dict[str, Any] = copy.deepcopy(self._defaults)
        self.is_valid = False

    @property
    def data(self) -> dict[str, Any]:
        return dict(self.state)

    def mount(self, initial: Mapping[str, Any] | None = None) -> None:
        """(Re)enter the step, seeded from the orchestrator's snapshot."""
        self.state = copy.deepcopy(self._defaults)
        self.state.update(initial or {})
        self.state.pop("isValid", None)
        self.emit()

    def set_field(self, name: str, value: Any) -> None:
        self.state[name] = value
        self.emit()

    def update(self, **fields: Any) -> None:
        self.state.update(fields)
        self.emit()

    def missing_fields(self) -> list[str]:
        return validators.missing_fields(self.step_id, self.data)

    def emit(self) -> None:
        data = self.data
        self.is_valid = bool(self.validator(data))
        data["isValid"] = self.is_valid
        self.bus.publish(STEP_CHANGED, {"step_id": self.step_id, "data": data})


class ImagesController(StepController):
    def __init__(self, bus: EventBus) -> None:
        super().__init__(StepId.IMAGES, bus, IMAGES_DEFAULTS)


class ImageDetailsController(StepController):
    """Image metadata. Picking another object type clears the object name."""

    def __init__(self, bus: EventBus) -> None:
        super().__init__(StepId.IMAGE_DETAILS, bus, IMAGE_DETAILS_DEFAULTS)

    def set_field(self, name: str, value: Any) -> None:
        if name == "selectedObjectType" and value != self.state.get("selectedObjectType"):
            self.state["selectedObjectName"] = ""
        super().set_field(name, value)

    def update(self, **fields: Any) -> None:
        new_type = fields.get("selectedObjectType")
        if new_type is not None and new_type != self.state.get("selectedObjectType"):
            fields.setdefault("selectedObjectName", "")
        super().update(**fields)


class EntityStepController(StepController):
    """Step backed by an EntityLinkStore.

    The step data mirrors the store: the selected location or session record
    (the open draft, without an id, while nothing is selected), or
    ``{"selectedGear": [...]}`` for gear. Validity is the store's validity.
    The controller re-emits whenever the store announces a change, including
    late completions after the user has moved to another step.
    """

    def __init__(self, step_id: StepId, store: EntityLinkStore, bus: EventBus) -> None:
        super().__init__(step_id, bus)
        self.store = store
        self.image_id: Any = None
        bus.subscribe(ENTITY_CHANGED, self._on_entity_changed)

    @property
    def data(self) -> dict[str, Any]:
        store = self.store
        if store.schema.multi_select:
            data: dict[str, Any] = {"selectedGear": [e.to_record() for e in store.selection]}
        elif store.selected is not None:
            data = store.selected.to_record()
        else:
            data = store.active.to_record()
            data[store.schema.id_field] = None
        user_id = store.auth.cached_user_id
        if user_id is not None:
            data["user_id"] = user_id
        return data

    def mount(self, initial: Mapping[str, Any] | None = None) -> None:
        initial = dict(initial or {})
        initial.pop("isValid", None)
        context = {
            k: initial[k]
            for k in self.store.schema.filter_keys
            if initial.get(k) not in (None, "")
        }
        if context:
            self.store.set_context(**context)
        self.image_id = initial.pop("image_id", None)
        self.store.restore(initial)
        self.emit()

    def set_field(self, name: str, value: Any) -> None:
        self.store.edit(**{name: value})

    def update(self, **fields: Any) -> None:
        self.store.edit(**fields)

    def emit(self) -> None:
        data = self.data
        self.is_valid = self.store.validity
        data["isValid"] = self.is_valid
        self.bus.publish(STEP_CHANGED, {"step_id": self.step_id, "data": data})

    async def load(self) -> StoreResult:
        """Fetch the entities to choose from (and the image's gear, when known)."""
        result = await self.store.list()
        if self.image_id is not None and isinstance(self.store, GearLinkStore):
            linked = await self.store.fetch_image_gear(self.image_id)
            if not linked.success:
                return linked
        return result

    def _on_entity_changed(self, event: dict[str, Any]) -> None:
        if event.get("kind") == self.store.schema.kind:
            self.emit()
