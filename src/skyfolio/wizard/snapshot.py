"""Aggregated wizard state and cross-step propagation."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from skyfolio.wizard.steps import StepId

# (source step, source key, target step, target key, target record id key)
PROPAGATIONS: tuple[tuple[StepId, str, StepId, str, str | None], ...] = (
    (StepId.LOCATION, "location_id", StepId.SESSION, "location_id", "session_id"),
    (StepId.IMAGE_DETAILS, "image_id", StepId.GEAR, "image_id", None),
)


@dataclass
class WizardSnapshot:
    """Single source of truth for a wizard run.

    ``current_step == len(steps)`` is the terminal "complete" pseudo-step.
    """

    steps: tuple[StepId, ...]
    step_data: dict[StepId, dict[str, Any]] = field(default_factory=dict)
    step_validity: dict[StepId, bool] = field(default_factory=dict)
    current_step: int = 0

    @property
    def is_complete(self) -> bool:
        return self.current_step == len(self.steps)

    @property
    def current_step_id(self) -> StepId | None:
        if self.is_complete:
            return None
        return self.steps[self.current_step]

    def is_valid(self, step_id: StepId) -> bool:
        return self.step_validity.get(step_id, False)

    def copy(self) -> WizardSnapshot:
        return WizardSnapshot(
            steps=self.steps,
            step_data=copy.deepcopy(self.step_data),
            step_validity=dict(self.step_validity),
            current_step=self.current_step,
        )


def derive_initial_data(snapshot: WizardSnapshot, step_id: StepId) -> dict[str, Any]:
    """Initial data for ``step_id``: its own saved data plus ids from earlier steps.

    Re-evaluated on every read; propagated ids are never stored back. A
    persisted target record that belongs to a different source id is dropped,
    leaving only the propagated id for a fresh draft.
    """
    data = dict(snapshot.step_data.get(step_id, {}))
    for source, source_key, target, target_key, id_key in PROPAGATIONS:
        if target != step_id:
            continue
        value = snapshot.step_data.get(source, {}).get(source_key)
        if value in (None, ""):
            continue
        if id_key is not None and _belongs_elsewhere(data, id_key, target_key, value):
            data = {}
        data[target_key] = value
    return data


def _belongs_elsewhere(data: dict[str, Any], id_key: str, key: str, value: Any) -> bool:
    own = data.get(key)
    if data.get(id_key) in (None, "") or own in (None, ""):
        return False
    return str(own) != str(value)
