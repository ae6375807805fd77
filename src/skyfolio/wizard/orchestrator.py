"""Wizard orchestrator.

Owns the ordered step list, the current index and the aggregated snapshot.
Step controllers report ``{data, isValid}`` over the bus; the orchestrator
merges the data, trusts the flag, and gates ``advance()`` on it.

Phases:
- IN_PROGRESS: current index points at a real step
- COMPLETE: current index is the terminal pseudo-step, submit is allowed
- DONE: the submission succeeded; the wizard is read-only from here on
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from skyfolio.core.errors import WizardError
from skyfolio.core.events import STEP_CHANGED, EventBus, Severity, notify
from skyfolio.core.logging import get_logger
from skyfolio.linking.store import EntityLinkStore
from skyfolio.wizard.controller import EntityStepController, StepController
from skyfolio.wizard.notifications import NotificationLog
from skyfolio.wizard.snapshot import WizardSnapshot, derive_initial_data
from skyfolio.wizard.steps import DEFAULT_STEPS, StepDefinition, StepId

if TYPE_CHECKING:
    from skyfolio.submission import SubmissionAssembler, SubmissionResult

_logger = get_logger(__name__)

SOURCE = "wizard"


class WizardPhase(StrEnum):
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    DONE = "done"


class WizardOrchestrator:
    """Gatekeeper for navigation and submission."""

    def __init__(
        self,
        controllers: Mapping[StepId, StepController],
        assembler: SubmissionAssembler,
        bus: EventBus,
        definitions: tuple[StepDefinition, ...] = DEFAULT_STEPS,
    ) -> None:
        """Initialize orchestrator and mount the first step.

        Args:
            controllers: One controller per step id in ``definitions``
            assembler: Builds and sends the final payload
            bus: The bus the controllers publish on
            definitions: Ordered step definitions

        Raises:
            WizardError: If a step has no controller
        """
        missing = [d.step_id.value for d in definitions if d.step_id not in controllers]
        if missing:
            raise WizardError(f"No controller for step(s): {', '.join(missing)}")

        self.bus = bus
        self.assembler = assembler
        self.controllers: dict[StepId, StepController] = {
            d.step_id: controllers[d.step_id] for d in definitions
        }
        self.definitions: dict[StepId, StepDefinition] = {d.step_id: d for d in definitions}
        self.snapshot = WizardSnapshot(steps=tuple(d.step_id for d in definitions))
        self.notifications = NotificationLog(bus)

        self._done = False
        self._submitting = False

        bus.subscribe(STEP_CHANGED, self._on_step_changed)
        self._mount_current()

    @property
    def phase(self) -> WizardPhase:
        if self._done:
            return WizardPhase.DONE
        if self.snapshot.is_complete:
            return WizardPhase.COMPLETE
        return WizardPhase.IN_PROGRESS

    @property
    def current_step(self) -> int:
        return self.snapshot.current_step

    @property
    def current_controller(self) -> StepController | None:
        step_id = self.snapshot.current_step_id
        return None if step_id is None else self.controllers[step_id]

    def controller(self, step_id: StepId) -> StepController:
        return self.controllers[step_id]

    def entity_store(self, step_id: StepId) -> EntityLinkStore:
        controller = self.controllers[step_id]
        if not isinstance(controller, EntityStepController):
            raise WizardError(f"Step {step_id.value!r} is not backed by an entity store")
        return controller.store

    def initial_data(self, step_id: StepId) -> dict[str, Any]:
        return derive_initial_data(self.snapshot, step_id)

    def record_step_change(self, step_id: StepId, data: Mapping[str, Any]) -> None:
        """Merge a controller's report into the snapshot.

        The ``isValid`` flag is stored as reported; it is not re-derived here.
        """
        self._ensure_open("record a step change")
        step_id = StepId(step_id)
        if step_id not in self.definitions:
            raise WizardError(f"Unknown step {step_id.value!r}")

        merged = dict(self.snapshot.step_data.get(step_id, {}))
        merged.update(data)
        self.snapshot.step_data[step_id] = merged
        self.snapshot.step_validity[step_id] = bool(data.get("isValid", False))

    def advance(self) -> bool:
        """Move to the next step if the current one reported itself valid.

        Returns:
            True when the index moved
        """
        self._ensure_open("advance")
        step_id = self.snapshot.current_step_id
        if step_id is None:
            return False

        definition = self.definitions[step_id]
        if not self.snapshot.is_valid(step_id):
            _logger.verbose(f"advance blocked at {step_id.value}")
            notify(self.bus, definition.blocking_message, Severity.INFO, source=SOURCE)
            return False

        self.snapshot.current_step += 1
        if definition.success_message:
            notify(self.bus, definition.success_message, Severity.SUCCESS, source=SOURCE)
        _logger.debug(f"advanced to index {self.snapshot.current_step}")
        self._mount_current()
        return True

    def retreat(self) -> bool:
        """Go back one step. Nothing is cleared."""
        self._ensure_open("retreat")
        if self.snapshot.current_step == 0:
            return False
        self.snapshot.current_step -= 1
        _logger.debug(f"retreated to index {self.snapshot.current_step}")
        self._mount_current()
        return True

    async def submit(self) -> SubmissionResult:
        """Send the whole observation.

        Failures keep every step's data so the user may retry.

        Raises:
            WizardError: Not at the terminal step, already submitted, or a
                submission is still in flight
        """
        self._ensure_open("submit")
        if not self.snapshot.is_complete:
            raise WizardError(
                "Cannot submit before every step is complete",
                "Advance through the remaining steps first",
            )
        if self._submitting:
            raise WizardError("A submission is already in progress")

        self._submitting = True
        try:
            result = await self.assembler.submit(self.snapshot.copy())
        finally:
            self._submitting = False

        if result.success:
            self._done = True
            notify(self.bus, result.message, Severity.SUCCESS, source=SOURCE)
        else:
            notify(self.bus, result.message, Severity.ERROR, source=SOURCE)
        return result

    def _mount_current(self) -> None:
        controller = self.current_controller
        if controller is not None:
            controller.mount(self.initial_data(controller.step_id))

    def _ensure_open(self, action: str) -> None:
        if self._done:
            raise WizardError(f"Cannot {action}: the observation was already submitted")

    def _on_step_changed(self, event: dict[str, Any]) -> None:
        if self._done:
            _logger.debug(f"ignoring step change after submit: {event.get('step_id')}")
            return
        step_id = event.get("step_id")
        if step_id not in self.definitions:
            return
        self.record_step_change(StepId(step_id), event.get("data") or {})
