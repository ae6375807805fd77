"""Assemble a ready-to-use observation wizard."""

from __future__ import annotations

from skyfolio.core.auth import AuthContext
from skyfolio.core.events import EventBus
from skyfolio.core.transport import ApiClient
from skyfolio.linking.gear import GearLinkStore
from skyfolio.linking.schema import LOCATION, SESSION
from skyfolio.linking.store import EntityLinkStore
from skyfolio.submission import SubmissionAssembler
from skyfolio.wizard.controller import (
    EntityStepController,
    ImageDetailsController,
    ImagesController,
    StepController,
)
from skyfolio.wizard.orchestrator import WizardOrchestrator
from skyfolio.wizard.steps import DEFAULT_STEPS, StepDefinition, StepId


def _controller(
    step_id: StepId, api: ApiClient, auth: AuthContext, bus: EventBus
) -> StepController:
    if step_id == StepId.IMAGES:
        return ImagesController(bus)
    if step_id == StepId.IMAGE_DETAILS:
        return ImageDetailsController(bus)
    if step_id == StepId.LOCATION:
        return EntityStepController(step_id, EntityLinkStore(LOCATION, api, auth, bus), bus)
    if step_id == StepId.SESSION:
        return EntityStepController(step_id, EntityLinkStore(SESSION, api, auth, bus), bus)
    return EntityStepController(step_id, GearLinkStore(api, auth, bus), bus)


def build_observation_wizard(
    api: ApiClient,
    auth: AuthContext | None = None,
    *,
    definitions: tuple[StepDefinition, ...] | None = None,
    bus: EventBus | None = None,
    upload_path: str = "/upload-image",
) -> WizardOrchestrator:
    """Create the stores, controllers and orchestrator for one wizard run.

    Args:
        api: REST collaborator
        auth: Shared user context (one is created over ``api`` when omitted)
        definitions: Step order and messages (built-in defaults when omitted)
        bus: Event bus (a fresh one when omitted)
        upload_path: Submission endpoint below the API root

    Returns:
        Orchestrator mounted on its first step
    """
    bus = bus or EventBus()
    auth = auth or AuthContext(api)
    definitions = definitions or DEFAULT_STEPS

    controllers = {d.step_id: _controller(d.step_id, api, auth, bus) for d in definitions}
    return WizardOrchestrator(
        controllers,
        SubmissionAssembler(api, upload_path),
        bus,
        definitions,
    )
