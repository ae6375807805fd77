"""Observation wizard: steps, controllers, snapshot and orchestrator.

``skyfolio.wizard.builder`` and ``skyfolio.wizard.runner`` depend on
``skyfolio.submission`` and are imported from there directly.
"""

from skyfolio.wizard.controller import (
    EntityStepController,
    ImageDetailsController,
    ImagesController,
    StepController,
)
from skyfolio.wizard.definition import build_definition, load_definition
from skyfolio.wizard.notifications import Notification, NotificationLog
from skyfolio.wizard.orchestrator import WizardOrchestrator, WizardPhase
from skyfolio.wizard.snapshot import WizardSnapshot, derive_initial_data
from skyfolio.wizard.steps import DEFAULT_STEPS, StepDefinition, StepId

__all__ = [
    "StepId",
    "StepDefinition",
    "DEFAULT_STEPS",
    "build_definition",
    "load_definition",
    "StepController",
    "ImagesController",
    "ImageDetailsController",
    "EntityStepController",
    "WizardSnapshot",
    "derive_initial_data",
    "WizardOrchestrator",
    "WizardPhase",
    "Notification",
    "NotificationLog",
]
