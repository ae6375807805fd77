"""Load wizard step definitions from YAML.

A definition file picks the order of the steps and may override their
labels and messages::

    wizard:
      name: Observation upload
      steps:
        - id: images
        - id: imageDetails
          label: Details
          blocking_message: Fill in the details first.
        - id: locationDetails
        - id: gearDetails
        - id: sessionDetails

Unknown keys are ignored; unknown step ids and duplicates are rejected.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from skyfolio.core.errors import WizardError
from skyfolio.core.logging import get_logger
from skyfolio.wizard.steps import DEFAULTS_BY_ID, StepDefinition, StepId

_logger = get_logger(__name__)


def load_definition(path: Path) -> tuple[StepDefinition, ...]:
    """Load and validate a wizard definition file.

    Args:
        path: Path to wizard YAML file

    Returns:
        Ordered step definitions

    Raises:
        WizardError: If file not found or the definition is invalid
    """
    if not path.exists():
        raise WizardError(f"Wizard file not found: {path}")

    try:
        with open(path) as f:
            _logger.debug(f"Loading wizard from: {path}")
            wizard_def = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise WizardError(f"Invalid YAML: {e}") from e

    return build_definition(wizard_def)


def build_definition(wizard_def: Any) -> tuple[StepDefinition, ...]:
    """Validate an already parsed definition mapping."""
    if not isinstance(wizard_def, dict):
        raise WizardError("Wizard definition must be a dictionary")

    if "wizard" not in wizard_def:
        raise WizardError("Missing 'wizard' key in definition")

    wizard = wizard_def["wizard"]
    if not isinstance(wizard, dict):
        raise WizardError("'wizard' must be a dictionary")

    if "name" not in wizard:
        raise WizardError("Missing 'name' in wizard definition")

    steps = wizard.get("steps")
    if not steps or not isinstance(steps, list):
        raise WizardError("Wizard must have at least one step")

    out: list[StepDefinition] = []
    seen: set[StepId] = set()
    for idx, step in enumerate(steps):
        if isinstance(step, str):
            step = {"id": step}
        if not isinstance(step, dict):
            raise WizardError(f"steps[{idx}] must be a mapping or a step id")

        raw_id = step.get("id")
        try:
            step_id = StepId(raw_id)
        except ValueError:
            allowed = ", ".join(s.value for s in StepId)
            raise WizardError(
                f"steps[{idx}]: unknown step id {raw_id!r}", f"Use one of: {allowed}"
            ) from None
        if step_id in seen:
            raise WizardError(f"steps[{idx}]: duplicate step id {step_id.value!r}")
        seen.add(step_id)

        base = DEFAULTS_BY_ID[step_id]
        out.append(
            StepDefinition(
                step_id=step_id,
                label=str(step.get("label", base.label)),
                blocking_message=str(step.get("blocking_message", base.blocking_message)),
                success_message=step.get("success_message", base.success_message),
            )
        )

    _logger.verbose(f"Wizard loaded: {wizard['name']} ({len(out)} steps)")
    return tuple(out)
