"""Drive a wizard non-interactively from a YAML answers file.

Answers file layout::

    images:
      mainImage: m31.jpg
      lightFrames: [light_001.fits, light_002.fits]
    imageDetails:
      selectedObjectType: Galaxy
      selectedObjectName: Andromeda Galaxy
      title: M31 from the backyard
      iso: 800
      focal_length: 400
      aperture: f/5
      confirm_ownership: true
    locationDetails:
      select: 7                      # or: create: {name: Backyard, bortle_class: 5}
    gearDetails:
      select: [3]
      create:
        - {gear_type: Camera, brand: ZWO, model: ASI294MC}
    sessionDetails:
      create: {session_date: 2024-03-01, moon_phase: Full Moon}

File paths are relative to the answers file.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from skyfolio.core.errors import WizardError
from skyfolio.core.events import Severity, notify
from skyfolio.core.logging import get_logger
from skyfolio.linking.store import EntityLinkStore
from skyfolio.submission import FileBlob, SubmissionResult
from skyfolio.wizard.controller import EntityStepController
from skyfolio.wizard.orchestrator import WizardOrchestrator
from skyfolio.wizard.steps import StepId

_logger = get_logger(__name__)

SOURCE = "runner"


@dataclass(frozen=True)
class RunOutcome:
    success: bool
    blocked_at: StepId | None = None
    result: SubmissionResult | None = None


def load_answers(path: Path) -> dict[str, Any]:
    """Read an answers file.

    Raises:
        WizardError: If the file is missing, unparsable or not a mapping
    """
    if not path.exists():
        raise WizardError(f"Answers file not found: {path}")
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise WizardError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise WizardError(f"Answers file must be a mapping: {path}")
    return data


def _plain(value: Any) -> Any:
    # YAML turns 2024-03-01 into a date; the backend wants strings.
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _plain_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {str(k): _plain(v) for k, v in fields.items()}


def _blob(base_dir: Path, name: Any) -> FileBlob:
    path = Path(str(name))
    if not path.is_absolute():
        path = base_dir / path
    if not path.is_file():
        raise WizardError(f"Image file not found: {path}")
    return FileBlob.from_path(path)


def _image_answers(answers: Mapping[str, Any], base_dir: Path) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for role, value in answers.items():
        if value in (None, "", []):
            continue
        if isinstance(value, list):
            fields[role] = [_blob(base_dir, v) for v in value]
        else:
            fields[role] = _blob(base_dir, value)
    return fields


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    return list(value) if isinstance(value, (list, tuple)) else [value]


async def _create(store: EntityLinkStore, fields: Mapping[str, Any]) -> bool:
    store.start_create()
    store.edit(**_plain_fields(fields))
    result = await store.save()
    return result.success


def _select(store: EntityLinkStore, entity_id: Any) -> bool:
    result = store.select_id(entity_id)
    if not result.success and not result.conflict:
        notify(store.bus, result.error or "Selection failed", Severity.ERROR, source=SOURCE)
    return result.success


async def _apply_entity_answers(
    controller: EntityStepController, answers: Mapping[str, Any]
) -> None:
    store = controller.store
    await controller.load()

    if store.schema.multi_select:
        for entity_id in _as_list(answers.get("select")):
            _select(store, entity_id)
        for fields in _as_list(answers.get("create")):
            if isinstance(fields, Mapping):
                await _create(store, fields)
        return

    if "select" in answers:
        _select(store, answers["select"])
    elif isinstance(answers.get("create"), Mapping):
        await _create(store, answers["create"])


async def _apply_step(
    wizard: WizardOrchestrator, step_id: StepId, answers: Mapping[str, Any], base_dir: Path
) -> None:
    controller = wizard.controller(step_id)
    if isinstance(controller, EntityStepController):
        await _apply_entity_answers(controller, answers)
    elif step_id == StepId.IMAGES:
        controller.update(**_image_answers(answers, base_dir))
    else:
        controller.update(**_plain_fields(answers))


async def run_answers(
    wizard: WizardOrchestrator,
    answers: Mapping[str, Any],
    base_dir: Path | None = None,
) -> RunOutcome:
    """Fill every step from ``answers``, advance through the wizard and submit.

    Args:
        wizard: A freshly built wizard
        answers: Parsed answers mapping, keyed by step id
        base_dir: Directory image paths are relative to (cwd when omitted)

    Returns:
        RunOutcome; ``blocked_at`` names the step that refused to advance

    Raises:
        WizardError: If an image file does not exist
    """
    base_dir = base_dir or Path.cwd()

    for step_id in wizard.snapshot.steps:
        step_answers = answers.get(step_id.value) or {}
        if not isinstance(step_answers, Mapping):
            raise WizardError(f"Answers for {step_id.value!r} must be a mapping")

        _logger.verbose(f"filling {step_id.value}")
        await _apply_step(wizard, step_id, step_answers, base_dir)
        if not wizard.advance():
            return RunOutcome(success=False, blocked_at=step_id)

    result = await wizard.submit()
    return RunOutcome(success=result.success, result=result)
