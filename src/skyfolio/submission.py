"""Turn a finished wizard snapshot into one multipart upload.

Flattening rules:
- files become repeated parts named ``group.field`` (one per file)
- scalars become string parts named ``group.field``
- the per-step ``isValid`` marker is never sent
- the gear selection is one JSON array part, ``gearDetails.selectedGear``
"""

from __future__ import annotations

import json
import mimetypes
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

from skyfolio.core.errors import AuthError, NetworkError, ServerError
from skyfolio.core.logging import get_logger
from skyfolio.core.transport import ApiClient
from skyfolio.wizard.snapshot import WizardSnapshot
from skyfolio.wizard.steps import StepId

_logger = get_logger(__name__)

UPLOAD_OK = "Your work has been uploaded successfully!"
UPLOAD_REJECTED = "Error uploading your work. Please try again."
UPLOAD_NETWORK = "Network error. Please check your connection and try again."
UPLOAD_UNREADABLE = "Could not read an image file. Please select it again."

_STRIPPED_KEYS = frozenset({"isValid"})


@dataclass(frozen=True)
class FileBlob:
    """An in-memory file destined for a multipart part."""

    filename: str
    content: bytes = field(repr=False)
    content_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: Path) -> FileBlob:
        content_type, _encoding = mimetypes.guess_type(path.name)
        return cls(
            filename=path.name,
            content=path.read_bytes(),
            content_type=content_type or "application/octet-stream",
        )

    def as_part(self) -> tuple[str, bytes, str]:
        return (self.filename, self.content, self.content_type)


@dataclass(frozen=True)
class SubmissionPayload:
    files: dict[str, tuple[FileBlob, ...]]
    scalar_fields: dict[str, str]
    linked_ids: dict[str, Any]

    def to_multipart(self) -> tuple[dict[str, str], list[tuple[str, tuple[str, bytes, str]]]]:
        """Return ``(data, files)`` in the shape httpx expects."""
        parts = [(key, blob.as_part()) for key, blobs in self.files.items() for blob in blobs]
        return dict(self.scalar_fields), parts


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    message: str
    error_kind: str | None = None
    detail: str | None = None
    response: Any = None


def to_part_value(value: Any) -> str:
    """String form of a scalar part."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _as_blob(name: str, value: Any) -> FileBlob | None:
    if isinstance(value, FileBlob):
        return value
    if isinstance(value, Path):
        return FileBlob.from_path(value)
    if isinstance(value, (bytes, bytearray)) and value:
        return FileBlob(filename=name, content=bytes(value))
    return None


def _file_group(group: str, data: dict[str, Any]) -> dict[str, tuple[FileBlob, ...]]:
    files: dict[str, tuple[FileBlob, ...]] = {}
    for name, value in data.items():
        if name in _STRIPPED_KEYS or not value:
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        blobs = tuple(b for b in (_as_blob(name, v) for v in values) if b is not None)
        if blobs:
            files[f"{group}.{name}"] = blobs
    return files


def _scalar_group(group: str, data: dict[str, Any]) -> dict[str, str]:
    return {
        f"{group}.{name}": to_part_value(value)
        for name, value in data.items()
        if name not in _STRIPPED_KEYS
    }


def _gear_group(group: str, data: dict[str, Any]) -> dict[str, str]:
    selected = [dict(g) for g in data.get("selectedGear") or []]
    return {f"{group}.selectedGear": json.dumps(selected, default=to_part_value)}


class SubmissionAssembler:
    """Build the payload and perform the single upload call."""

    def __init__(self, api: ApiClient, upload_path: str = "/upload-image") -> None:
        self.api = api
        self.upload_path = upload_path

    def build(self, snapshot: WizardSnapshot) -> SubmissionPayload:
        files: dict[str, tuple[FileBlob, ...]] = {}
        scalars: dict[str, str] = {}

        for step_id in snapshot.steps:
            data = snapshot.step_data.get(step_id)
            if not data:
                continue
            group = step_id.value
            if step_id == StepId.IMAGES:
                files.update(_file_group(group, data))
            elif step_id == StepId.GEAR:
                scalars.update(_gear_group(group, data))
            else:
                scalars.update(_scalar_group(group, data))

        return SubmissionPayload(
            files=files,
            scalar_fields=scalars,
            linked_ids=self.linked_ids(snapshot),
        )

    @staticmethod
    def linked_ids(snapshot: WizardSnapshot) -> dict[str, Any]:
        location = snapshot.step_data.get(StepId.LOCATION, {})
        session = snapshot.step_data.get(StepId.SESSION, {})
        gear = snapshot.step_data.get(StepId.GEAR, {})
        return {
            "location_id": location.get("location_id"),
            "session_id": session.get("session_id"),
            "gear_ids": [g.get("gear_id") for g in gear.get("selectedGear") or []],
        }

    async def submit(self, snapshot: WizardSnapshot) -> SubmissionResult:
        """Upload everything in one request. Failures are returned, not raised."""
        try:
            payload = self.build(snapshot)
        except OSError as e:
            _logger.warning(f"upload aborted, image file unreadable: {e}")
            return SubmissionResult(False, UPLOAD_UNREADABLE, error_kind="file", detail=str(e))
        data, files = payload.to_multipart()
        _logger.debug(f"upload parts: {sorted(data)} files={[k for k, _ in files]}")

        try:
            response = await self.api.post(self.upload_path, data=data, files=files)
        except AuthError as e:
            return SubmissionResult(False, e.message, error_kind="auth")
        except NetworkError as e:
            return SubmissionResult(False, UPLOAD_NETWORK, error_kind="network", detail=e.message)
        except ServerError as e:
            return SubmissionResult(False, UPLOAD_REJECTED, error_kind="server", detail=e.message)

        _logger.info("observation uploaded")
        return SubmissionResult(True, UPLOAD_OK, response=response)
