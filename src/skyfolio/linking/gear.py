"""Gear store with per-image linkage."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from skyfolio.core.auth import AuthContext
from skyfolio.core.errors import AuthError, NetworkError, ServerError
from skyfolio.core.events import EventBus, Severity, notify
from skyfolio.core.transport import ApiClient
from skyfolio.linking.schema import GEAR
from skyfolio.linking.store import EntityLinkStore, LinkableEntity, StoreResult


class GearLinkStore(EntityLinkStore):
    """EntityLinkStore for gear, plus the ``/images/{id}/gear`` relation."""

    def __init__(self, api: ApiClient, auth: AuthContext, bus: EventBus | None = None) -> None:
        super().__init__(GEAR, api, auth, bus)

    @staticmethod
    def image_gear_path(image_id: Any) -> str:
        return f"/images/{image_id}/gear"

    async def fetch_image_gear(self, image_id: Any) -> StoreResult:
        """Replace the SelectionSet with the gear already linked to ``image_id``."""
        try:
            body = await self.api.get(self.image_gear_path(image_id))
        except (AuthError, NetworkError, ServerError) as e:
            return self._fail("fetch_image_gear", e)

        records = body if isinstance(body, list) else []
        selection: list[LinkableEntity] = []
        for record in records:
            if not isinstance(record, Mapping):
                continue
            entity = LinkableEntity.from_record(self.schema, record)
            if entity.id is not None and entity.id not in [e.id for e in selection]:
                selection.append(entity)
        self.selection = selection
        self._changed("image_gear")
        return StoreResult(success=True, value=list(selection))

    async def link_to_image(self, image_id: Any) -> StoreResult:
        """Attach the current SelectionSet to an existing image."""
        if not self.selection:
            return StoreResult(
                success=False, error="No equipment selected", error_kind="validation"
            )

        try:
            user_id = await self.auth.user_id()
            await self.api.post(
                self.image_gear_path(image_id),
                json={"gear_ids": self.selected_ids, "user_id": user_id},
            )
        except (AuthError, NetworkError, ServerError) as e:
            return self._fail("link_to_image", e)

        notify(self.bus, "Gear linked to image.", Severity.SUCCESS, source=self.schema.kind)
        return StoreResult(success=True, value=self.selected_ids)
