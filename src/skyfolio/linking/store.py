"""Select-or-create state holder for linkable entities.

One EntityLinkStore manages one entity kind (location, session or gear),
described by an EntitySchema. It browses the user's existing records,
keeps the current draft or selection, and creates, updates and deletes
records through the REST collaborator.

Network-facing operations are coroutines that never raise for
authentication, validation, transport or server failures: they return a
StoreResult carrying the user-facing message instead, and publish an error
notification on the store's bus.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from skyfolio.core.auth import AuthContext
from skyfolio.core.errors import (
    AuthError,
    NetworkError,
    ServerError,
    SkyfolioError,
    ValidationError,
)
from skyfolio.core.events import ENTITY_CHANGED, EventBus, Severity, notify
from skyfolio.core.logging import get_logger
from skyfolio.core.transport import ApiClient
from skyfolio.linking.schema import EntitySchema

_logger = get_logger(__name__)

_ERROR_KINDS: dict[type[SkyfolioError], str] = {
    AuthError: "auth",
    ValidationError: "validation",
    NetworkError: "network",
    ServerError: "server",
}


@dataclass
class LinkableEntity:
    """A persisted record (``id`` set) or an in-progress draft (``id is None``)."""

    schema: EntitySchema = field(repr=False)
    id: Any = None
    fields: dict[str, Any] = field(default_factory=dict)
    owner_user_id: Any = None

    @property
    def is_draft(self) -> bool:
        return self.id is None

    @property
    def is_valid(self) -> bool:
        return not self.schema.missing_fields(self.fields)

    def copy(self) -> LinkableEntity:
        return LinkableEntity(
            schema=self.schema,
            id=self.id,
            fields=dict(self.fields),
            owner_user_id=self.owner_user_id,
        )

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {self.schema.id_field: self.id}
        record.update(self.fields)
        if self.owner_user_id is not None:
            record["user_id"] = self.owner_user_id
        return record

    @classmethod
    def from_record(cls, schema: EntitySchema, record: Mapping[str, Any]) -> LinkableEntity:
        fields = schema.new_fields()
        for key, value in record.items():
            if key in (schema.id_field, "user_id", "isValid"):
                continue
            fields[key] = value
        return cls(
            schema=schema,
            id=record.get(schema.id_field),
            fields=fields,
            owner_user_id=record.get("user_id"),
        )


@dataclass(frozen=True)
class StoreResult:
    """Outcome of a store operation."""

    success: bool
    value: Any = None
    error: str | None = None
    error_kind: str | None = None  # auth | validation | network | server
    missing: tuple[str, ...] = ()
    conflict: bool = False


class EntityLinkStore:
    """Browse / create / edit / delete / select one entity kind."""

    def __init__(
        self,
        schema: EntitySchema,
        api: ApiClient,
        auth: AuthContext,
        bus: EventBus | None = None,
    ) -> None:
        """Initialize store.

        Args:
            schema: Entity kind description
            api: REST collaborator
            auth: Shared authenticated-user context
            bus: Wizard event bus (a private one is created when omitted)
        """
        self.schema = schema
        self.api = api
        self.auth = auth
        self.bus = bus or EventBus()

        self.entities: list[LinkableEntity] = []
        self.selected: LinkableEntity | None = None
        self.selection: list[LinkableEntity] = []
        self.context: dict[str, Any] = {}
        self.active: LinkableEntity = self._new_draft()

        self.list_error: str | None = None
        self.last_error: str | None = None

        self._filters: dict[str, Any] | None = None
        # save/remove resolve in invocation order
        self._mutation_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def validity(self) -> bool:
        if self.schema.multi_select:
            return len(self.selection) > 0
        return self.selected is not None and not self.selected.is_draft

    @property
    def selected_ids(self) -> list[Any]:
        return [e.id for e in self.selection]

    def find(self, entity_id: Any) -> LinkableEntity | None:
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None

    # ------------------------------------------------------------------
    # Local operations
    # ------------------------------------------------------------------

    def set_context(self, **values: Any) -> None:
        """Record values propagated from earlier steps.

        They seed new drafts and, for keys the schema can filter on, the
        list filter. An open draft picks them up immediately.
        """
        self.context.update(values)
        filters = {k: v for k, v in self.context.items() if k in self.schema.filter_keys}
        if filters:
            self._filters = filters
        if self.active.is_draft:
            for key, value in values.items():
                if key in self.active.fields and value not in (None, ""):
                    self.active.fields[key] = value
        self._changed("context")

    def select(self, entity: LinkableEntity) -> StoreResult:
        """Select a persisted entity.

        Single-selection kinds replace the current selection and draft.
        Gear is added to the SelectionSet unless its id is already there, in
        which case nothing changes and a conflict is reported.
        """
        if entity.is_draft:
            return StoreResult(
                success=False,
                error=f"Save the {self.schema.kind} before selecting it.",
                error_kind="validation",
            )

        if not self.schema.multi_select:
            self.selected = entity.copy()
            self.active = entity.copy()
            self.last_error = None
            self._changed("selected")
            return StoreResult(success=True, value=self.selected)

        if entity.id in self.selected_ids:
            message = self.schema.conflict_message
            self.last_error = message
            notify(self.bus, message, Severity.WARNING, source=self.schema.kind)
            return StoreResult(success=False, error=message, conflict=True)

        self.selection.append(entity.copy())
        self.last_error = None
        self._changed("selected")
        return StoreResult(success=True, value=entity)

    def select_id(self, entity_id: Any) -> StoreResult:
        entity = self.find(entity_id)
        if entity is None:
            return StoreResult(
                success=False,
                error=f"{self.schema.label} {entity_id} not found",
                error_kind="validation",
            )
        return self.select(entity)

    def deselect(self, entity_id: Any) -> None:
        before = len(self.selection)
        self.selection = [e for e in self.selection if e.id != entity_id]
        if len(self.selection) != before:
            self._changed("deselected")

    def start_create(self) -> LinkableEntity:
        """Replace the active entity with an empty draft."""
        self.active = self._new_draft()
        if not self.schema.multi_select:
            self.selected = None
        self.last_error = None
        self._changed("draft")
        return self.active

    def load_for_edit(self, entity: LinkableEntity) -> LinkableEntity:
        self.active = entity.copy()
        self._changed("editing")
        return self.active

    def edit(self, **fields: Any) -> LinkableEntity:
        self.active.fields.update(fields)
        self._changed("edited")
        return self.active

    def restore(self, data: Mapping[str, Any]) -> None:
        """Re-seed local state from step data kept by the orchestrator."""
        if self.schema.multi_select:
            records = data.get("selectedGear") or []
            self.selection = [
                LinkableEntity.from_record(self.schema, r)
                for r in records
                if isinstance(r, Mapping)
            ]
        else:
            entity = LinkableEntity.from_record(self.schema, data)
            if entity.is_draft:
                for key, value in self.context.items():
                    if key in entity.fields and value not in (None, ""):
                        entity.fields[key] = value
            elif self._outside_context(entity):
                _logger.verbose(
                    f"{self.schema.kind} {entity.id} dropped: no longer matches {self.context}"
                )
                entity = self._new_draft()
            self.active = entity
            self.selected = None if entity.is_draft else entity.copy()
        self._changed("restored")

    # ------------------------------------------------------------------
    # Network operations
    # ------------------------------------------------------------------

    async def list(self, filters: Mapping[str, Any] | None = None) -> StoreResult:
        """Fetch every entity of this kind owned by the current user.

        Args:
            filters: Optional filter (only keys the schema supports are sent);
                remembered for later refreshes
        """
        if filters is not None:
            self._filters = {k: v for k, v in filters.items() if k in self.schema.filter_keys}

        try:
            body = await self.api.get(self.schema.collection, params=self._filters)
        except (AuthError, NetworkError, ServerError) as e:
            self.list_error = e.message
            return self._fail("list", e)

        records = body if isinstance(body, list) else []
        self.entities = [
            LinkableEntity.from_record(self.schema, r) for r in records if isinstance(r, Mapping)
        ]
        self.list_error = None
        _logger.debug(f"{self.schema.kind}: {len(self.entities)} entities listed")
        self._changed("listed")
        return StoreResult(success=True, value=list(self.entities))

    async def save(self, draft: LinkableEntity | None = None) -> StoreResult:
        """Create (no id) or update (id set) ``draft``, the active entity by default.

        An incomplete draft fails with a ValidationError naming every missing
        field and no request is sent. On any failure the draft is kept as is.
        """
        draft = draft if draft is not None else self.active

        missing = self.schema.missing_fields(draft.fields)
        if missing:
            return self._fail("save", ValidationError(missing))

        async with self._mutation_lock:
            created = draft.is_draft
            try:
                user_id = await self.auth.user_id()
                body = dict(draft.fields)
                body["user_id"] = user_id
                if created:
                    reply = await self.api.post(self.schema.collection, json=body)
                else:
                    reply = await self.api.put(self.schema.item_path(draft.id), json=body)
            except (AuthError, NetworkError, ServerError) as e:
                return self._fail("save", e)

            new_id = reply.get(self.schema.id_field) if isinstance(reply, dict) else None
            if new_id is None:
                new_id = draft.id
            if new_id is None:
                return self._fail(
                    "save",
                    ServerError(f"Failed to create {self.schema.kind}: no id returned", 200),
                )

            draft.id = new_id
            draft.owner_user_id = user_id
            saved = draft.copy()
            self._apply_saved(saved, created)
            self.last_error = None

            verb = "created" if created else "updated"
            _logger.info(f"{self.schema.label} {new_id} {verb}")
            notify(
                self.bus,
                f"{self.schema.label} {verb} successfully.",
                Severity.SUCCESS,
                source=self.schema.kind,
            )
            self._changed("saved")
            await self._refresh()
        return StoreResult(success=True, value=saved)

    async def remove(self, entity_id: Any) -> StoreResult:
        """Delete an entity and drop it from every local list and selection."""
        async with self._mutation_lock:
            try:
                await self.api.delete(self.schema.item_path(entity_id))
            except (AuthError, NetworkError, ServerError) as e:
                return self._fail("remove", e)

            self.entities = [e for e in self.entities if e.id != entity_id]
            self.selection = [e for e in self.selection if e.id != entity_id]
            if self.selected is not None and self.selected.id == entity_id:
                self.selected = None
            if self.active.id == entity_id:
                self.active = self._new_draft()
            self.last_error = None

            _logger.info(f"{self.schema.label} {entity_id} deleted")
            notify(
                self.bus,
                f"{self.schema.label} deleted.",
                Severity.SUCCESS,
                source=self.schema.kind,
            )
            self._changed("removed")
            await self._refresh()
        return StoreResult(success=True, value=entity_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _new_draft(self) -> LinkableEntity:
        return LinkableEntity(schema=self.schema, fields=self.schema.new_fields(self.context))

    def _outside_context(self, entity: LinkableEntity) -> bool:
        for key in self.schema.filter_keys:
            wanted = self.context.get(key)
            if wanted in (None, "") or entity.fields.get(key) in (None, ""):
                continue
            if str(entity.fields[key]) != str(wanted):
                return True
        return False

    def _apply_saved(self, saved: LinkableEntity, created: bool) -> None:
        if created:
            self.entities.append(saved.copy())
        else:
            self.entities = [saved.copy() if e.id == saved.id else e for e in self.entities]

        if not self.schema.multi_select:
            self.active = saved.copy()
            self.selected = saved.copy()
            return

        self.active = saved.copy()
        if created:
            if saved.id not in self.selected_ids:
                self.selection.append(saved.copy())
        else:
            self.selection = [saved.copy() if e.id == saved.id else e for e in self.selection]

    async def _refresh(self) -> None:
        # The cached list is only trusted after a full reload.
        await self.list()

    def _fail(self, operation: str, error: SkyfolioError) -> StoreResult:
        message = error.message
        self.last_error = message
        kind = next((v for k, v in _ERROR_KINDS.items() if isinstance(error, k)), "server")
        if kind == "validation":
            _logger.verbose(f"{self.schema.kind} {operation} rejected locally: {message}")
        else:
            _logger.warning(f"{self.schema.kind} {operation} failed ({kind}): {message}")
        notify(self.bus, message, Severity.ERROR, source=self.schema.kind)
        missing = tuple(error.missing) if isinstance(error, ValidationError) else ()
        return StoreResult(success=False, error=message, error_kind=kind, missing=missing)

    def _changed(self, reason: str) -> None:
        self.bus.publish(ENTITY_CHANGED, {"kind": self.schema.kind, "reason": reason})
