"""Entity schemas for the select-or-create protocol.

A schema is everything EntityLinkStore needs to know about one entity kind:
where it lives on the backend, which field carries its id, its draft
defaults and which fields must be filled before it can be saved.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

GEAR_TYPES = ("Camera", "Lens", "Telescope", "Mount", "Filter", "Software", "Other")

COMMON_BRANDS: dict[str, tuple[str, ...]] = {
    "Camera": ("Canon", "Nikon", "Sony", "Fujifilm", "ZWO", "QHY", "Olympus"),
    "Lens": ("Canon", "Nikon", "Sony", "Sigma", "Tamron", "Tokina", "Rokinon"),
    "Telescope": (
        "Celestron",
        "Sky-Watcher",
        "Orion",
        "Meade",
        "Takahashi",
        "William Optics",
        "GSO",
    ),
    "Mount": ("Sky-Watcher", "Celestron", "iOptron", "Losmandy", "Orion", "Meade", "Rainbow Astro"),
    "Filter": ("Baader", "Astronomik", "IDAS", "Optolong", "Antlia", "ZWO", "Chroma"),
    "Software": (
        "PixInsight",
        "Adobe Photoshop",
        "DeepSkyStacker",
        "Stellarium",
        "Astro Pixel Processor",
        "Siril",
        "NINA",
    ),
    "Other": ("Various",),
}

MOON_PHASES = (
    "New Moon",
    "Waxing Crescent",
    "First Quarter",
    "Waxing Gibbous",
    "Full Moon",
    "Waning Gibbous",
    "Last Quarter",
    "Waning Crescent",
)

# 1: excellent dark-sky site, 9: inner-city sky
BORTLE_SCALE = range(1, 10)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


@dataclass(frozen=True)
class EntitySchema:
    """Static description of one linkable entity kind."""

    kind: str
    label: str
    id_field: str
    collection: str
    defaults: Callable[[], dict[str, Any]]
    required: tuple[str, ...]
    multi_select: bool = False
    filter_keys: tuple[str, ...] = ()
    conflict_message: str = "This item is already selected."
    field_labels: Mapping[str, str] = field(default_factory=dict)

    def item_path(self, entity_id: Any) -> str:
        return f"{self.collection}/{entity_id}"

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(self.defaults().keys())

    def new_fields(self, overrides: Mapping[str, Any] | None = None) -> dict[str, Any]:
        fields = self.defaults()
        for key, value in (overrides or {}).items():
            if key in fields and not _is_blank(value):
                fields[key] = value
        return fields

    def missing_fields(self, fields: Mapping[str, Any]) -> list[str]:
        return [name for name in self.required if _is_blank(fields.get(name))]

    def label_for(self, name: str) -> str:
        return self.field_labels.get(name, name)


def _location_defaults() -> dict[str, Any]:
    return {
        "name": "",
        "latitude": "",
        "longitude": "",
        "bortle_class": 1,
        "notes": "",
    }


def _session_defaults() -> dict[str, Any]:
    return {
        "session_date": date.today().isoformat(),
        "weather_conditions": "",
        "seeing_conditions": "",
        "moon_phase": "",
        "light_pollution_index": 1,
        "location_id": "",
    }


def _gear_defaults() -> dict[str, Any]:
    return {
        "gear_type": "",
        "brand": "",
        "model": "",
    }


LOCATION = EntitySchema(
    kind="location",
    label="Location",
    id_field="location_id",
    collection="/locations",
    defaults=_location_defaults,
    required=("name",),
    field_labels={"name": "Location Name"},
)

SESSION = EntitySchema(
    kind="session",
    label="Session",
    id_field="session_id",
    collection="/sessions",
    defaults=_session_defaults,
    required=("session_date", "location_id"),
    filter_keys=("location_id",),
    field_labels={"session_date": "Session Date", "location_id": "Location"},
)

GEAR = EntitySchema(
    kind="gear",
    label="Gear",
    id_field="gear_id",
    collection="/gear",
    defaults=_gear_defaults,
    required=("gear_type", "brand", "model"),
    multi_select=True,
    conflict_message="This equipment is already added to the image.",
    field_labels={"gear_type": "Gear Type", "brand": "Brand", "model": "Model"},
)

SCHEMAS: dict[str, EntitySchema] = {s.kind: s for s in (LOCATION, SESSION, GEAR)}
