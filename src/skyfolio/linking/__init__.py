"""Select-or-create entity linking: locations, sessions and gear."""

from skyfolio.linking.gear import GearLinkStore
from skyfolio.linking.schema import GEAR, LOCATION, SCHEMAS, SESSION, EntitySchema
from skyfolio.linking.store import EntityLinkStore, LinkableEntity, StoreResult

__all__ = [
    "EntitySchema",
    "LOCATION",
    "SESSION",
    "GEAR",
    "SCHEMAS",
    "EntityLinkStore",
    "GearLinkStore",
    "LinkableEntity",
    "StoreResult",
]
