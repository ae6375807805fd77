"""Celestial object lookups for the image details step."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from skyfolio.core.errors import SkyfolioError, ValidationError
from skyfolio.core.logging import get_logger
from skyfolio.core.transport import ApiClient

_logger = get_logger(__name__)

OBJECT_TYPES: dict[str, str] = {
    "Black Hole": "black_hole",
    "Galaxy": "galaxy",
    "Nebula": "nebula",
    "Planet": "planet",
    "Star": "star",
    "Star Cluster": "star_cluster",
}


def _names(records: Any) -> list[str]:
    if not isinstance(records, list):
        return []
    names: list[str] = []
    for record in records:
        if isinstance(record, dict) and record.get("name"):
            names.append(str(record["name"]))
        elif isinstance(record, str) and record:
            names.append(record)
    return names


class CelestialCatalog:
    """Object names per object type, fetched once per type."""

    def __init__(self, api: ApiClient) -> None:
        self.api = api
        self._cache: dict[str, list[str]] = {}

    @staticmethod
    def object_types() -> list[str]:
        return list(OBJECT_TYPES)

    @staticmethod
    def path_for(object_type: str) -> str:
        slug = OBJECT_TYPES.get(object_type)
        if slug is None:
            raise ValidationError(["selectedObjectType"], "Invalid object type selected")
        return f"/celestial-objects/{slug}"

    async def objects_for(self, object_type: str) -> list[str]:
        """Names of the known objects of ``object_type``.

        Raises:
            ValidationError: Unknown object type
            NetworkError: Transport failure
            ServerError: Lookup failed
        """
        path = self.path_for(object_type)
        if object_type in self._cache:
            return list(self._cache[object_type])

        body = await self.api.get(path, authenticated=False)
        names = _names(body)
        _logger.debug(f"{len(names)} {object_type} objects")
        self._cache[object_type] = names
        return list(names)

    @staticmethod
    def load_bookmarks(path: Path) -> list[str]:
        """Object names from a RASC "Explore the Universe" bookmarks file.

        Raises:
            SkyfolioError: The file has no ``bookmarks`` mapping
        """
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        bookmarks = data.get("bookmarks") if isinstance(data, dict) else None
        if not isinstance(bookmarks, dict):
            raise SkyfolioError(
                f"No bookmarks in {path}", "Expected a JSON object with a 'bookmarks' mapping"
            )
        return [
            str(item["name"])
            for item in bookmarks.values()
            if isinstance(item, dict) and item.get("name")
        ]
