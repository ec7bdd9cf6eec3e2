"""Flat resource records for v2 and v3 Cloud Controller payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from cfops.util.time import parse_optional_rfc3339


@dataclass(slots=True)
class Resource:
    """
    A Cloud Controller resource.

    Notes:
        - `entity` keeps the remaining payload fields as returned by the API
          (v2 `entity` block, or the v3 resource body itself).
    """

    id: str
    name: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    entity: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Read a field from the entity block."""
        return self.entity.get(key, default)


def resource_from_v2(data: dict[str, Any]) -> Resource:
    """Parse a v2 resource: ``{metadata: {guid, created_at, updated_at}, entity: {...}}``."""
    metadata = data.get("metadata") or {}
    entity = data.get("entity") or {}
    guid = metadata.get("guid")
    name = entity.get("name")
    if not isinstance(name, str):
        # Services are named by label in v2.
        name = entity.get("label", "")
    return Resource(
        id=guid if isinstance(guid, str) else "",
        name=name if isinstance(name, str) else "",
        created_at=parse_optional_rfc3339(metadata.get("created_at")),
        updated_at=parse_optional_rfc3339(metadata.get("updated_at")),
        entity=dict(entity),
    )


def resource_from_v3(data: dict[str, Any]) -> Resource:
    """Parse a v3 resource: ``{guid, name, created_at, updated_at, ...}``."""
    guid = data.get("guid")
    name = data.get("name", "")
    entity = {
        k: v for k, v in data.items() if k not in ("guid", "created_at", "updated_at")
    }
    return Resource(
        id=guid if isinstance(guid, str) else "",
        name=name if isinstance(name, str) else "",
        created_at=parse_optional_rfc3339(data.get("created_at")),
        updated_at=parse_optional_rfc3339(data.get("updated_at")),
        entity=entity,
    )
