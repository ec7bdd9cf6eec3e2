"""Ask the Cloud Controller which file contents it already holds."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Protocol

from cfops.util.size import as_ibi

from .fingerprint import ArtifactFingerprint

logger = logging.getLogger(__name__)

MATCH_CHUNK_SIZE = 5000
RESOURCE_MATCHES_PATH = "/v3/resource_matches"


class _Poster(Protocol):
    async def post(
        self, path: str, *, params: Optional[dict[str, Any]] = None, json: Any = None
    ) -> Any: ...


async def match_resources(
    controller: _Poster,
    fingerprints: Iterable[ArtifactFingerprint],
    *,
    chunk_size: int = MATCH_CHUNK_SIZE,
) -> set[ArtifactFingerprint]:
    """
    Return the subset of fingerprints whose content the server already has.

    Fingerprints are sent in chunks of chunk_size, one request per chunk.
    Matching is by SHA-1.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")

    candidates = list(fingerprints)
    known: set[str] = set()
    for start in range(0, len(candidates), chunk_size):
        chunk = candidates[start : start + chunk_size]
        response = await controller.post(
            RESOURCE_MATCHES_PATH,
            json={"resources": [fp.to_resource() for fp in chunk]},
        )
        for resource in (response.payload or {}).get("resources", []):
            value = (resource.get("checksum") or {}).get("value")
            if isinstance(value, str):
                known.add(value)

    matched = {fp for fp in candidates if fp.sha1 in known}
    logger.debug(
        "%d resources matched totaling %s",
        len(matched),
        as_ibi(sum(fp.size for fp in matched)),
    )
    return matched
