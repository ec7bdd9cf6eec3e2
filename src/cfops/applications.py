"""Application bits upload with resource matching."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Awaitable, Callable, Optional

from cfops.config import OperationTimeouts
from cfops.controller import CloudFoundryController
from cfops.errors import ValidationError
from cfops.models import UploadBitsRequest, check
from cfops.operation import from_package, wait_for_resource
from cfops.upload import (
    BufferPool,
    build_archive,
    dedupe_by_hash,
    fingerprint_all,
    match_resources,
)
from cfops.util.lookup import expect_single
from cfops.util.size import as_ibi

logger = logging.getLogger(__name__)

IncludeFilter = Callable[[str], bool]


class Applications:
    """Application operations scoped to a space."""

    def __init__(
        self,
        controller: CloudFoundryController,
        space_id: str,
        *,
        pool: Optional[BufferPool] = None,
        timeouts: Optional[OperationTimeouts] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._controller = controller
        self._space_id = space_id
        self._pool = pool or BufferPool()
        self._timeouts = timeouts or OperationTimeouts()
        self._sleep = sleep

    async def upload_bits(
        self,
        request: UploadBitsRequest,
        include: Optional[IncludeFilter] = None,
    ) -> str:
        """
        Upload application bits and wait for the package to be ready.

        Files whose content the server already holds are listed as matched
        resources instead of being sent. include, when given, is called with
        each relative path and may exclude entries from the upload.

        Returns:
            The package guid.
        """
        check(request)
        if not os.path.exists(request.path):
            raise ValidationError("path", f"{request.path} does not exist")

        application = await expect_single(
            self._controller.list_v3(
                "/v3/apps", {"names": request.application_name, "space_guids": self._space_id}
            ),
            "Application",
            request.application_name,
        )

        fingerprints = await asyncio.to_thread(fingerprint_all, request.path, self._pool)
        if include is not None:
            fingerprints = [fp for fp in fingerprints if include(fp.path)]
        matched = await match_resources(
            self._controller, dedupe_by_hash(fingerprints).values()
        )
        matched_hashes = {fp.sha1 for fp in matched}
        resources = [fp for fp in fingerprints if fp.sha1 in matched_hashes]
        skipped = {fp.path for fp in resources}

        def accept(path: str) -> bool:
            if path in skipped:
                return False
            return include is None or include(path)

        archive = await asyncio.to_thread(build_archive, request.path, accept)
        try:
            logger.debug(
                "Uploading %s for %s (%d matched resource(s))",
                as_ibi(os.path.getsize(archive)),
                request.application_name,
                len(resources),
            )
            created = await self._controller.post(
                "/v3/packages",
                json={
                    "type": "bits",
                    "relationships": {"app": {"data": {"guid": application.id}}},
                },
            )
            package_id = created.payload["guid"]

            with open(archive, "rb") as bits:
                uploaded = await self._controller.post(
                    f"/v3/packages/{package_id}/upload",
                    data={"resources": json.dumps([fp.to_resource() for fp in resources])},
                    files={"bits": ("application.zip", bits, "application/zip")},
                )
        finally:
            os.remove(archive)

        await wait_for_resource(
            self._controller,
            f"/v3/packages/{package_id}",
            from_package,
            timeouts=self._timeouts.with_completion(request.completion_timeout),
            initial=uploaded.payload,
            sleep=self._sleep,
        )
        return package_id
