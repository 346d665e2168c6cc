"""Public read-only routes: folder listings and object downloads."""

from __future__ import annotations

import logging

from litestar import Controller, Request, get
from litestar.response import Response

from clouddrive.controllers.helpers import (
    content_disposition,
    get_app_settings,
    get_drive,
    listing_to_dict,
    strip_route_path,
    usage_to_dict,
)

logger = logging.getLogger(__name__)


class BrowseController(Controller):
    """Folder views and file delivery. No authorization required."""

    path = "/"

    @get(["/", "/{folder:path}"])
    async def list_folder(self, request: Request, folder: str = "") -> dict:
        """List a folder's direct children together with storage usage.

        A missing or stale size counter schedules a background
        reconciliation; the response reports whatever is known now.
        """
        drive = get_drive(request)
        listing = await drive.list(strip_route_path(folder))
        reading = await drive.usage()

        content = listing_to_dict(listing)
        content["usage"] = usage_to_dict(reading, get_app_settings(request).accounting.quota_bytes)
        return content

    @get("/preview/{key:path}")
    async def preview(self, request: Request, key: str) -> Response:
        return await self._deliver(request, key, "inline")

    @get("/download/{key:path}")
    async def download(self, request: Request, key: str) -> Response:
        return await self._deliver(request, key, "attachment")

    async def _deliver(self, request: Request, key: str, disposition: str) -> Response:
        stored = await get_drive(request).read(strip_route_path(key))
        headers = {"Content-Disposition": content_disposition(disposition, stored.key)}
        if stored.info.etag:
            etag = stored.info.etag.strip('"')
            headers["ETag"] = f'"{etag}"'
        return Response(
            content=stored.body,
            media_type=stored.content_type or "application/octet-stream",
            headers=headers,
        )
