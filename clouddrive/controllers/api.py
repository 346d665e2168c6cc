"""Authorized JSON API: uploads and folder-aware mutations."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from litestar import Controller, Request, get, post
from litestar.datastructures import UploadFile
from litestar.enums import RequestEncodingType
from litestar.exceptions import HTTPException
from litestar.params import Body
from litestar.response import Response
from litestar.status_codes import HTTP_202_ACCEPTED, HTTP_413_REQUEST_ENTITY_TOO_LARGE
from pydantic import BaseModel, ConfigDict, Field

from clouddrive.auth.guards import auth_guard
from clouddrive.controllers.helpers import batch_to_dict, get_app_settings, get_drive, usage_to_dict
from clouddrive.errors import InvalidArgument

logger = logging.getLogger(__name__)


# --- Request models ---


class CreateFolderRequest(BaseModel):
    path: str


class RenameRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    old_key: str = Field(alias="oldKey")
    new_key: str = Field(alias="newKey")


class KeysRequest(BaseModel):
    keys: list[str] = Field(default_factory=list)


class TransferRequest(BaseModel):
    keys: list[str] = Field(default_factory=list)
    destination: str = ""


class UploadController(Controller):
    path = "/upload"
    guards = [auth_guard]

    @post("/", status_code=200)
    async def upload(
        self,
        request: Request,
        data: Annotated[dict[str, Any], Body(media_type=RequestEncodingType.MULTI_PART)],
    ) -> dict:
        """Store the multipart ``file`` under the folder named by ``path``.

        An existing object with the same key is replaced.
        """
        upload = data.get("file")
        if not isinstance(upload, UploadFile):
            raise InvalidArgument("No file uploaded")

        content = await upload.read()
        if not content:
            raise InvalidArgument("No file uploaded")

        max_size = get_app_settings(request).storage.max_upload_size
        if len(content) > max_size:
            raise HTTPException(
                status_code=HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large: {upload.filename}",
            )

        folder = data.get("path") or ""
        if not isinstance(folder, str):
            raise InvalidArgument("Invalid path")

        info = await get_drive(request).upload(
            folder.lstrip("/"),
            upload.filename or "",
            content,
            upload.content_type or None,
        )
        return {"success": True, "key": info.key, "size": info.size}


class DriveApiController(Controller):
    path = "/api"
    guards = [auth_guard]

    @post("/create-folder", status_code=200)
    async def create_folder(self, request: Request, data: CreateFolderRequest) -> dict:
        key = await get_drive(request).create_folder(data.path)
        return {"success": True, "key": key}

    @post("/rename", status_code=200)
    async def rename(self, request: Request, data: RenameRequest) -> dict:
        result = await get_drive(request).rename(data.old_key, data.new_key)
        return batch_to_dict(result)

    @post("/delete", status_code=200)
    async def delete(self, request: Request, data: KeysRequest) -> dict:
        result = await get_drive(request).delete(data.keys)
        return batch_to_dict(result)

    @post("/move", status_code=200)
    async def move(self, request: Request, data: TransferRequest) -> dict:
        result = await get_drive(request).move(data.keys, data.destination)
        return batch_to_dict(result)

    @post("/copy", status_code=200)
    async def copy(self, request: Request, data: TransferRequest) -> dict:
        result = await get_drive(request).copy(data.keys, data.destination)
        return batch_to_dict(result)

    @post("/size", status_code=200)
    async def size(self, request: Request, data: KeysRequest) -> dict:
        """Total bytes under the given keys; folders are measured recursively."""
        total = await get_drive(request).measure(data.keys)
        return {"success": True, "size": total}

    @get("/list-all-folders")
    async def list_all_folders(self, request: Request) -> dict:
        return {"success": True, "folders": await get_drive(request).all_folders()}

    @get("/folder-tree")
    async def folder_tree(self, request: Request) -> dict:
        return {"success": True, "tree": await get_drive(request).folder_tree()}

    @get("/usage")
    async def usage(self, request: Request) -> dict:
        reading = await get_drive(request).usage()
        quota = get_app_settings(request).accounting.quota_bytes
        return {"success": True, "usage": usage_to_dict(reading, quota)}

    @post("/reconcile")
    async def reconcile(self, request: Request) -> Response:
        if not get_drive(request).reconcile_later():
            raise InvalidArgument("Size accounting is disabled")
        logger.info("Reconciliation requested")
        return Response(content={"success": True, "scheduled": True}, status_code=HTTP_202_ACCEPTED)
