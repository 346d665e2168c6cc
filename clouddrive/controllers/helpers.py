"""Shared helpers for the drive controllers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from litestar import Request

from clouddrive.vfs.listing import format_bytes
from clouddrive.vfs.paths import parent_of

if TYPE_CHECKING:
    from clouddrive.config import Settings
    from clouddrive.vfs.drive import Drive
    from clouddrive.vfs.ledger import LedgerReading
    from clouddrive.vfs.listing import FolderListing
    from clouddrive.vfs.operations import BatchResult


def get_drive(request: Request) -> Drive:
    return request.app.state.drive


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def strip_route_path(value: str) -> str:
    """Path parameters arrive with a leading slash; keys never have one."""
    return value.lstrip("/")


def usage_to_dict(reading: LedgerReading | None, quota_bytes: int) -> dict[str, Any] | None:
    if reading is None:
        return None
    percentage = min(reading.value / quota_bytes * 100, 100.0) if quota_bytes > 0 else 0.0
    return {
        "total_size": reading.value,
        "size_display": format_bytes(reading.value),
        "last_recalculated": reading.as_of.isoformat() if reading.as_of else None,
        "provisional": reading.provisional,
        "quota_bytes": quota_bytes,
        "used_percentage": round(percentage, 2),
    }


def listing_to_dict(listing: FolderListing) -> dict[str, Any]:
    """Serialize a folder listing, folders then files, each sorted by name."""
    prefix = listing.prefix
    return {
        "path": prefix,
        "parent": parent_of(prefix) if prefix else None,
        "folders": [
            {"key": folder.key, "name": folder.name}
            for folder in sorted(listing.folders, key=lambda f: f.name.lower())
        ],
        "files": [
            {
                "key": file.key,
                "name": file.name,
                "size": file.size,
                "size_display": file.size_display,
                "uploaded_at": file.uploaded_at.isoformat(),
                "content_type": file.content_type,
                "category": file.category,
            }
            for file in sorted(listing.files, key=lambda f: f.name.lower())
        ],
    }


def batch_to_dict(result: BatchResult) -> dict[str, Any]:
    return {
        "success": True,
        "completed": result.completed,
        "skipped": result.skipped,
        "bytes": result.bytes,
    }


def content_disposition(disposition: str, key: str) -> str:
    """Build a Content-Disposition value carrying the key's file name.

    Non-ASCII names go in the RFC 5987 ``filename*`` parameter; the plain
    ``filename`` keeps an ASCII fallback for old clients.
    """
    name = key.rsplit("/", 1)[-1]
    fallback = name.encode("ascii", "replace").decode("ascii").replace('"', "'").replace("?", "_")
    return f"{disposition}; filename=\"{fallback}\"; filename*=UTF-8''{quote(name, safe='')}"
