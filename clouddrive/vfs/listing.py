"""One-level folder listing."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from clouddrive.vfs.paths import display_name, is_folder
from clouddrive.vfs.traversal import child_prefixes

if TYPE_CHECKING:
    from clouddrive.lib.storage.base import ObjectStore

_CATEGORIES: dict[str, tuple[str, ...]] = {
    "image": ("jpg", "jpeg", "png", "gif", "webp", "svg", "bmp", "ico"),
    "video": ("mp4", "mov", "avi", "mkv", "webm", "wmv", "flv"),
    "audio": ("mp3", "wav", "flac", "aac", "ogg", "m4a"),
    "document": ("pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "txt", "md"),
    "archive": ("zip", "rar", "7z", "tar", "gz"),
    "executable": ("exe", "dmg", "apk"),
}
_EXTENSION_CATEGORY = {ext: name for name, exts in _CATEGORIES.items() for ext in exts}

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


@dataclass
class FolderEntry:
    key: str
    name: str


@dataclass
class FileEntry:
    key: str
    name: str
    size: int
    uploaded_at: datetime
    content_type: str | None = None

    @property
    def category(self) -> str:
        return file_category(self.name)

    @property
    def size_display(self) -> str:
        return format_bytes(self.size)


@dataclass
class FolderListing:
    """Immediate children of a folder. Order is whatever the store returned."""

    prefix: str
    folders: list[FolderEntry] = field(default_factory=list)
    files: list[FileEntry] = field(default_factory=list)


async def list_folder(store: ObjectStore, prefix: str = "") -> FolderListing:
    """List the direct sub-folders and files of *prefix*.

    Folders come from the delimiter roll-up, not a recursive scan. Zero-byte
    folder markers never show up as files.
    """
    objects, prefixes = await child_prefixes(store, prefix)
    listing = FolderListing(prefix=prefix)
    listing.folders = [FolderEntry(key=p, name=display_name(p, prefix)) for p in prefixes]
    listing.files = [
        FileEntry(
            key=info.key,
            name=display_name(info.key, prefix),
            size=info.size,
            uploaded_at=info.uploaded_at,
            content_type=info.content_type,
        )
        for info in objects
        if not is_folder(info.key) and info.size > 0
    ]
    return listing


def file_category(name: str) -> str:
    """Classify a file name by extension for icon selection."""
    if "." not in name:
        return "other"
    return _EXTENSION_CATEGORY.get(name.rsplit(".", 1)[-1].lower(), "other")


def format_bytes(size: float, decimals: int = 2) -> str:
    """Render a byte count with 1024-based units, e.g. ``1.5 KB``."""
    if size <= 0:
        return "0 Bytes"
    unit = 0
    while size >= 1024 and unit < len(_SIZE_UNITS) - 1:
        size /= 1024
        unit += 1
    text = f"{size:.{max(decimals, 0)}f}".rstrip("0").rstrip(".") if unit else str(int(size))
    return f"{text} {_SIZE_UNITS[unit]}"
