"""Folder conventions over flat keys.

A folder is a key prefix ending in ``/``; a file key never ends in ``/``.
The root folder is the empty string. Everything here is a pure string
transform except :func:`validate_key`, which is the one place external
input is checked before it reaches the store.
"""

from __future__ import annotations

from enum import Enum

from clouddrive.errors import InvalidArgument

SEPARATOR = "/"


class PathKind(Enum):
    FILE = "file"
    FOLDER = "folder"


def is_folder(key: str) -> bool:
    return key.endswith(SEPARATOR)


def kind_of(key: str) -> PathKind:
    return PathKind.FOLDER if is_folder(key) else PathKind.FILE


def as_folder(path: str) -> str:
    """Normalize *path* to a folder path. The root stays empty."""
    if not path or is_folder(path):
        return path
    return path + SEPARATOR


def parent_of(key: str) -> str:
    """Return the folder containing *key* (``""`` for top-level keys)."""
    stripped = key[:-1] if is_folder(key) else key
    idx = stripped.rfind(SEPARATOR)
    return stripped[: idx + 1] if idx != -1 else ""


def last_component(key: str) -> str:
    """Return the final path segment of *key* without a folder slash."""
    return key.rstrip(SEPARATOR).rsplit(SEPARATOR, 1)[-1]


def display_name(key: str, prefix: str) -> str:
    """Return *key* relative to the enclosing *prefix*, trailing slash stripped."""
    name = key[len(prefix):] if prefix and key.startswith(prefix) else key
    return name.rstrip(SEPARATOR)


def ancestors(key: str) -> list[str]:
    """Return every folder path above *key*, outermost first.

    ``ancestors("a/b/c.txt") == ["a/", "a/b/"]``; a folder key includes
    itself: ``ancestors("a/b/") == ["a/", "a/b/"]``.
    """
    parts = key.split(SEPARATOR)[:-1]
    folders = []
    current = ""
    for part in parts:
        current += part + SEPARATOR
        folders.append(current)
    return folders


def relocate(key: str, source: str, destination: str) -> str:
    """Rewrite *key* from under *source* to under *destination*."""
    return destination + key[len(source):]


def validate_key(key: str, *, field: str = "key") -> str:
    """Check an externally supplied key and return it unchanged.

    Raises:
        InvalidArgument: for empty keys, a leading slash, empty segments,
            ``.``/``..`` segments, or NUL characters.
    """
    if not isinstance(key, str) or not key:
        raise InvalidArgument(f"Missing {field}")
    if "\x00" in key:
        raise InvalidArgument(f"Invalid {field}: contains NUL")
    if key.startswith(SEPARATOR):
        raise InvalidArgument(f"Invalid {field}: must not start with '/'")
    body = key[:-1] if is_folder(key) else key
    for segment in body.split(SEPARATOR):
        if segment in ("", ".", ".."):
            raise InvalidArgument(f"Invalid {field}: {key!r}")
    return key


def validate_folder(path: str, *, field: str = "path") -> str:
    """Validate a destination folder. The root (``""``) is allowed."""
    if path == "":
        return path
    return as_folder(validate_key(path, field=field))
