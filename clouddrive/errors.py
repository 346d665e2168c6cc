"""Error taxonomy shared by the storage adapters, the VFS layer and the HTTP surface."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from clouddrive.vfs.operations import BatchResult


class DriveError(Exception):
    """Base class for all errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message}


class Unauthorized(DriveError):
    """A mutation was attempted without authorization."""

    status_code = 403

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class NotFound(DriveError):
    """The target key does not exist."""

    status_code = 404

    def __init__(self, key: str) -> None:
        super().__init__(f"Object not found: {key}")
        self.key = key


class InvalidArgument(DriveError):
    """A key, path or request body is empty or malformed."""

    status_code = 400


class StoreUnavailable(DriveError):
    """An object store or counter store call failed.

    Never retried by the core; the caller decides what to do.
    """

    status_code = 503


class PartialFailure(DriveError):
    """A batch or recursive operation finished some targets but not all."""

    status_code = 502

    def __init__(self, operation: str, result: BatchResult) -> None:
        failed = len(result.failed)
        super().__init__(f"{operation} failed for {failed} of {failed + len(result.completed)} targets")
        self.operation = operation
        self.result = result

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.message,
            "completed": list(self.result.completed),
            "skipped": list(self.result.skipped),
            "failed": dict(self.result.failed),
        }
