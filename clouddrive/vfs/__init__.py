"""Virtual folders over a flat object store."""

from clouddrive.vfs.drive import Drive
from clouddrive.vfs.ledger import LedgerReading, SizeLedger
from clouddrive.vfs.operations import BatchResult
from clouddrive.vfs.paths import PathKind

__all__ = ["BatchResult", "Drive", "LedgerReading", "PathKind", "SizeLedger"]
