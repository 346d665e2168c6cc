"""Application factory: wires stores, the ledger and controllers into Litestar."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from litestar import Litestar
from litestar.exceptions import HTTPException

from clouddrive.auth.guards import Authorizer, FailedAuthThrottle, bearer_token_authorizer
from clouddrive.config import Settings, get_settings
from clouddrive.controllers.api import DriveApiController, UploadController
from clouddrive.controllers.browse import BrowseController
from clouddrive.errors import DriveError
from clouddrive.lib import observability
from clouddrive.lib.counters import CounterStore, create_counter_store
from clouddrive.lib.deferred import DeferredTasks
from clouddrive.lib.exceptions import (
    drive_error_handler,
    http_exception_handler,
    internal_server_error_handler,
)
from clouddrive.lib.storage import ObjectStore, create_object_store
from clouddrive.vfs.drive import Drive
from clouddrive.vfs.ledger import SizeLedger

logger = logging.getLogger(__name__)

EXCEPTION_HANDLERS: dict[type[Exception], Any] = {
    DriveError: drive_error_handler,
    HTTPException: http_exception_handler,
    Exception: internal_server_error_handler,
}

# Multipart framing on top of the largest accepted file
_MULTIPART_OVERHEAD = 64 * 1024

_UNSET: Any = object()


def build_drive(
    settings: Settings,
    *,
    store: ObjectStore | None = None,
    counters: CounterStore | None = _UNSET,
    deferred: DeferredTasks | None = None,
) -> Drive:
    """Create a Drive from configuration.

    *store* and *counters* override the configured backends; pass
    ``counters=None`` to run without size accounting.
    """
    if store is None:
        store = create_object_store(settings.storage)
    if counters is _UNSET:
        counters = create_counter_store(settings.counters)
    if deferred is None:
        deferred = DeferredTasks()

    ledger = None
    if counters is not None:
        ledger = SizeLedger(
            counters,
            store,
            deferred,
            stale_after=timedelta(hours=settings.accounting.stale_after_hours),
        )
    else:
        logger.info("Size accounting disabled")

    return Drive(store, deferred, ledger)


async def close_drive(drive: Drive, timeout: float | None = None) -> None:
    """Let deferred work finish, then release the stores."""
    if not await drive.deferred.drain(timeout):
        logger.warning("Shutting down with %d deferred task(s) still pending", drive.deferred.pending)
    if drive.ledger is not None:
        await drive.ledger.counters.close()
    await drive.store.close()


def create_app(
    settings: Settings | None = None,
    *,
    store: ObjectStore | None = None,
    counters: CounterStore | None = _UNSET,
    authorizer: Authorizer | None = None,
) -> Litestar:
    """Create and configure the Litestar application.

    Args:
        settings: Defaults to :func:`get_settings`.
        store: Object store to serve instead of the configured backend.
        counters: Counter store instead of the configured one; ``None``
            disables size accounting.
        authorizer: Decides whether a request may mutate the drive.
            Defaults to bearer-token auth against the configured admin token.
    """
    settings = settings or get_settings()
    observability.configure(settings)

    drive = build_drive(settings, store=store, counters=counters)
    if authorizer is None:
        if not settings.effective_admin_token:
            logger.warning("No admin token configured; all mutating endpoints will return 403")
        authorizer = bearer_token_authorizer(settings.effective_admin_token)

    async def on_shutdown(_app: Litestar) -> None:
        """Flush pending size updates and close the stores."""
        await close_drive(drive, settings.deferred.shutdown_timeout)

    app = Litestar(
        on_shutdown=[on_shutdown],
        route_handlers=[BrowseController, UploadController, DriveApiController],
        exception_handlers=EXCEPTION_HANDLERS,
        request_max_body_size=settings.storage.max_upload_size + _MULTIPART_OVERHEAD,
        debug=settings.debug,
    )

    app.state.settings = settings
    app.state.drive = drive
    app.state.authorizer = authorizer
    app.state.auth_throttle = FailedAuthThrottle(
        settings.auth.max_failed_attempts,
        settings.auth.failed_attempt_window,
        trust_forwarded=settings.auth.trust_forwarded_for,
    )
    return app
