"""Optional Pydantic Logfire tracing for the drive.

When ``logfire.enabled`` is set and the ``logfire`` extra is installed, the
ASGI app is instrumented and drive operations open spans; otherwise every
helper here does nothing and callers fall back to stdlib logging.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from clouddrive.config import Settings
    from clouddrive.vfs.operations import BatchResult

_logfire = None
_configured = False


def is_available() -> bool:
    return _configured and _logfire is not None


def configure(settings: Settings) -> None:
    """Set up logfire from ``settings.logfire``; a missing package is not an error."""
    global _logfire, _configured

    options = settings.logfire
    if not options.enabled:
        return

    try:
        import logfire
    except ImportError:
        return

    kwargs: dict[str, Any] = {
        "service_name": options.service_name,
        "send_to_logfire": "if-token-present",
    }
    if options.environment:
        kwargs["environment"] = options.environment
    if options.sample_rate != 1.0:
        kwargs["trace_sample_rate"] = options.sample_rate
    if options.console:
        kwargs["console"] = logfire.ConsoleOptions()

    logfire.configure(**kwargs)
    _logfire = logfire
    _configured = True


def instrument_app(app):
    """Return *app* wrapped in logfire's ASGI middleware when tracing is on."""
    if is_available():
        return _logfire.instrument_asgi(app)
    return app


@contextmanager
def span(name: str, **attrs: Any):
    """Open a logfire span named *name*; yields None when tracing is off."""
    if not is_available():
        yield None
        return
    with _logfire.span(name, **attrs) as current:
        yield current


def batch_outcome(operation: str, result: BatchResult) -> None:
    """Attach the counts of a finished batch operation to the trace."""
    if not is_available():
        return
    level = _logfire.warn if result.failed else _logfire.info
    level(
        "{operation}: {completed} completed, {skipped} skipped, {failed} failed",
        operation=operation,
        completed=len(result.completed),
        skipped=len(result.skipped),
        failed=len(result.failed),
        bytes=result.bytes,
    )


def exception(msg: str, **kwargs: Any) -> bool:
    """Send *msg* with the active traceback to logfire. False means nothing was sent."""
    if not is_available():
        return False
    _logfire.exception(msg, **kwargs)
    return True
