"""Authorization for mutating endpoints.

Authorization is a single yes/no question asked of each request. The
default answer compares a bearer token with the configured admin token;
deployments with their own session layer pass a different authorizer to
``create_app``.
"""

from __future__ import annotations

import hmac
import inspect
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Union

from litestar.exceptions import TooManyRequestsException

from clouddrive.errors import Unauthorized
from clouddrive.lib.client_ip import get_client_ip
from clouddrive.lib.sliding_window import SlidingWindow

if TYPE_CHECKING:
    from litestar.connection import ASGIConnection
    from litestar.handlers.base import BaseRouteHandler

logger = logging.getLogger(__name__)

Authorizer = Callable[["ASGIConnection"], Union[bool, Awaitable[bool]]]


def bearer_token_authorizer(token: str) -> Authorizer:
    """Build an authorizer accepting ``Authorization: Bearer <token>``.

    An empty *token* rejects every request, so a deployment without a
    configured admin token is read-only.
    """

    def authorize(connection: ASGIConnection) -> bool:
        if not token:
            return False
        header = connection.headers.get("authorization", "")
        if not header.startswith("Bearer "):
            return False
        return hmac.compare_digest(header[7:].encode(), token.encode())

    return authorize


class FailedAuthThrottle:
    """Blocks a client IP after too many failed authorization attempts.

    Only failures are recorded; authorized requests never touch the window.
    """

    def __init__(self, max_failures: int = 10, window: float = 60.0, *, trust_forwarded: bool = True) -> None:
        self.max_failures = max_failures
        self.trust_forwarded = trust_forwarded
        self._window = SlidingWindow(window)

    def client_of(self, connection: ASGIConnection) -> str:
        return get_client_ip(connection, trust_forwarded=self.trust_forwarded)

    def is_blocked(self, ip: str) -> bool:
        return self._window.exceeded(ip, self.max_failures)

    def record_failure(self, ip: str) -> None:
        self._window.record(ip)


async def is_authorized(connection: ASGIConnection) -> bool:
    """Ask the application's authorizer about *connection*."""
    authorizer: Authorizer | None = getattr(connection.app.state, "authorizer", None)
    if authorizer is None:
        return False
    result = authorizer(connection)
    if inspect.isawaitable(result):
        result = await result
    return bool(result)


async def auth_guard(connection: ASGIConnection, _: BaseRouteHandler) -> None:
    """Reject unauthorized requests before the handler runs."""
    throttle: FailedAuthThrottle | None = getattr(connection.app.state, "auth_throttle", None)
    ip = throttle.client_of(connection) if throttle else ""

    if throttle and throttle.is_blocked(ip):
        raise TooManyRequestsException("Too many failed auth attempts")

    if await is_authorized(connection):
        return

    if throttle:
        throttle.record_failure(ip)
    logger.info("Rejected unauthorized %s %s", connection.scope.get("method", ""), connection.url.path)
    raise Unauthorized()
