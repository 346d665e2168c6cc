"""Client address resolution for per-client throttling."""

from litestar.connection import ASGIConnection


def get_client_ip(connection: ASGIConnection, *, trust_forwarded: bool = True) -> str:
    """Return the client's IP address.

    With *trust_forwarded*, the first ``X-Forwarded-For`` hop wins; only
    enable that behind a proxy which overwrites the header.
    """
    if trust_forwarded:
        forwarded = connection.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    client = connection.scope.get("client")
    if client:
        return client[0]
    return "unknown"
