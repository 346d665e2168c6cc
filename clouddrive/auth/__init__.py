from clouddrive.auth.guards import (
    Authorizer,
    FailedAuthThrottle,
    auth_guard,
    bearer_token_authorizer,
    is_authorized,
)

__all__ = [
    "Authorizer",
    "FailedAuthThrottle",
    "auth_guard",
    "bearer_token_authorizer",
    "is_authorized",
]
