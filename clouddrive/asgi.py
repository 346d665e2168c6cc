"""ASGI entry point: ``hypercorn clouddrive.asgi:app``."""

from clouddrive.app_factory import create_app
from clouddrive.lib import observability

app = observability.instrument_app(create_app())
