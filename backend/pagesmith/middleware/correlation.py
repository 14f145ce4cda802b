"""Correlation ID middleware for intake request tracing.

The pipeline runs as a background task of the intake request, so the
correlation ID assigned here also tags every log line of that pipeline run.
"""

import uuid

from asgi_correlation_id import CorrelationIdMiddleware
from asgi_correlation_id.context import correlation_id
from fastapi import FastAPI


def setup_correlation_middleware(app: FastAPI) -> None:
    """Add X-Request-ID handling to the app.

    A client-supplied X-Request-ID is echoed back; otherwise a new UUID is
    generated.
    """
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name="X-Request-ID",
        generator=lambda: str(uuid.uuid4()),
        validator=None,
    )


def get_correlation_id() -> str | None:
    """Return the current request's correlation ID, or None outside a request."""
    return correlation_id.get(None)


__all__ = ["setup_correlation_middleware", "get_correlation_id"]
