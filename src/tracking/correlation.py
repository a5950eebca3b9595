# src/tracking/correlation.py
# Correlation ID management
# A correlation ID follows one probe request through the API layer, the pool
# and the log lines it produces, so a stuck /test/hold-tx can be matched
# with the session it left open.

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

# ContextVar keeps one value per request thread (and per asyncio task)
_correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)


def generate_correlation_id() -> str:
    """
    Generate a new correlation ID of the form "req-<16 hex chars>".
    """
    return f"req-{uuid.uuid4().hex[:16]}"


def get_correlation_id() -> Optional[str]:
    """
    Get the correlation ID of the current request context, or None.
    """
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID for the current request context.
    """
    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id.set(None)


@contextmanager
def correlation_context(correlation_id: Optional[str] = None) -> Iterator[str]:
    """
    Run a block under a correlation ID, restoring the previous one afterwards.

    Used by the load driver and background work that runs outside a request.

    Example:
        with correlation_context() as cid:
            logger.info("holding connection")  # logged with cid
    """
    cid = correlation_id or generate_correlation_id()
    token = _correlation_id.set(cid)
    try:
        yield cid
    finally:
        _correlation_id.reset(token)
