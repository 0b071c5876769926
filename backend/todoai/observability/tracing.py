"""Tracing utilities wrapping Opik."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from todoai.core.context import get_owner_id, get_request_id
from todoai.observability import client as opik_client

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from opik.api_objects.trace.trace_client import Trace
else:  # pragma: no cover - typing helper
    Trace = object  # type: ignore[assignment]

logger = logging.getLogger(__name__)


@contextmanager
def trace(name: str, metadata: Optional[Dict[str, Any]] = None) -> Iterator[Optional["Trace"]]:
    """
    Open an Opik trace for the wrapped block.

    Request id and owner id are taken from the request context. When Opik is
    disabled the context yields None and does nothing.
    """
    client = opik_client.get_opik_client()
    span: Optional["Trace"] = None

    if client:
        span_metadata = {k: v for k, v in (metadata or {}).items() if v is not None}
        span_metadata.setdefault("request_id", get_request_id())
        span_metadata.setdefault("owner_id", get_owner_id())
        try:
            span = client.trace(name=name, metadata=span_metadata)
        except Exception as exc:  # pragma: no cover - third-party failure
            logger.debug("Unable to start trace %s: %s", name, exc)

    try:
        yield span
    except Exception as exc:
        if span:
            try:
                span.update(error_info={"exception_type": type(exc).__name__, "message": str(exc)})
            except Exception:  # pragma: no cover
                logger.debug("Failed to attach error to trace %s", name, exc_info=True)
        raise
    finally:
        if span:
            try:
                span.end()
            except Exception:  # pragma: no cover
                logger.debug("Failed to close trace %s", name, exc_info=True)
