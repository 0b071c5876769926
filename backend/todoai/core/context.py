"""Per-request context shared with log records and traces."""
from __future__ import annotations

from contextvars import ContextVar

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
owner_id_ctx_var: ContextVar[str | None] = ContextVar("owner_id", default=None)


def get_request_id() -> str | None:
    return request_id_ctx_var.get()


def get_owner_id() -> str | None:
    """Return the authenticated owner of the current request, if resolved."""
    return owner_id_ctx_var.get()


def bind_owner_id(owner_id: str | None) -> None:
    """Attach the authenticated owner to the running request context."""
    owner_id_ctx_var.set(owner_id)
