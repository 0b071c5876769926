"""Lazily created Opik client shared by tracing and metrics."""
from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

from todoai.core.config import settings

try:
    from opik import Opik
except ImportError:  # pragma: no cover
    Opik = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

_lock = Lock()
_state: dict = {"client": None, "attempted": False}


def init_opik() -> Optional["Opik"]:
    """Create the Opik client on first use; later calls return the cached result."""
    with _lock:
        if _state["attempted"]:
            return _state["client"]
        _state["attempted"] = True

        if Opik is None or not settings.opik_enabled:
            return None
        if not settings.opik_api_key:
            logger.warning("OPIK_ENABLED is set without OPIK_API_KEY; tracing stays off.")
            return None

        try:
            _state["client"] = Opik(project_name=settings.opik_project, api_key=settings.opik_api_key)
        except Exception as exc:  # pragma: no cover - third-party init
            logger.warning("Opik init failed, tracing disabled: %s", exc)
            return None

    logger.info("Opik tracing enabled for project %s", settings.opik_project)
    return _state["client"]


def get_opik_client() -> Optional["Opik"]:
    return _state["client"] if _state["attempted"] else init_opik()


def reset_opik() -> None:
    """Forget the cached client so settings changes take effect (tests)."""
    with _lock:
        _state["client"] = None
        _state["attempted"] = False
