from __future__ import annotations

import contextlib
import logging
from typing import Iterator

from fastapi import HTTPException

import state
from lifecycle.engine import LifecycleEngine
from lifecycle.errors import (
    ConflictError,
    LifecycleTransitionError,
    MatchCompositionError,
    MembershipError,
    NotFoundError,
    RosterError,
)
from roster_repo import RosterRepo

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def _open_engine() -> Iterator[LifecycleEngine]:
    """One repo (connection) per request; the clock comes from process state."""
    with RosterRepo(state.get_db_path()) as repo:
        yield LifecycleEngine(repo, now=state.get_clock())


def _status_for(exc: Exception) -> int:
    if isinstance(exc, (LifecycleTransitionError, MembershipError)):
        return 409
    if isinstance(exc, MatchCompositionError):
        return 422
    if isinstance(exc, (ConflictError, NotFoundError)):
        # Store invariants only break on a serialization bug.
        return 500
    if isinstance(exc, KeyError):
        return 404
    if isinstance(exc, ValueError):
        return 400
    return 500


def _roster_http_error(exc: Exception) -> HTTPException:
    status_code = _status_for(exc)
    if isinstance(exc, RosterError):
        detail = exc.to_payload()
    elif isinstance(exc, KeyError):
        detail = {"code": "NOT_FOUND", "message": str(exc.args[0]) if exc.args else "not found", "details": None}
    elif isinstance(exc, ValueError):
        detail = {"code": "INVALID_REQUEST", "message": str(exc), "details": None}
    else:
        detail = {"code": "INTERNAL_ERROR", "message": f"{type(exc).__name__}: {exc}", "details": None}
    if status_code >= 500:
        logger.error("ROSTER_API_ERROR code=%s", detail["code"], exc_info=exc)
    return HTTPException(status_code=status_code, detail=detail)
