from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
import state
from app.api.router import api_router
from roster_repo import RosterRepo

logger = logging.getLogger(__name__)

app = FastAPI(title="Roster Lifecycle Service")

_STATE_CHANGING_METHODS = {"POST", "DELETE"}


@app.on_event("startup")
def _startup_init_state() -> None:
    # 1) DB path from env (no default db file)
    # 2) schema + seed rows once per process (idempotent)
    db_path = os.environ.get(config.DB_PATH_ENV)
    if not db_path:
        raise RuntimeError(f"{config.DB_PATH_ENV} is required (no default db_path).")
    state.set_db_path(db_path)

    with RosterRepo(db_path, now=state.get_clock()) as repo:
        repo.init_db()
    logger.info("ROSTER_DB_READY path=%s", db_path)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def _auth_guard_middleware(request: Request, call_next):
    """Optional admin guard.

    If ROSTER_ADMIN_TOKEN is configured, require it on state-changing API calls.
    Runs before any route, so a rejected caller never reaches the lifecycle engine.
    """
    required_token = (os.environ.get(config.ADMIN_TOKEN_ENV) or "").strip()
    if not required_token:
        return await call_next(request)

    path = request.url.path or ""
    method = (request.method or "GET").upper()
    if method not in _STATE_CHANGING_METHODS or not path.startswith("/api/"):
        return await call_next(request)

    # Read-only validation stays open.
    if path in {"/api/matches/validate"}:
        return await call_next(request)

    provided = (request.headers.get("X-Admin-Token") or "").strip()
    if provided != required_token:
        return JSONResponse(status_code=401, content={"detail": "Unauthorized: invalid X-Admin-Token"})

    return await call_next(request)


app.include_router(api_router)
