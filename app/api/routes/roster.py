from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter

import roster_service
from app.schemas.common import TransitionRequest
from app.schemas.roster import CreatePersonRequest, CreateTitleRequest, CreateWrestlerRequest
from app.services.roster_facade import _open_engine, _roster_http_error

router = APIRouter()
logger = logging.getLogger(__name__)


def _create(entity_type: str, *, name: str, fields=None, started_at: Optional[str] = None):
    with _open_engine() as engine:
        return roster_service.create_entity(
            engine, entity_type, name=name, fields=fields, started_at=started_at
        )


@router.post("/api/wrestlers")
async def api_create_wrestler(req: CreateWrestlerRequest):
    try:
        return {"ok": True, "entity": _create("wrestler", name=req.name, fields=req.fields(), started_at=req.started_at)}
    except Exception as exc:
        raise _roster_http_error(exc)


@router.post("/api/managers")
async def api_create_manager(req: CreatePersonRequest):
    try:
        return {"ok": True, "entity": _create("manager", name=req.name, fields=req.fields(), started_at=req.started_at)}
    except Exception as exc:
        raise _roster_http_error(exc)


@router.post("/api/referees")
async def api_create_referee(req: CreatePersonRequest):
    try:
        return {"ok": True, "entity": _create("referee", name=req.name, fields=req.fields(), started_at=req.started_at)}
    except Exception as exc:
        raise _roster_http_error(exc)


@router.post("/api/titles")
async def api_create_title(req: CreateTitleRequest):
    try:
        return {"ok": True, "entity": _create("title", name=req.name, started_at=req.started_at)}
    except Exception as exc:
        raise _roster_http_error(exc)


@router.get("/api/{entity_type}")
async def api_list_entities(entity_type: str, status: Optional[str] = None):
    """List live entities of one type, optionally filtered by status label."""
    try:
        with _open_engine() as engine:
            rows = engine.repo.list_entities(entity_type, status=status)
        return {"count": len(rows), "status": status, "entities": rows}
    except Exception as exc:
        raise _roster_http_error(exc)


@router.get("/api/{entity_type}/{entity_id}")
async def api_get_entity(entity_type: str, entity_id: int):
    try:
        with _open_engine() as engine:
            return roster_service.get_entity_detail(engine, entity_type, entity_id)
    except Exception as exc:
        raise _roster_http_error(exc)


@router.delete("/api/{entity_type}/{entity_id}")
async def api_delete_entity(entity_type: str, entity_id: int):
    try:
        with _open_engine() as engine:
            roster_service.delete_entity(engine, entity_type, entity_id)
        return {"ok": True}
    except Exception as exc:
        raise _roster_http_error(exc)


@router.post("/api/{entity_type}/{entity_id}/restore")
async def api_restore_entity(entity_type: str, entity_id: int):
    try:
        with _open_engine() as engine:
            return {"ok": True, "entity": roster_service.restore_entity(engine, entity_type, entity_id)}
    except Exception as exc:
        raise _roster_http_error(exc)


@router.post("/api/{entity_type}/{entity_id}/{transition}")
async def api_transition(entity_type: str, entity_id: int, transition: str, req: Optional[TransitionRequest] = None):
    """Run one lifecycle transition (employ, release, suspend, ..., deactivate)."""
    at = req.at if req is not None else None
    try:
        with _open_engine() as engine:
            result = engine.transition(entity_type, entity_id, transition, at=at)
        return {"ok": True, "result": result.to_dict()}
    except Exception as exc:
        raise _roster_http_error(exc)
