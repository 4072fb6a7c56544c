from __future__ import annotations

from fastapi import APIRouter

from membership import service as membership_service
from app.schemas.roster import (
    CreateStableRequest,
    CreateTagTeamRequest,
    ReplacePartnerRequest,
    StableMemberRequest,
)
from app.services.roster_facade import _open_engine, _roster_http_error

router = APIRouter()


@router.post("/api/tag-teams")
async def api_create_tag_team(req: CreateTagTeamRequest):
    try:
        with _open_engine() as engine:
            team = membership_service.create_tag_team(
                engine,
                name=req.name,
                wrestler_ids=req.wrestler_ids,
                started_at=req.started_at,
                signature_move=req.signature_move,
            )
        return {"ok": True, "entity": team}
    except Exception as exc:
        raise _roster_http_error(exc)


@router.post("/api/tag-teams/{tag_team_id}/partners/replace")
async def api_replace_tag_team_partner(tag_team_id: int, req: ReplacePartnerRequest):
    try:
        with _open_engine() as engine:
            team = membership_service.replace_tag_team_partner(
                engine,
                tag_team_id,
                old_wrestler_id=req.old_wrestler_id,
                new_wrestler_id=req.new_wrestler_id,
                at=req.at,
            )
        return {"ok": True, "entity": team}
    except Exception as exc:
        raise _roster_http_error(exc)


@router.post("/api/stables")
async def api_create_stable(req: CreateStableRequest):
    try:
        with _open_engine() as engine:
            stable = membership_service.create_stable(
                engine,
                name=req.name,
                wrestler_ids=req.wrestler_ids,
                tag_team_ids=req.tag_team_ids,
                manager_ids=req.manager_ids,
                started_at=req.started_at,
            )
        return {"ok": True, "entity": stable}
    except Exception as exc:
        raise _roster_http_error(exc)


@router.post("/api/stables/{stable_id}/members")
async def api_add_stable_member(stable_id: int, req: StableMemberRequest):
    try:
        with _open_engine() as engine:
            stable = membership_service.add_stable_member(
                engine, stable_id, member_type=req.member_type, member_id=req.member_id, at=req.at
            )
        return {"ok": True, "entity": stable}
    except Exception as exc:
        raise _roster_http_error(exc)


@router.delete("/api/stables/{stable_id}/members/{member_type}/{member_id}")
async def api_remove_stable_member(stable_id: int, member_type: str, member_id: int):
    try:
        with _open_engine() as engine:
            stable = membership_service.remove_stable_member(
                engine, stable_id, member_type=member_type, member_id=member_id
            )
        return {"ok": True, "entity": stable}
    except Exception as exc:
        raise _roster_http_error(exc)
