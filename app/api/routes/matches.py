from __future__ import annotations

from fastapi import APIRouter

from matches import list_match_types, validate_match
from app.schemas.matches import ValidateMatchRequest
from app.services.roster_facade import _open_engine, _roster_http_error

router = APIRouter()


@router.get("/api/match-types")
async def api_match_types():
    try:
        with _open_engine() as engine:
            types = list_match_types(engine.repo)
        return {"count": len(types), "match_types": types}
    except Exception as exc:
        raise _roster_http_error(exc)


@router.post("/api/matches/validate")
async def api_validate_match(req: ValidateMatchRequest):
    """Check a proposed match's sides against its match type (422 on a count mismatch)."""
    try:
        with _open_engine() as engine:
            return validate_match(engine.repo, match_type=req.match_type, sides=req.sides)
    except Exception as exc:
        raise _roster_http_error(exc)
