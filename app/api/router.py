from fastapi import APIRouter

from app.api.routes import composites, matches, roster

api_router = APIRouter()
# Fixed paths first: /api/{entity_type}/... would otherwise shadow them.
api_router.include_router(matches.router)
api_router.include_router(composites.router)
api_router.include_router(roster.router)
