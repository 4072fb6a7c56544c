from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class CreateWrestlerRequest(BaseModel):
    name: str
    height_in: Optional[int] = None
    weight_lb: Optional[int] = None
    hometown: Optional[str] = None
    signature_move: Optional[str] = None
    started_at: Optional[str] = None  # employ immediately when given

    def fields(self) -> Dict[str, Any]:
        return {
            "height_in": self.height_in,
            "weight_lb": self.weight_lb,
            "hometown": self.hometown,
            "signature_move": self.signature_move,
        }


class CreatePersonRequest(BaseModel):
    """Managers and referees."""

    name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    started_at: Optional[str] = None

    def fields(self) -> Dict[str, Any]:
        return {"first_name": self.first_name, "last_name": self.last_name}


class CreateTitleRequest(BaseModel):
    name: str
    started_at: Optional[str] = None  # activate immediately when given


class CreateTagTeamRequest(BaseModel):
    name: str
    wrestler_ids: List[int]
    signature_move: Optional[str] = None
    started_at: Optional[str] = None


class CreateStableRequest(BaseModel):
    name: str
    wrestler_ids: List[int] = []
    tag_team_ids: List[int] = []
    manager_ids: List[int] = []
    started_at: Optional[str] = None


class ReplacePartnerRequest(BaseModel):
    old_wrestler_id: int
    new_wrestler_id: int
    at: Optional[str] = None


class StableMemberRequest(BaseModel):
    member_type: str  # wrestler | tag_team | manager
    member_id: int
    at: Optional[str] = None
