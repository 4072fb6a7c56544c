from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union


@dataclass(frozen=True, slots=True)
class MatchTypeTemplate:
    """A match type's composition constraints. None means unconstrained."""

    number_of_sides: Optional[int] = None
    number_of_competitors: Optional[int] = None
    match_type_id: Optional[int] = None
    name: str = ""
    slug: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_type_id": self.match_type_id,
            "name": self.name,
            "slug": self.slug,
            "number_of_sides": self.number_of_sides,
            "number_of_competitors": self.number_of_competitors,
        }


@dataclass(frozen=True, slots=True)
class MatchSide:
    wrestlers: Tuple[int, ...] = field(default_factory=tuple)
    tag_teams: Tuple[int, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.wrestlers and not self.tag_teams

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "MatchSide":
        # "tagTeams" / "tagteams" are accepted for payloads produced by match forms.
        tag_teams = None
        for key in ("tag_teams", "tagTeams", "tagteams"):
            if raw.get(key) is not None:
                tag_teams = raw.get(key)
                break
        return cls(
            wrestlers=tuple(int(x) for x in (raw.get("wrestlers") or ())),
            tag_teams=tuple(int(x) for x in (tag_teams or ())),
        )


# A side as supplied by callers: parsed, raw mapping, or anything malformed.
SideInput = Union[MatchSide, Mapping[str, Any], None]
