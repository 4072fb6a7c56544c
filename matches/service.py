from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from .config import DEFAULT_MATCH_CONFIG, MatchConfig
from . import repo as match_repo
from .types import MatchSide, SideInput
from .validator import count_competitors, parse_sides, validate_match_composition

logger = logging.getLogger(__name__)


def list_match_types(repo: Any) -> List[Dict[str, Any]]:
    with repo.transaction() as cur:
        return [t.to_dict() for t in match_repo.list_match_types(cur)]


def _check_competitors_exist(repo: Any, sides: Sequence[MatchSide]) -> None:
    # Competitors must be live roster rows; unknown ids raise KeyError like any other lookup.
    for side in sides:
        for wid in side.wrestlers:
            repo.get_entity("wrestler", wid)
        for tid in side.tag_teams:
            repo.get_entity("tag_team", tid)


def validate_match(
    repo: Any,
    *,
    match_type: int | str,
    sides: Optional[Sequence[SideInput]],
    config: MatchConfig = DEFAULT_MATCH_CONFIG,
) -> Dict[str, Any]:
    """Resolve ``match_type`` (id or slug) and validate the proposed sides.

    Raises KeyError for an unknown match type or competitor, and
    SideCountError / CompetitorCountError for a composition mismatch.
    """
    with repo.transaction() as cur:
        template = match_repo.get_match_type(cur, match_type)

    side_list = list(sides or [])
    parsed = parse_sides(side_list) or []
    _check_competitors_exist(repo, parsed)
    validate_match_composition(template, side_list, config=config)

    logger.debug("MATCH_VALIDATED type=%s sides=%d", template.slug, len(side_list))
    return {
        "valid": True,
        "match_type": template.to_dict(),
        "sides": len(side_list),
        "competitors": count_competitors(parsed, config),
    }
