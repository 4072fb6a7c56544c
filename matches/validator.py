from __future__ import annotations

"""Match composition validation (pure).

Rules, in order:
1. An empty side list passes.
2. If the template constrains sides, ``len(sides)`` must match
   (SideCountError).
3. A side that is empty, missing or not a side mapping is treated as "not
   fully specified yet" and the match passes; field-level required-ness is the
   caller's job.
4. If the template constrains competitors, each wrestler counts 1 and each tag
   team counts ``tag_team_competitor_count``; the total must match
   (CompetitorCountError).
"""

from collections.abc import Mapping
from typing import List, Optional, Sequence

from lifecycle.errors import CompetitorCountError, SideCountError

from .config import DEFAULT_MATCH_CONFIG, MatchConfig
from .types import MatchSide, MatchTypeTemplate, SideInput


def parse_sides(sides: Sequence[SideInput]) -> Optional[List[MatchSide]]:
    parsed: List[MatchSide] = []
    for side in sides:
        if isinstance(side, MatchSide):
            parsed.append(side)
        elif isinstance(side, Mapping):
            try:
                parsed.append(MatchSide.from_mapping(side))
            except (TypeError, ValueError):
                return None
        else:
            return None
        if parsed[-1].is_empty:
            return None
    return parsed


def count_competitors(sides: Sequence[MatchSide], config: MatchConfig = DEFAULT_MATCH_CONFIG) -> int:
    per_team = int(config.tag_team_competitor_count)
    return sum(len(s.wrestlers) + len(s.tag_teams) * per_team for s in sides)


def validate_match_composition(
    template: MatchTypeTemplate,
    sides: Optional[Sequence[SideInput]],
    *,
    config: MatchConfig = DEFAULT_MATCH_CONFIG,
) -> None:
    """Raise SideCountError / CompetitorCountError; return None when the match is valid."""
    if not sides or isinstance(sides, (str, bytes, Mapping)):
        return

    if template.number_of_sides is not None and len(sides) != int(template.number_of_sides):
        raise SideCountError(
            f"Match requires {template.number_of_sides} sides, only {len(sides)} provided",
            details={"expected": int(template.number_of_sides), "actual": len(sides)},
        )

    parsed = parse_sides(sides)
    if parsed is None:
        return

    if template.number_of_competitors is not None:
        total = count_competitors(parsed, config)
        if total != int(template.number_of_competitors):
            raise CompetitorCountError(
                f"Match requires {template.number_of_competitors} competitors, only {total} provided",
                details={"expected": int(template.number_of_competitors), "actual": total},
            )
