from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MatchConfig:
    # Competitors contributed by one tag team when counting a match's participants.
    tag_team_competitor_count: int = 2


DEFAULT_MATCH_CONFIG = MatchConfig()
