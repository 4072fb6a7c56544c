from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LifecycleConfig:
    # A tag team is bookable only with exactly this many current wrestlers.
    tag_team_size: int = 2

    # Minimum weighted size of a stable (wrestlers + tag teams * tag_team_size).
    # Managers travel with a stable but do not count towards it.
    stable_min_members: int = 3


DEFAULT_LIFECYCLE_CONFIG = LifecycleConfig()
