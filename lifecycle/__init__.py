"""Roster entity lifecycle package.

Public API (v1)
---------------
- LifecycleEngine(repo, now=...)
- derive_status(entity_type, intervals, as_of, member_statuses=None)
- get_entity_type(name)

Lifecycle facts live in the ``lifecycle_intervals`` table (employment,
suspension, injury, retirement, activation). The ``status`` column on every
entity table is a cached projection the engine rewrites after each transition.
"""

from .config import DEFAULT_LIFECYCLE_CONFIG, LifecycleConfig
from .engine import LifecycleEngine
from .status import derive_status
from .types import EntityRef, IntervalKind, Status, Transition, TransitionResult, get_entity_type

__all__ = [
    "DEFAULT_LIFECYCLE_CONFIG",
    "LifecycleConfig",
    "LifecycleEngine",
    "derive_status",
    "EntityRef",
    "IntervalKind",
    "Status",
    "Transition",
    "TransitionResult",
    "get_entity_type",
]
