from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Type

from .types import Transition


@dataclass(eq=False)
class RosterError(Exception):
    """Structured error for roster lifecycle flows.

    The API layer maps these to HTTP 4xx/5xx while keeping a stable
    machine-readable code for clients.
    """

    message: str
    details: Optional[Any] = None

    code: ClassVar[str] = "ROSTER_ERROR"

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}"

    def to_payload(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


# Error codes (stable API surface)
CANNOT_BE_EMPLOYED = "CANNOT_BE_EMPLOYED"
CANNOT_BE_RELEASED = "CANNOT_BE_RELEASED"
CANNOT_BE_SUSPENDED = "CANNOT_BE_SUSPENDED"
CANNOT_BE_REINSTATED = "CANNOT_BE_REINSTATED"
CANNOT_BE_INJURED = "CANNOT_BE_INJURED"
CANNOT_BE_CLEARED_FROM_INJURY = "CANNOT_BE_CLEARED_FROM_INJURY"
CANNOT_BE_RETIRED = "CANNOT_BE_RETIRED"
CANNOT_BE_UNRETIRED = "CANNOT_BE_UNRETIRED"
CANNOT_BE_ACTIVATED = "CANNOT_BE_ACTIVATED"
CANNOT_BE_DEACTIVATED = "CANNOT_BE_DEACTIVATED"
UNSUPPORTED_TRANSITION = "UNSUPPORTED_TRANSITION"
INTERVAL_CONFLICT = "INTERVAL_CONFLICT"
INTERVAL_NOT_FOUND = "INTERVAL_NOT_FOUND"
CANNOT_JOIN_TAG_TEAM = "CANNOT_JOIN_TAG_TEAM"
CANNOT_JOIN_STABLE = "CANNOT_JOIN_STABLE"
INVALID_MEMBERSHIP = "INVALID_MEMBERSHIP"
MATCH_SIDE_COUNT = "MATCH_SIDE_COUNT"
MATCH_COMPETITOR_COUNT = "MATCH_COMPETITOR_COUNT"


# ---------------------------------------------------------------------------
# Guard failures
# ---------------------------------------------------------------------------


class LifecycleTransitionError(RosterError):
    """A lifecycle guard rejected the transition for the entity's current state."""

    code = "LIFECYCLE_TRANSITION_FAILED"

    @property
    def status(self) -> Optional[str]:
        if isinstance(self.details, dict):
            return self.details.get("status")
        return None


class CannotBeEmployedError(LifecycleTransitionError):
    code = CANNOT_BE_EMPLOYED


class CannotBeReleasedError(LifecycleTransitionError):
    code = CANNOT_BE_RELEASED


class CannotBeSuspendedError(LifecycleTransitionError):
    code = CANNOT_BE_SUSPENDED


class CannotBeReinstatedError(LifecycleTransitionError):
    code = CANNOT_BE_REINSTATED


class CannotBeInjuredError(LifecycleTransitionError):
    code = CANNOT_BE_INJURED


class CannotBeClearedFromInjuryError(LifecycleTransitionError):
    code = CANNOT_BE_CLEARED_FROM_INJURY


class CannotBeRetiredError(LifecycleTransitionError):
    code = CANNOT_BE_RETIRED


class CannotBeUnretiredError(LifecycleTransitionError):
    code = CANNOT_BE_UNRETIRED


class CannotBeActivatedError(LifecycleTransitionError):
    code = CANNOT_BE_ACTIVATED


class CannotBeDeactivatedError(LifecycleTransitionError):
    code = CANNOT_BE_DEACTIVATED


ERROR_BY_TRANSITION: Dict[Transition, Type[LifecycleTransitionError]] = {
    Transition.EMPLOY: CannotBeEmployedError,
    Transition.RELEASE: CannotBeReleasedError,
    Transition.SUSPEND: CannotBeSuspendedError,
    Transition.REINSTATE: CannotBeReinstatedError,
    Transition.INJURE: CannotBeInjuredError,
    Transition.CLEAR_INJURY: CannotBeClearedFromInjuryError,
    Transition.RETIRE: CannotBeRetiredError,
    Transition.UNRETIRE: CannotBeUnretiredError,
    Transition.ACTIVATE: CannotBeActivatedError,
    Transition.DEACTIVATE: CannotBeDeactivatedError,
}


class UnsupportedTransitionError(RosterError, ValueError):
    """The entity type has no such transition (e.g. injuring a title)."""

    code = UNSUPPORTED_TRANSITION


# ---------------------------------------------------------------------------
# Interval store invariants (caller or serialization bugs)
# ---------------------------------------------------------------------------


class ConflictError(RosterError):
    code = INTERVAL_CONFLICT


class NotFoundError(RosterError):
    code = INTERVAL_NOT_FOUND


# ---------------------------------------------------------------------------
# Composite membership
# ---------------------------------------------------------------------------


class MembershipError(RosterError):
    code = INVALID_MEMBERSHIP


class CannotJoinTagTeamError(MembershipError):
    code = CANNOT_JOIN_TAG_TEAM


class CannotJoinStableError(MembershipError):
    code = CANNOT_JOIN_STABLE


class InvalidMembershipError(MembershipError):
    code = INVALID_MEMBERSHIP


# ---------------------------------------------------------------------------
# Match composition
# ---------------------------------------------------------------------------


class MatchCompositionError(RosterError):
    code = "MATCH_COMPOSITION_INVALID"

    @property
    def expected(self) -> Optional[int]:
        return (self.details or {}).get("expected")

    @property
    def actual(self) -> Optional[int]:
        return (self.details or {}).get("actual")


class SideCountError(MatchCompositionError):
    code = MATCH_SIDE_COUNT


class CompetitorCountError(MatchCompositionError):
    code = MATCH_COMPETITOR_COUNT
