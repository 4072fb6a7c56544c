"""Match composition package.

Public API (v1)
---------------
- validate_match_composition(template, sides)  (pure)
- validate_match(repo, match_type=..., sides=...)  (resolves the seeded catalogue)
"""

from .service import list_match_types, validate_match
from .validator import validate_match_composition

__all__ = [
    "list_match_types",
    "validate_match",
    "validate_match_composition",
]
