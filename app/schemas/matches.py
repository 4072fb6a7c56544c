from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel


class ValidateMatchRequest(BaseModel):
    match_type: Union[int, str]  # id or slug
    # Sides stay loosely typed: an incomplete side is allowed and simply defers validation.
    sides: List[Optional[Dict[str, Any]]] = []
