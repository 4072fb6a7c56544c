from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class TransitionRequest(BaseModel):
    at: Optional[str] = None  # YYYY-MM-DD HH:MM:SS (or ISO-8601); defaults to now
