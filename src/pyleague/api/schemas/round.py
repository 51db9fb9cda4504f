from __future__ import annotations

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field


class RoundResponse(BaseModel):
    round_id: int
    league_id: int
    number: int
    name: str
    start_date: datetime
    end_date: datetime
    lock_time: datetime | None
    transfers_open: bool
    is_completed: bool
    state: str
    seconds_until_lock: float | None = None


class CompletionResponse(BaseModel):
    round_id: int
    scored_team_ids: List[int] = Field(default_factory=list)
    skipped_team_ids: List[int] = Field(default_factory=list)
    failed_team_ids: List[int] = Field(default_factory=list)
    missing_stats: Dict[int, List[int]] = Field(default_factory=dict)
