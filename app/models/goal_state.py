"""Per-week goal state models."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from app.models.base import CamelModel
from app.models.goal import CarryOver
from app.models.time_period import DayOfWeek


class DailyState(CamelModel):
    """Day assignment of a daily goal inside its week."""

    day_of_week: DayOfWeek
    date_timestamp: Optional[datetime] = None


class GoalState(CamelModel):
    """A goal's status for one ISO week."""

    id: str = Field(alias="_id", serialization_alias="id")
    user_id: str
    year: int
    quarter: int
    week_number: int
    goal_id: str
    is_starred: bool = False
    is_pinned: bool = False
    is_complete: bool = False
    daily: Optional[DailyState] = None
    carry_over: Optional[CarryOver] = None


class GoalStateUpdate(CamelModel):
    """Star / pin / completion update for one week."""

    is_starred: Optional[bool] = None
    is_pinned: Optional[bool] = None
    is_complete: Optional[bool] = None
