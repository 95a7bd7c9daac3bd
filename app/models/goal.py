"""Goal model definitions (quarterly, weekly, daily and adhoc goals)."""
from datetime import datetime
from enum import IntEnum
from typing import Literal, Optional

from pydantic import Field

from app.models.base import CamelModel
from app.models.time_period import DayOfWeek


class GoalDepth(IntEnum):
    """Hierarchy level of a goal."""

    ADHOC = -1
    QUARTERLY = 0
    WEEKLY = 1
    DAILY = 2


class CarryOverSource(CamelModel):
    """Provenance link of a carried-over copy."""

    previous_goal_id: str
    root_goal_id: str


class CarryOver(CamelModel):
    """Carry-over record attached to goals copied forward."""

    type: Literal["week"] = "week"
    num_weeks: int = Field(default=1, ge=1)
    from_goal: CarryOverSource


class AdhocInfo(CamelModel):
    """Week (and optional day) label of an unscheduled goal."""

    week_number: int = Field(ge=1, le=53)
    day_of_week: Optional[DayOfWeek] = None
    due_date: Optional[datetime] = None
    domain_id: Optional[str] = None


class GoalBase(CamelModel):
    """Base goal fields."""

    title: str
    details: Optional[str] = None
    domain_id: Optional[str] = None


class GoalCreate(GoalBase):
    """Goal creation model.

    ``week_number`` is required for weekly, daily and adhoc goals,
    ``day_of_week`` for daily goals.
    """

    year: int = Field(ge=1, le=9998)
    quarter: int = Field(ge=1, le=4)
    depth: GoalDepth
    parent_id: Optional[str] = None
    week_number: Optional[int] = Field(default=None, ge=1, le=53)
    day_of_week: Optional[DayOfWeek] = None
    due_date: Optional[datetime] = None


class GoalUpdate(CamelModel):
    """Goal update model - all fields optional."""

    title: Optional[str] = None
    details: Optional[str] = None
    domain_id: Optional[str] = None
    is_complete: Optional[bool] = None


class GoalParentUpdate(CamelModel):
    """Reparent request for a weekly goal."""

    parent_id: str


class Goal(GoalBase):
    """Full goal model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    user_id: str
    year: int
    quarter: int
    depth: GoalDepth
    parent_id: Optional[str] = None
    in_path: str = "/"
    is_complete: bool = False
    completed_at: Optional[datetime] = None
    adhoc: Optional[AdhocInfo] = None
    carry_over: Optional[CarryOver] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
