"""Request and summary models for carryover and move operations.

Preview models are read-only summaries safe to render directly; result models
extend them with mutation counts.
"""
from typing import Literal, Optional

from pydantic import Field

from app.models.base import CamelModel
from app.models.goal import CarryOver
from app.models.time_period import DayOfWeek, QuarterPeriod, TimePeriod, WeekRef

CarryOverMode = Literal["move_all", "copy_children"]
SkipReason = Literal["already_moved", "parent_not_in_target_quarter"]


# Requests

class WeekMoveRequest(CamelModel):
    """Source and destination weeks of a week-level move."""

    from_period: TimePeriod = Field(alias="from")
    to_period: TimePeriod = Field(alias="to")
    dry_run: bool = False


class DayMoveRequest(CamelModel):
    """Source and destination days of a day-level move."""

    from_period: TimePeriod = Field(alias="from")
    to_period: TimePeriod = Field(alias="to")
    dry_run: bool = False
    move_only_incomplete: bool = True


class LastNonEmptyWeekRequest(CamelModel):
    """Destination week of a pull from the nearest non-empty week."""

    to_period: TimePeriod = Field(alias="to")
    dry_run: bool = False


class QuarterMoveRequest(CamelModel):
    """Source and destination quarters; source defaults to the previous one."""

    from_quarter: Optional[QuarterPeriod] = Field(default=None, alias="from")
    to_quarter: QuarterPeriod = Field(alias="to")
    dry_run: bool = False
    selected_quarterly_goal_ids: Optional[list[str]] = None
    selected_adhoc_goal_ids: Optional[list[str]] = None


# Summaries

class WeekStateToCopy(CamelModel):
    """A weekly goal selected for carryover."""

    goal_id: str
    title: str
    mode: CarryOverMode
    carry_over: CarryOver
    daily_goals_count: int
    quarterly_goal_id: Optional[str] = None


class DailyGoalToMove(CamelModel):
    """An incomplete daily goal travelling with its weekly parent."""

    id: str
    title: str
    weekly_goal_id: str
    weekly_goal_title: str
    quarterly_goal_id: Optional[str] = None
    quarterly_goal_title: Optional[str] = None
    day_of_week: Optional[DayOfWeek] = None


class QuarterlyGoalToUpdate(CamelModel):
    """Star/pin flags propagated to the destination week."""

    id: str
    title: str
    is_starred: bool
    is_pinned: bool


class AdhocGoalToMove(CamelModel):
    """An unscheduled goal relabelled to another week."""

    id: str
    title: str
    week_number: int
    day_of_week: Optional[DayOfWeek] = None


class SkippedGoal(CamelModel):
    """A candidate that was not migrated."""

    id: str
    title: str
    root_goal_id: str
    reason: SkipReason


class QuarterlyGoalToCopy(CamelModel):
    """An incomplete quarterly goal selected for the next quarter."""

    id: str
    title: str
    root_goal_id: str
    is_starred: bool = False
    is_pinned: bool = False


# Week carryover

class WeekCarryoverPreview(CamelModel):
    """Dry-run summary of a week carryover."""

    is_dry_run: bool = True
    can_pull: bool = False
    source_week: Optional[TimePeriod] = None
    week_states_to_copy: list[WeekStateToCopy] = Field(default_factory=list)
    daily_goals_to_move: list[DailyGoalToMove] = Field(default_factory=list)
    quarterly_goals_to_update: list[QuarterlyGoalToUpdate] = Field(default_factory=list)
    adhoc_goals_to_move: list[AdhocGoalToMove] = Field(default_factory=list)
    skipped_goals: list[SkippedGoal] = Field(default_factory=list)


class WeekCarryoverResult(WeekCarryoverPreview):
    """Executed week carryover: summary plus mutation counts."""

    is_dry_run: bool = False
    week_states_copied: int = 0
    daily_goals_moved: int = 0
    quarterly_goals_updated: int = 0
    adhoc_goals_moved: int = 0


# Day moves

class DayRef(CamelModel):
    """A named day inside a week of a quarter."""

    name: str
    year: int
    quarter: int
    week_number: int
    day_of_week: DayOfWeek


class DayMovePreview(CamelModel):
    """Dry-run summary of moving one day's daily goals."""

    is_dry_run: bool = True
    can_move: bool = False
    source_day: DayRef
    target_day: DayRef
    daily_goals_to_move: list[DailyGoalToMove] = Field(default_factory=list)


class DayMoveResult(DayMovePreview):
    """Executed day move."""

    is_dry_run: bool = False
    daily_goals_moved: int = 0


# Quarter carryover

class QuarterCarryoverPreview(CamelModel):
    """Dry-run summary of a quarter carryover."""

    is_dry_run: bool = True
    can_pull: bool = False
    from_quarter: QuarterPeriod = Field(alias="from")
    to_quarter: QuarterPeriod = Field(alias="to")
    source_weeks: list[WeekRef] = Field(default_factory=list)
    target_week: WeekRef
    quarterly_goals_to_copy: list[QuarterlyGoalToCopy] = Field(default_factory=list)
    adhoc_goals_to_move: list[AdhocGoalToMove] = Field(default_factory=list)
    skipped_goals: list[SkippedGoal] = Field(default_factory=list)


class QuarterCarryoverResult(QuarterCarryoverPreview):
    """Executed quarter carryover."""

    is_dry_run: bool = False
    quarterly_goals_copied: int = 0
    adhoc_goals_moved: int = 0


# Adhoc moves

class AdhocMovePreview(CamelModel):
    """Dry-run summary of an adhoc goal move."""

    is_dry_run: bool = True
    adhoc_goals_to_move: list[AdhocGoalToMove] = Field(default_factory=list)


class AdhocMoveResult(AdhocMovePreview):
    """Executed adhoc goal move."""

    is_dry_run: bool = False
    adhoc_goals_moved: int = 0
