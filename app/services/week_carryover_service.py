"""Week carryover - pulls incomplete work from one week into another.

Per source week:

* quarterly goals are never copied; when starred or pinned and still backing
  incomplete weekly work, their flags are propagated to the destination week;
* weekly goals that are incomplete, or have incomplete daily children, are
  carried. With no completed children the goal and its children are moved by
  patching their week states (``move_all``); otherwise a new weekly goal is
  created with carry-over provenance and only the incomplete daily goals are
  copied under it (``copy_children``);
* adhoc goals are relabelled to the destination week.

Goals whose root id already exists in the destination week are reported as
skipped instead of being carried twice.

Day moves shift the daily goals scheduled on one day to another day of the
same quarter, patching their week state in place.
"""
import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import structlog
from bson import ObjectId
from pymongo.errors import PyMongoError

from app.config import settings
from app.errors import GoalTreeError, GoalValidationError, InvalidTimePeriodError
from app.models.carryover import (
    CarryOverMode,
    DailyGoalToMove,
    DayMovePreview,
    DayMoveResult,
    DayRef,
    QuarterlyGoalToUpdate,
    SkippedGoal,
    WeekCarryoverPreview,
    WeekCarryoverResult,
    WeekStateToCopy,
)
from app.models.goal import CarryOver, CarryOverSource, Goal, GoalDepth
from app.models.goal_state import GoalState
from app.models.time_period import TimePeriod
from app.services.adhoc_goal_service import AdhocGoalService
from app.services.goal_service import (
    GoalService,
    daily_state_doc,
    doc_to_goal,
    doc_to_state,
    is_goal_complete,
    week_query,
)
from app.services.root_goal_service import (
    RootGoalService,
    deduplicate_by_root_goal_id,
    get_root_goal_id,
)
from app.utils.iso_week import weeks_between
from app.utils.path import child_in_path, validate_goal_path
from app.utils.quarter import get_previous_week, validate_time_period

logger = structlog.get_logger()


@dataclass
class WeeklyCarryover:
    """A weekly goal selected for carryover, with everything needed to apply it."""

    goal: Goal
    state: GoalState
    mode: CarryOverMode
    carry_over: CarryOver
    quarterly_goal: Optional[Goal]
    target_parent: Goal
    daily: list[tuple[Goal, GoalState]] = field(default_factory=list)


@dataclass
class WeekCarryoverPlan:
    """Everything a week carryover would do."""

    weekly: list[WeeklyCarryover] = field(default_factory=list)
    quarterly_updates: list[QuarterlyGoalToUpdate] = field(default_factory=list)
    adhoc: list[Goal] = field(default_factory=list)
    skipped: list[SkippedGoal] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.weekly or self.quarterly_updates or self.adhoc)


@dataclass
class DailyGoalMove:
    """A daily goal leaving its day, with the ancestors it hangs under."""

    goal: Goal
    state: GoalState
    weekly_goal: Goal
    quarterly_goal: Goal


def _carry_over_for(goal: Goal, elapsed_weeks: int) -> CarryOver:
    previous = goal.carry_over.num_weeks if goal.carry_over else 0
    return CarryOver(
        num_weeks=previous + max(elapsed_weeks, 1),
        from_goal=CarryOverSource(
            previous_goal_id=goal.id,
            root_goal_id=get_root_goal_id(goal),
        ),
    )


def _day_ref(period: TimePeriod) -> DayRef:
    return DayRef(
        name=period.day_of_week.label,
        year=period.year,
        quarter=period.quarter,
        week_number=period.week_number,
        day_of_week=period.day_of_week,
    )


class WeekCarryoverService:
    """Service for week-to-week carryover of incomplete goals."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.goals = db["goals"]
        self.goal_states = db["goal_states"]
        self.goal_service = GoalService(db)
        self.root_goals = RootGoalService(db)
        self.adhoc = AdhocGoalService(db)

    # Planning

    def _validate(self, from_period: TimePeriod, to_period: TimePeriod) -> None:
        validate_time_period(from_period)
        validate_time_period(to_period)
        if from_period.same_week(to_period):
            raise InvalidTimePeriodError("Cannot move goals to the same week")

    async def _resolve_target_parent(
        self,
        user_id: str,
        quarterly_goal: Goal,
        to_period: TimePeriod,
    ) -> Optional[Goal]:
        """The quarterly goal that stands for ``quarterly_goal`` in the target quarter."""
        if (quarterly_goal.year, quarterly_goal.quarter) == (to_period.year, to_period.quarter):
            return quarterly_goal
        return await self.root_goals.find_existing_goal_by_root_id(
            user_id,
            get_root_goal_id(quarterly_goal),
            to_period.year,
            to_period.quarter,
            GoalDepth.QUARTERLY,
        )

    async def _plan(
        self,
        user_id: str,
        from_period: TimePeriod,
        to_period: TimePeriod,
        only_goal_id: Optional[str] = None,
    ) -> WeekCarryoverPlan:
        """
        Work out what a carryover from ``from_period`` to ``to_period`` does.

        With ``only_goal_id`` the plan covers that single weekly goal and
        leaves quarterly flags and adhoc goals alone.
        """
        plan = WeekCarryoverPlan()
        source_week = from_period.model_copy(update={"day_of_week": None})

        states = await self.goal_service.get_week_states(user_id, source_week)
        state_by_goal = {state.goal_id: state for state in states}
        goals_by_id = await self.goal_service.get_goals_by_ids(user_id, state_by_goal)
        ordered = [goals_by_id[goal_id] for goal_id in state_by_goal if goal_id in goals_by_id]

        weekly_goals = [goal for goal in ordered if goal.depth == GoalDepth.WEEKLY]
        if only_goal_id is not None:
            weekly_goals = [goal for goal in weekly_goals if goal.id == only_goal_id]

        missing_parents = {
            goal.parent_id for goal in weekly_goals
            if goal.parent_id and goal.parent_id not in goals_by_id
        }
        if missing_parents:
            goals_by_id.update(await self.goal_service.get_goals_by_ids(user_id, missing_parents))

        existing_weekly = await self.root_goals.build_existing_goals_map(
            user_id,
            to_period.year,
            to_period.quarter,
            GoalDepth.WEEKLY,
            week_number=to_period.week_number,
        )
        elapsed = weeks_between(
            from_period.year, from_period.week_number, to_period.year, to_period.week_number
        )
        crosses_quarter = not from_period.same_quarter(to_period)
        backed_quarterly_ids: set[str] = set()

        for goal in deduplicate_by_root_goal_id(weekly_goals):
            state = state_by_goal[goal.id]
            children = [
                child for child in ordered
                if child.depth == GoalDepth.DAILY and child.parent_id == goal.id
            ]
            incomplete = [
                (child, state_by_goal[child.id])
                for child in children
                if not is_goal_complete(child, state_by_goal[child.id])
            ]
            if is_goal_complete(goal, state) and not incomplete:
                continue

            if goal.parent_id:
                backed_quarterly_ids.add(goal.parent_id)
            quarterly_goal = goals_by_id.get(goal.parent_id) if goal.parent_id else None
            root_goal_id = get_root_goal_id(goal)

            target_parent = (
                await self._resolve_target_parent(user_id, quarterly_goal, to_period)
                if quarterly_goal else None
            )
            if target_parent is None:
                plan.skipped.append(SkippedGoal(
                    id=goal.id,
                    title=goal.title,
                    root_goal_id=root_goal_id,
                    reason="parent_not_in_target_quarter",
                ))
                continue

            existing = existing_weekly.get(root_goal_id)
            if existing is not None and existing.parent_id == target_parent.id:
                plan.skipped.append(SkippedGoal(
                    id=goal.id,
                    title=goal.title,
                    root_goal_id=root_goal_id,
                    reason="already_moved",
                ))
                continue

            # Goal records belong to one quarter, so crossing a boundary always copies.
            has_completed_children = len(incomplete) < len(children)
            mode: CarryOverMode = (
                "copy_children" if has_completed_children or crosses_quarter else "move_all"
            )
            plan.weekly.append(WeeklyCarryover(
                goal=goal,
                state=state,
                mode=mode,
                carry_over=_carry_over_for(goal, elapsed),
                quarterly_goal=quarterly_goal,
                target_parent=target_parent,
                daily=incomplete,
            ))

        if only_goal_id is not None:
            return plan

        for goal in ordered:
            if goal.depth != GoalDepth.QUARTERLY or goal.id not in backed_quarterly_ids:
                continue
            state = state_by_goal[goal.id]
            if not (state.is_starred or state.is_pinned):
                continue
            target = await self._resolve_target_parent(user_id, goal, to_period)
            if target is None:
                continue
            plan.quarterly_updates.append(QuarterlyGoalToUpdate(
                id=target.id,
                title=goal.title,
                is_starred=state.is_starred,
                is_pinned=False if state.is_starred else state.is_pinned,
            ))

        plan.adhoc = await self.adhoc.list_incomplete_adhoc_goals(user_id, source_week)
        return plan

    def _preview_fields(self, plan: WeekCarryoverPlan, to_period: TimePeriod) -> dict:
        daily_goals = []
        for item in plan.weekly:
            for child, child_state in item.daily:
                day = to_period.day_of_week or (
                    child_state.daily.day_of_week if child_state.daily else None
                )
                daily_goals.append(DailyGoalToMove(
                    id=child.id,
                    title=child.title,
                    weekly_goal_id=item.goal.id,
                    weekly_goal_title=item.goal.title,
                    quarterly_goal_id=item.quarterly_goal.id if item.quarterly_goal else None,
                    quarterly_goal_title=item.quarterly_goal.title if item.quarterly_goal else None,
                    day_of_week=day,
                ))

        return {
            "can_pull": not plan.is_empty,
            "week_states_to_copy": [
                WeekStateToCopy(
                    goal_id=item.goal.id,
                    title=item.goal.title,
                    mode=item.mode,
                    carry_over=item.carry_over,
                    daily_goals_count=len(item.daily),
                    quarterly_goal_id=item.target_parent.id,
                )
                for item in plan.weekly
            ],
            "daily_goals_to_move": daily_goals,
            "quarterly_goals_to_update": plan.quarterly_updates,
            "adhoc_goals_to_move": self.adhoc.summarize(plan.adhoc, to_period),
            "skipped_goals": plan.skipped,
        }

    # Applying

    def _daily_target_doc(self, state: GoalState, to_period: TimePeriod) -> dict:
        day = to_period.day_of_week or (state.daily.day_of_week if state.daily else 1)
        return daily_state_doc(to_period, day)

    async def _move_weekly(self, user_id: str, item: WeeklyCarryover, to_period: TimePeriod) -> int:
        """Relocate a weekly goal and its daily goals by patching their week states."""
        target_week = week_query(user_id, to_period)
        await self.goal_states.update_one(
            {"_id": ObjectId(item.state.id)},
            {"$set": {
                "year": target_week["year"],
                "quarter": target_week["quarter"],
                "weekNumber": target_week["weekNumber"],
            }},
        )
        for _, child_state in item.daily:
            await self.goal_states.update_one(
                {"_id": ObjectId(child_state.id)},
                {"$set": {
                    "year": target_week["year"],
                    "quarter": target_week["quarter"],
                    "weekNumber": target_week["weekNumber"],
                    "daily": self._daily_target_doc(child_state, to_period),
                }},
            )
        return len(item.daily)

    async def _copy_goal(
        self,
        goal: Goal,
        parent: Goal,
        carry_over: CarryOver,
        to_period: TimePeriod,
    ) -> Goal:
        in_path = child_in_path(parent.in_path, parent.id)
        if not validate_goal_path(goal.depth, in_path):
            raise GoalTreeError(f"Parent {parent.id} has a malformed path {parent.in_path!r}")
        now = datetime.utcnow()
        goal_doc = {
            "userId": goal.user_id,
            "year": to_period.year,
            "quarter": to_period.quarter,
            "title": goal.title,
            "details": goal.details,
            "depth": int(goal.depth),
            "parentId": parent.id,
            "inPath": in_path,
            "isComplete": False,
            "completedAt": None,
            "domainId": goal.domain_id,
            "carryOver": carry_over.model_dump(by_alias=True),
            "createdAt": now,
            "updatedAt": now,
        }
        result = await self.goals.insert_one(goal_doc)
        goal_doc["_id"] = result.inserted_id
        return doc_to_goal(goal_doc)

    async def _copy_weekly(
        self,
        user_id: str,
        item: WeeklyCarryover,
        to_period: TimePeriod,
        elapsed: int,
    ) -> int:
        """Create a carried-over copy of a weekly goal with its incomplete daily goals."""
        target_week = week_query(user_id, to_period)
        copy = await self._copy_goal(item.goal, item.target_parent, item.carry_over, to_period)
        await self.goal_states.insert_one({
            **target_week,
            "goalId": copy.id,
            "isStarred": False,
            "isPinned": False,
            "isComplete": False,
            "carryOver": item.carry_over.model_dump(by_alias=True),
        })

        for child, child_state in item.daily:
            child_carry_over = _carry_over_for(child, elapsed)
            child_copy = await self._copy_goal(child, copy, child_carry_over, to_period)
            await self.goal_states.insert_one({
                **target_week,
                "goalId": child_copy.id,
                "isStarred": False,
                "isPinned": False,
                "isComplete": False,
                "daily": self._daily_target_doc(child_state, to_period),
                "carryOver": child_carry_over.model_dump(by_alias=True),
            })
        return len(item.daily)

    async def _update_quarterly_states(
        self,
        user_id: str,
        updates: list[QuarterlyGoalToUpdate],
        to_period: TimePeriod,
    ) -> None:
        for item in updates:
            existing = await self.goal_service.get_week_state(user_id, item.id, to_period)
            if existing is None:
                await self.goal_states.insert_one({
                    **week_query(user_id, to_period),
                    "goalId": item.id,
                    "isStarred": item.is_starred,
                    "isPinned": item.is_pinned,
                    "isComplete": False,
                })
                continue

            if existing.is_starred:
                new_flags = {"isStarred": True, "isPinned": False}
            else:
                new_flags = {"isStarred": item.is_starred, "isPinned": item.is_pinned}
            await self.goal_states.update_one(
                {"_id": ObjectId(existing.id)},
                {"$set": new_flags},
            )

    async def _apply(
        self,
        user_id: str,
        plan: WeekCarryoverPlan,
        from_period: TimePeriod,
        to_period: TimePeriod,
    ) -> WeekCarryoverResult:
        elapsed = weeks_between(
            from_period.year, from_period.week_number, to_period.year, to_period.week_number
        )
        daily_moved = 0
        for item in plan.weekly:
            await self.goal_service.ensure_week_state(user_id, item.target_parent.id, to_period)
            if item.mode == "move_all":
                daily_moved += await self._move_weekly(user_id, item, to_period)
            else:
                daily_moved += await self._copy_weekly(user_id, item, to_period, elapsed)

        await self._update_quarterly_states(user_id, plan.quarterly_updates, to_period)
        adhoc_moved = await self.adhoc.relabel(plan.adhoc, to_period)

        result = WeekCarryoverResult(
            **self._preview_fields(plan, to_period),
            week_states_copied=len(plan.weekly),
            daily_goals_moved=daily_moved,
            quarterly_goals_updated=len(plan.quarterly_updates),
            adhoc_goals_moved=adhoc_moved,
        )
        logger.info(
            "week_carryover_executed",
            source=str(from_period),
            target=str(to_period),
            week_states_copied=result.week_states_copied,
            daily_goals_moved=result.daily_goals_moved,
            quarterly_goals_updated=result.quarterly_goals_updated,
            adhoc_goals_moved=result.adhoc_goals_moved,
            skipped=len(result.skipped_goals),
        )
        return result

    # Public operations

    async def preview_move_goals_from_week(
        self,
        user_id: str,
        from_period: TimePeriod,
        to_period: TimePeriod,
    ) -> WeekCarryoverPreview:
        """
        Show what a week carryover would do, without writing anything.

        Args:
            user_id: Owner of the goals
            from_period: Source week
            to_period: Destination week; its day, if set, consolidates all
                carried daily goals onto that day

        Returns:
            Preview of weekly, daily, quarterly and adhoc changes plus skips

        Raises:
            InvalidTimePeriodError: If a period is invalid or both weeks are equal
        """
        self._validate(from_period, to_period)
        plan = await self._plan(user_id, from_period, to_period)
        return WeekCarryoverPreview(**self._preview_fields(plan, to_period))

    async def move_goals_from_week(
        self,
        user_id: str,
        from_period: TimePeriod,
        to_period: TimePeriod,
    ) -> WeekCarryoverResult:
        """
        Carry incomplete goals from one week into another.

        Running it again for the same weeks creates nothing new: copies are
        reported as skipped and moved goals no longer sit in the source week.

        Returns:
            Same summary as the preview plus mutation counts

        Raises:
            InvalidTimePeriodError: If a period is invalid or both weeks are equal
        """
        self._validate(from_period, to_period)
        plan = await self._plan(user_id, from_period, to_period)
        return await self._apply(user_id, plan, from_period, to_period)

    async def _week_has_movable_content(self, user_id: str, period: TimePeriod) -> bool:
        """
        Check a week for open weekly, daily or adhoc goals, or for
        starred / pinned quarterly goals.

        Unflagged quarterly goals have a state in every week of their
        quarter, so they alone never make a week non-empty.
        """
        states = await self.goal_service.get_week_states(user_id, period)
        if states:
            goals_by_id = await self.goal_service.get_goals_by_ids(
                user_id, [state.goal_id for state in states]
            )
            for state in states:
                goal = goals_by_id.get(state.goal_id)
                if goal is None or is_goal_complete(goal, state):
                    continue
                if goal.depth != GoalDepth.QUARTERLY:
                    return True
                if state.is_starred or state.is_pinned:
                    return True
        return bool(await self.adhoc.list_incomplete_adhoc_goals(user_id, period))

    def _candidate_weeks(self, to_period: TimePeriod) -> list[TimePeriod]:
        weeks = []
        week = to_period
        for _ in range(settings.carryover_search_weeks):
            week = get_previous_week(week)
            weeks.append(week)
        return weeks

    async def find_last_non_empty_week(
        self,
        user_id: str,
        to_period: TimePeriod,
    ) -> Optional[TimePeriod]:
        """
        Walk back from ``to_period`` to the nearest week with movable content.

        The walk stops at the first hit and gives up after
        ``settings.carryover_search_weeks`` weeks. A store error on one week
        is logged and that week is treated as empty.

        Returns:
            The nearest non-empty earlier week, or None
        """
        validate_time_period(to_period)
        week = to_period
        for _ in range(settings.carryover_search_weeks):
            week = get_previous_week(week)
            try:
                if await self._week_has_movable_content(user_id, week):
                    return week
            except PyMongoError as e:
                logger.warning("week_lookup_failed", week=str(week), error=str(e))
        return None

    async def find_last_non_empty_week_concurrent(
        self,
        user_id: str,
        to_period: TimePeriod,
    ) -> Optional[TimePeriod]:
        """
        Same result as :meth:`find_last_non_empty_week`, checking every
        candidate week at once and picking the nearest non-empty one.
        """
        validate_time_period(to_period)
        weeks = self._candidate_weeks(to_period)
        results = await asyncio.gather(
            *(self._week_has_movable_content(user_id, week) for week in weeks),
            return_exceptions=True,
        )
        for week, result in zip(weeks, results):
            if isinstance(result, PyMongoError):
                logger.warning("week_lookup_failed", week=str(week), error=str(result))
                continue
            if isinstance(result, BaseException):
                raise result
            if result:
                return week
        return None

    async def preview_move_goals_from_last_non_empty_week(
        self,
        user_id: str,
        to_period: TimePeriod,
    ) -> WeekCarryoverPreview:
        """Preview a pull from the nearest earlier week that has content."""
        source = await self.find_last_non_empty_week_concurrent(user_id, to_period)
        if source is None:
            return WeekCarryoverPreview(can_pull=False)
        preview = await self.preview_move_goals_from_week(user_id, source, to_period)
        preview.source_week = source
        return preview

    async def move_goals_from_last_non_empty_week(
        self,
        user_id: str,
        to_period: TimePeriod,
    ) -> WeekCarryoverResult:
        """Pull from the nearest earlier week that has content."""
        source = await self.find_last_non_empty_week_concurrent(user_id, to_period)
        if source is None:
            return WeekCarryoverResult(can_pull=False)
        result = await self.move_goals_from_week(user_id, source, to_period)
        result.source_week = source
        return result

    async def _plan_single_weekly_goal(
        self,
        user_id: str,
        goal_id: str,
        from_period: TimePeriod,
        to_period: TimePeriod,
    ) -> WeekCarryoverPlan:
        self._validate(from_period, to_period)
        goal = await self.goal_service.get_goal(user_id, goal_id)
        if goal.depth != GoalDepth.WEEKLY:
            raise GoalValidationError("Only weekly goals can be moved between weeks")
        if await self.goal_service.get_week_state(user_id, goal.id, from_period) is None:
            raise GoalValidationError(f"Goal is not part of week {from_period}")

        plan = await self._plan(user_id, from_period, to_period, only_goal_id=goal.id)
        if not plan.weekly and not plan.skipped:
            raise GoalValidationError("Goal has no incomplete work to move")
        return plan

    async def preview_move_weekly_goal(
        self,
        user_id: str,
        goal_id: str,
        from_period: TimePeriod,
        to_period: TimePeriod,
    ) -> WeekCarryoverPreview:
        """
        Preview moving one weekly goal (and its incomplete daily goals).

        Raises:
            GoalNotFoundError: If goal not found
            GoalAccessDeniedError: If goal belongs to another user
            GoalValidationError: If the goal is not a weekly goal of the source week
            InvalidTimePeriodError: If a period is invalid or both weeks are equal
        """
        plan = await self._plan_single_weekly_goal(user_id, goal_id, from_period, to_period)
        return WeekCarryoverPreview(**self._preview_fields(plan, to_period))

    async def move_weekly_goal(
        self,
        user_id: str,
        goal_id: str,
        from_period: TimePeriod,
        to_period: TimePeriod,
    ) -> WeekCarryoverResult:
        """Move one weekly goal using the same move/copy rules as a full carryover."""
        plan = await self._plan_single_weekly_goal(user_id, goal_id, from_period, to_period)
        return await self._apply(user_id, plan, from_period, to_period)

    # Day moves

    def _validate_day_move(self, from_period: TimePeriod, to_period: TimePeriod) -> None:
        validate_time_period(from_period)
        validate_time_period(to_period)
        if from_period.day_of_week is None or to_period.day_of_week is None:
            raise GoalValidationError("Day moves need a dayOfWeek on both sides")
        if not from_period.same_quarter(to_period):
            raise InvalidTimePeriodError("Daily goals can only move within their quarter")
        if from_period == to_period:
            raise InvalidTimePeriodError("Cannot move goals to the same day")

    async def _plan_day_move(
        self,
        user_id: str,
        from_period: TimePeriod,
        move_only_incomplete: bool,
    ) -> list[DailyGoalMove]:
        cursor = self.goal_states.find(
            {**week_query(user_id, from_period), "daily.dayOfWeek": int(from_period.day_of_week)},
            sort=[("_id", 1)],
        )
        states = [doc_to_state(doc) for doc in await cursor.to_list(length=None)]
        goals_by_id = await self.goal_service.get_goals_by_ids(
            user_id, [state.goal_id for state in states]
        )
        weekly_by_id = await self.goal_service.get_goals_by_ids(
            user_id, {goal.parent_id for goal in goals_by_id.values() if goal.parent_id}
        )
        quarterly_by_id = await self.goal_service.get_goals_by_ids(
            user_id, {goal.parent_id for goal in weekly_by_id.values() if goal.parent_id}
        )

        moves = []
        for state in states:
            goal = goals_by_id.get(state.goal_id)
            if goal is None:
                continue
            if move_only_incomplete and is_goal_complete(goal, state):
                continue
            weekly_goal = weekly_by_id.get(goal.parent_id)
            quarterly_goal = quarterly_by_id.get(weekly_goal.parent_id) if weekly_goal else None
            if weekly_goal is None or quarterly_goal is None:
                logger.warning("daily_goal_without_ancestors", goal_id=goal.id)
                continue
            moves.append(DailyGoalMove(goal, state, weekly_goal, quarterly_goal))
        return moves

    def _day_preview_fields(
        self,
        moves: list[DailyGoalMove],
        from_period: TimePeriod,
        to_period: TimePeriod,
    ) -> dict:
        return {
            "can_move": bool(moves),
            "source_day": _day_ref(from_period),
            "target_day": _day_ref(to_period),
            "daily_goals_to_move": [
                DailyGoalToMove(
                    id=move.goal.id,
                    title=move.goal.title,
                    weekly_goal_id=move.weekly_goal.id,
                    weekly_goal_title=move.weekly_goal.title,
                    quarterly_goal_id=move.quarterly_goal.id,
                    quarterly_goal_title=move.quarterly_goal.title,
                    day_of_week=to_period.day_of_week,
                )
                for move in moves
            ],
        }

    async def preview_move_goals_from_day(
        self,
        user_id: str,
        from_period: TimePeriod,
        to_period: TimePeriod,
        move_only_incomplete: bool = True,
    ) -> DayMovePreview:
        """
        Show which daily goals a day move would shift, without writing anything.

        Args:
            user_id: Owner of the goals
            from_period: Source week and day
            to_period: Destination week and day, inside the same quarter
            move_only_incomplete: Leave completed daily goals on the source day

        Raises:
            GoalValidationError: If either side has no dayOfWeek
            InvalidTimePeriodError: If a period is invalid, the quarters differ
                or both sides name the same day
        """
        self._validate_day_move(from_period, to_period)
        moves = await self._plan_day_move(user_id, from_period, move_only_incomplete)
        return DayMovePreview(**self._day_preview_fields(moves, from_period, to_period))

    async def move_goals_from_day(
        self,
        user_id: str,
        from_period: TimePeriod,
        to_period: TimePeriod,
        move_only_incomplete: bool = True,
    ) -> DayMoveResult:
        """
        Move the daily goals of one day to another day.

        Within a week only the day is rewritten. Across weeks the state is
        relabelled to the destination week and the weekly and quarterly
        parents get a state there so the week tree still resolves.
        """
        self._validate_day_move(from_period, to_period)
        moves = await self._plan_day_move(user_id, from_period, move_only_incomplete)

        same_week = from_period.same_week(to_period)
        new_fields = {"daily": daily_state_doc(to_period, to_period.day_of_week)}
        if not same_week:
            target_week = week_query(user_id, to_period)
            new_fields.update(
                year=target_week["year"],
                quarter=target_week["quarter"],
                weekNumber=target_week["weekNumber"],
            )

        for move in moves:
            await self.goal_states.update_one(
                {"_id": ObjectId(move.state.id)},
                {"$set": new_fields},
            )
            if not same_week:
                await self.goal_service.ensure_week_state(user_id, move.weekly_goal.id, to_period)
                await self.goal_service.ensure_week_state(
                    user_id, move.quarterly_goal.id, to_period
                )

        logger.info(
            "day_goals_moved",
            source=str(from_period),
            target=str(to_period),
            source_day=int(from_period.day_of_week),
            target_day=int(to_period.day_of_week),
            daily_goals_moved=len(moves),
        )
        return DayMoveResult(
            **self._day_preview_fields(moves, from_period, to_period),
            daily_goals_moved=len(moves),
        )
