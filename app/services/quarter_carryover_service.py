"""Quarter carryover - copies incomplete quarterly goals into the next quarter.

The source is the final week of the source quarter, the destination the first
week of the target quarter. Only quarterly goals are copied; their weekly and
daily descendants stay behind. Incomplete adhoc goals of the source quarter
are relabelled to the first week of the target quarter.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import structlog

from app.errors import InvalidTimePeriodError
from app.models.carryover import (
    QuarterCarryoverPreview,
    QuarterCarryoverResult,
    QuarterlyGoalToCopy,
    SkippedGoal,
)
from app.models.goal import CarryOver, CarryOverSource, Goal, GoalDepth
from app.models.goal_state import GoalState
from app.models.time_period import QuarterPeriod, TimePeriod, WeekRef
from app.services.adhoc_goal_service import AdhocGoalService
from app.services.goal_service import GoalService, is_goal_complete
from app.services.root_goal_service import (
    RootGoalService,
    deduplicate_by_root_goal_id,
    get_root_goal_id,
)
from app.utils.iso_week import weeks_between
from app.utils.quarter import (
    get_final_weeks_of_quarter,
    get_first_week_of_quarter,
    get_previous_quarter,
    get_quarter_weeks,
)

logger = structlog.get_logger()


@dataclass
class QuarterCarryoverPlan:
    """Everything a quarter carryover would do."""

    from_quarter: QuarterPeriod
    to_quarter: QuarterPeriod
    source_weeks: list[WeekRef]
    target_week: WeekRef
    quarterly: list[tuple[Goal, Optional[GoalState]]] = field(default_factory=list)
    adhoc: list[Goal] = field(default_factory=list)
    skipped: list[SkippedGoal] = field(default_factory=list)

    @property
    def target_period(self) -> TimePeriod:
        return TimePeriod(
            year=self.to_quarter.year,
            quarter=self.to_quarter.quarter,
            week_number=self.target_week.week_number,
        )


class QuarterCarryoverService:
    """Service for quarter-to-quarter carryover of incomplete quarterly goals."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.goals = db["goals"]
        self.goal_states = db["goal_states"]
        self.goal_service = GoalService(db)
        self.root_goals = RootGoalService(db)
        self.adhoc = AdhocGoalService(db)

    async def _plan(
        self,
        user_id: str,
        from_quarter: Optional[QuarterPeriod],
        to_quarter: QuarterPeriod,
        selected_quarterly_goal_ids: Optional[list[str]] = None,
        selected_adhoc_goal_ids: Optional[list[str]] = None,
    ) -> QuarterCarryoverPlan:
        if from_quarter is None:
            from_quarter = get_previous_quarter(to_quarter.year, to_quarter.quarter)
        if (from_quarter.year, from_quarter.quarter) == (to_quarter.year, to_quarter.quarter):
            raise InvalidTimePeriodError("Cannot move goals to the same quarter")

        plan = QuarterCarryoverPlan(
            from_quarter=from_quarter,
            to_quarter=to_quarter,
            source_weeks=get_final_weeks_of_quarter(from_quarter.year, from_quarter.quarter),
            target_week=get_first_week_of_quarter(to_quarter.year, to_quarter.quarter),
        )

        final_states: dict[str, GoalState] = {}
        for week in plan.source_weeks:
            period = TimePeriod(
                year=week.year, quarter=from_quarter.quarter, week_number=week.week_number
            )
            for state in await self.goal_service.get_week_states(user_id, period):
                final_states[state.goal_id] = state

        quarterly_goals = await self.goal_service.list_goals(
            user_id, from_quarter.year, from_quarter.quarter, GoalDepth.QUARTERLY
        )
        for goal in deduplicate_by_root_goal_id(quarterly_goals):
            state = final_states.get(goal.id)
            if is_goal_complete(goal, state):
                continue
            if selected_quarterly_goal_ids is not None and goal.id not in selected_quarterly_goal_ids:
                continue

            root_goal_id = get_root_goal_id(goal)
            existing = await self.root_goals.find_existing_goal_by_root_id(
                user_id,
                root_goal_id,
                to_quarter.year,
                to_quarter.quarter,
                GoalDepth.QUARTERLY,
            )
            if existing is not None:
                logger.info(
                    "quarterly_goal_already_moved",
                    goal_id=goal.id,
                    existing_goal_id=existing.id,
                )
                plan.skipped.append(SkippedGoal(
                    id=goal.id,
                    title=goal.title,
                    root_goal_id=root_goal_id,
                    reason="already_moved",
                ))
                continue
            plan.quarterly.append((goal, state))

        adhoc_goals = await self.adhoc.list_incomplete_adhoc_goals_for_quarter(
            user_id, from_quarter.year, from_quarter.quarter
        )
        if selected_adhoc_goal_ids is not None:
            adhoc_goals = [goal for goal in adhoc_goals if goal.id in selected_adhoc_goal_ids]
        plan.adhoc = adhoc_goals
        return plan

    def _preview_fields(self, plan: QuarterCarryoverPlan) -> dict:
        return {
            "can_pull": bool(plan.quarterly or plan.adhoc),
            "from_quarter": plan.from_quarter,
            "to_quarter": plan.to_quarter,
            "source_weeks": plan.source_weeks,
            "target_week": plan.target_week,
            "quarterly_goals_to_copy": [
                QuarterlyGoalToCopy(
                    id=goal.id,
                    title=goal.title,
                    root_goal_id=get_root_goal_id(goal),
                    is_starred=bool(state and state.is_starred),
                    is_pinned=bool(state and state.is_pinned and not state.is_starred),
                )
                for goal, state in plan.quarterly
            ],
            "adhoc_goals_to_move": self.adhoc.summarize(plan.adhoc, plan.target_period),
            "skipped_goals": plan.skipped,
        }

    async def _copy_quarterly_goal(
        self,
        user_id: str,
        goal: Goal,
        state: Optional[GoalState],
        plan: QuarterCarryoverPlan,
    ) -> None:
        source_week = plan.source_weeks[-1]
        elapsed = weeks_between(
            source_week.year,
            source_week.week_number,
            plan.target_week.year,
            plan.target_week.week_number,
        )
        previous = goal.carry_over.num_weeks if goal.carry_over else 0
        carry_over = CarryOver(
            num_weeks=previous + max(elapsed, 1),
            from_goal=CarryOverSource(
                previous_goal_id=goal.id,
                root_goal_id=get_root_goal_id(goal),
            ),
        )

        now = datetime.utcnow()
        goal_doc = {
            "userId": user_id,
            "year": plan.to_quarter.year,
            "quarter": plan.to_quarter.quarter,
            "title": goal.title,
            "details": goal.details,
            "depth": int(GoalDepth.QUARTERLY),
            "parentId": None,
            "inPath": "/",
            "isComplete": False,
            "completedAt": None,
            "domainId": goal.domain_id,
            "carryOver": carry_over.model_dump(by_alias=True),
            "createdAt": now,
            "updatedAt": now,
        }
        result = await self.goals.insert_one(goal_doc)
        new_goal_id = str(result.inserted_id)

        is_starred = bool(state and state.is_starred)
        is_pinned = bool(state and state.is_pinned and not is_starred)
        weeks = get_quarter_weeks(plan.to_quarter.year, plan.to_quarter.quarter).weeks
        await self.goal_states.insert_many([
            {
                "userId": user_id,
                "year": plan.to_quarter.year,
                "quarter": plan.to_quarter.quarter,
                "weekNumber": week,
                "goalId": new_goal_id,
                "isStarred": is_starred and week == plan.target_week.week_number,
                "isPinned": is_pinned and week == plan.target_week.week_number,
                "isComplete": False,
                "carryOver": carry_over.model_dump(by_alias=True),
            }
            for week in weeks
        ])

    async def preview_move_goals_from_quarter(
        self,
        user_id: str,
        to_quarter: QuarterPeriod,
        from_quarter: Optional[QuarterPeriod] = None,
        selected_quarterly_goal_ids: Optional[list[str]] = None,
        selected_adhoc_goal_ids: Optional[list[str]] = None,
    ) -> QuarterCarryoverPreview:
        """
        Show which quarterly and adhoc goals a quarter carryover would take.

        Args:
            user_id: Owner of the goals
            to_quarter: Target quarter
            from_quarter: Source quarter, defaults to the one before ``to_quarter``
            selected_quarterly_goal_ids: Optional subset of quarterly goals
            selected_adhoc_goal_ids: Optional subset of adhoc goals

        Returns:
            Preview with goals to copy, adhoc goals to move and skips

        Raises:
            InvalidTimePeriodError: If both quarters are the same
        """
        plan = await self._plan(
            user_id,
            from_quarter,
            to_quarter,
            selected_quarterly_goal_ids,
            selected_adhoc_goal_ids,
        )
        return QuarterCarryoverPreview(**self._preview_fields(plan))

    async def move_goals_from_quarter(
        self,
        user_id: str,
        to_quarter: QuarterPeriod,
        from_quarter: Optional[QuarterPeriod] = None,
        selected_quarterly_goal_ids: Optional[list[str]] = None,
        selected_adhoc_goal_ids: Optional[list[str]] = None,
    ) -> QuarterCarryoverResult:
        """
        Copy incomplete quarterly goals into the target quarter.

        Each copy records carry-over provenance and gets a state for every
        week of the target quarter; the first week keeps the star/pin flags
        from the source quarter's final week. Goals whose root id already
        exists in the target quarter are skipped.

        Raises:
            InvalidTimePeriodError: If both quarters are the same
        """
        plan = await self._plan(
            user_id,
            from_quarter,
            to_quarter,
            selected_quarterly_goal_ids,
            selected_adhoc_goal_ids,
        )
        for goal, state in plan.quarterly:
            await self._copy_quarterly_goal(user_id, goal, state, plan)
        adhoc_moved = await self.adhoc.relabel(plan.adhoc, plan.target_period)

        result = QuarterCarryoverResult(
            **self._preview_fields(plan),
            quarterly_goals_copied=len(plan.quarterly),
            adhoc_goals_moved=adhoc_moved,
        )
        logger.info(
            "quarter_carryover_executed",
            source=f"{plan.from_quarter.year}-Q{plan.from_quarter.quarter}",
            target=f"{plan.to_quarter.year}-Q{plan.to_quarter.quarter}",
            quarterly_goals_copied=result.quarterly_goals_copied,
            adhoc_goals_moved=result.adhoc_goals_moved,
            skipped=len(result.skipped_goals),
        )
        return result
