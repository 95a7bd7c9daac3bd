"""Adhoc goal service - relabels unscheduled goals between weeks."""
from datetime import datetime
from typing import Optional

import structlog
from bson import ObjectId

from app.errors import InvalidTimePeriodError
from app.models.carryover import AdhocGoalToMove, AdhocMovePreview, AdhocMoveResult
from app.models.goal import Goal, GoalDepth
from app.models.time_period import TimePeriod
from app.services.goal_service import doc_to_goal
from app.utils.quarter import validate_time_period

logger = structlog.get_logger()


class AdhocGoalService:
    """Service for moving adhoc (depth -1) goals between week labels."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.goals = db["goals"]

    async def list_incomplete_adhoc_goals(self, user_id: str, period: TimePeriod) -> list[Goal]:
        """
        Incomplete adhoc goals labelled with a week, or a single day when
        ``period.day_of_week`` is set.
        """
        query = {
            "userId": user_id,
            "depth": int(GoalDepth.ADHOC),
            "year": period.year,
            "quarter": period.quarter,
            "adhoc.weekNumber": period.week_number,
            "isComplete": False,
        }
        if period.day_of_week is not None:
            query["adhoc.dayOfWeek"] = int(period.day_of_week)

        cursor = self.goals.find(query, sort=[("_id", 1)])
        docs = await cursor.to_list(length=None)
        return [doc_to_goal(doc) for doc in docs]

    async def list_incomplete_adhoc_goals_for_quarter(
        self,
        user_id: str,
        year: int,
        quarter: int,
    ) -> list[Goal]:
        """Incomplete adhoc goals anywhere in a quarter."""
        cursor = self.goals.find({
            "userId": user_id,
            "depth": int(GoalDepth.ADHOC),
            "year": year,
            "quarter": quarter,
            "isComplete": False,
        }, sort=[("_id", 1)])
        docs = await cursor.to_list(length=None)
        return [doc_to_goal(doc) for doc in docs]

    @staticmethod
    def summarize(goals: list[Goal], to_period: TimePeriod) -> list[AdhocGoalToMove]:
        """Preview rows for adhoc goals relabelled to ``to_period``."""
        return [
            AdhocGoalToMove(
                id=goal.id,
                title=goal.title,
                week_number=to_period.week_number,
                day_of_week=(
                    to_period.day_of_week
                    if to_period.day_of_week is not None
                    else (goal.adhoc.day_of_week if goal.adhoc else None)
                ),
            )
            for goal in goals
        ]

    async def relabel(self, goals: list[Goal], to_period: TimePeriod) -> int:
        """
        Patch the week label (and day, if requested) of the given goals.

        Returns:
            Number of goals updated
        """
        if not goals:
            return 0

        update_doc = {
            "year": to_period.year,
            "quarter": to_period.quarter,
            "adhoc.weekNumber": to_period.week_number,
            "updatedAt": datetime.utcnow(),
        }
        if to_period.day_of_week is not None:
            update_doc["adhoc.dayOfWeek"] = int(to_period.day_of_week)

        result = await self.goals.update_many(
            {"_id": {"$in": [ObjectId(goal.id) for goal in goals]}},
            {"$set": update_doc},
        )
        return result.modified_count

    def _validate(self, from_period: TimePeriod, to_period: TimePeriod) -> None:
        validate_time_period(from_period)
        validate_time_period(to_period)
        if from_period.same_week(to_period) and from_period.day_of_week == to_period.day_of_week:
            raise InvalidTimePeriodError("Source and destination are the same")

    async def preview_move_adhoc_goals(
        self,
        user_id: str,
        from_period: TimePeriod,
        to_period: TimePeriod,
    ) -> AdhocMovePreview:
        """
        Show which adhoc goals would move, without changing anything.

        Raises:
            InvalidTimePeriodError: If a period is invalid or both are equal
        """
        self._validate(from_period, to_period)
        goals = await self.list_incomplete_adhoc_goals(user_id, from_period)
        return AdhocMovePreview(adhoc_goals_to_move=self.summarize(goals, to_period))

    async def move_adhoc_goals(
        self,
        user_id: str,
        from_period: TimePeriod,
        to_period: TimePeriod,
        selected_goal_ids: Optional[list[str]] = None,
    ) -> AdhocMoveResult:
        """
        Move incomplete adhoc goals from one week (or day) to another.

        Args:
            user_id: Owner of the goals
            from_period: Source week, optionally narrowed to a day
            to_period: Destination week; its day, if set, is assigned to
                every moved goal
            selected_goal_ids: Optional subset of goals to move

        Returns:
            Summary of moved goals with the count

        Raises:
            InvalidTimePeriodError: If a period is invalid or both are equal
        """
        self._validate(from_period, to_period)
        goals = await self.list_incomplete_adhoc_goals(user_id, from_period)
        if selected_goal_ids is not None:
            goals = [goal for goal in goals if goal.id in selected_goal_ids]

        moved = await self.relabel(goals, to_period)
        logger.info(
            "adhoc_goals_moved",
            source=str(from_period),
            target=str(to_period),
            moved=moved,
        )
        return AdhocMoveResult(
            adhoc_goals_to_move=self.summarize(goals, to_period),
            adhoc_goals_moved=moved,
        )
