"""Root-goal identity resolution for carried-over goals.

Every carried-over copy points at the goal the chain started from
(``carryOver.fromGoal.rootGoalId``). At most one goal per root id may exist in
a target week or quarter; carryover engines use this module to detect copies
that already exist there.
"""
from typing import Iterable, Optional

import structlog
from bson import ObjectId

from app.models.goal import Goal, GoalDepth
from app.services.goal_service import doc_to_goal

logger = structlog.get_logger()


def get_root_goal_id(goal: Goal) -> str:
    """
    Identity of the original goal a (possibly copied) goal descends from.

    Example:
        A goal without carry-over is its own root; a copy reports the root
        recorded in ``carryOver.fromGoal.rootGoalId``.
    """
    if goal.carry_over is not None:
        return goal.carry_over.from_goal.root_goal_id
    return goal.id


def deduplicate_by_root_goal_id(goals: Iterable[Goal]) -> list[Goal]:
    """Keep the first goal seen for each root id, preserving order."""
    seen: set[str] = set()
    unique = []
    for goal in goals:
        root_goal_id = get_root_goal_id(goal)
        if root_goal_id in seen:
            continue
        seen.add(root_goal_id)
        unique.append(goal)
    return unique


class RootGoalService:
    """Lookups of existing goals by root identity in a target period."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.goals = db["goals"]
        self.goal_states = db["goal_states"]

    async def _candidates(
        self,
        user_id: str,
        target_year: int,
        target_quarter: int,
        depth: GoalDepth,
        week_number: Optional[int] = None,
    ) -> list[Goal]:
        query = {
            "userId": user_id,
            "year": target_year,
            "quarter": target_quarter,
            "depth": int(depth),
        }
        if week_number is not None:
            state_cursor = self.goal_states.find(
                {
                    "userId": user_id,
                    "year": target_year,
                    "quarter": target_quarter,
                    "weekNumber": week_number,
                },
                {"goalId": 1},
            )
            states = await state_cursor.to_list(length=None)
            query["_id"] = {
                "$in": [ObjectId(s["goalId"]) for s in states if ObjectId.is_valid(s["goalId"])]
            }

        cursor = self.goals.find(query, sort=[("_id", 1)])
        docs = await cursor.to_list(length=None)
        return [doc_to_goal(doc) for doc in docs]

    async def find_existing_goal_by_root_id(
        self,
        user_id: str,
        root_goal_id: str,
        target_year: int,
        target_quarter: int,
        depth: GoalDepth,
        parent_id: Optional[str] = None,
        week_number: Optional[int] = None,
    ) -> Optional[Goal]:
        """
        Find a goal in the target period that shares a root id.

        For depth > 0 with ``parent_id`` given, the candidate must also sit
        under that parent. When several goals match, the oldest wins.

        Args:
            user_id: Owner of the goals
            root_goal_id: Root identity to look for
            target_year: Year of the target quarter
            target_quarter: Target quarter (1-4)
            depth: Depth of the candidates
            parent_id: Required parent for depth > 0 matches
            week_number: Restrict to goals with a state in this week

        Returns:
            The matching goal, or None
        """
        candidates = await self._candidates(
            user_id, target_year, target_quarter, depth, week_number
        )
        matches = [
            goal
            for goal in candidates
            if get_root_goal_id(goal) == root_goal_id
            and (depth <= 0 or parent_id is None or goal.parent_id == parent_id)
        ]
        if len(matches) > 1:
            logger.warning(
                "duplicate_root_goal",
                root_goal_id=root_goal_id,
                match_ids=[goal.id for goal in matches],
            )
        return matches[0] if matches else None

    async def build_existing_goals_map(
        self,
        user_id: str,
        target_year: int,
        target_quarter: int,
        depth: GoalDepth,
        week_number: Optional[int] = None,
    ) -> dict[str, Goal]:
        """
        Map root id -> existing goal for every goal at a depth in the target.

        Batch form of :meth:`find_existing_goal_by_root_id` for checking many
        candidates against one period. The oldest goal wins per root id;
        callers apply the parent rule on the returned goal.
        """
        existing: dict[str, Goal] = {}
        for goal in await self._candidates(
            user_id, target_year, target_quarter, depth, week_number
        ):
            existing.setdefault(get_root_goal_id(goal), goal)
        return existing
