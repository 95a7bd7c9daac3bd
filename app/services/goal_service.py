"""Goal service - business logic for goal records and their week states."""
import re
from datetime import datetime
from typing import Iterable, Optional

import structlog
from bson import ObjectId
from bson.errors import InvalidId

from app.errors import (
    GoalAccessDeniedError,
    GoalNotFoundError,
    GoalTreeError,
    GoalValidationError,
)
from app.models.goal import Goal, GoalCreate, GoalDepth, GoalUpdate
from app.models.goal_state import GoalState, GoalStateUpdate
from app.models.goal_tree import GoalTreeNode
from app.models.time_period import TimePeriod
from app.utils.goal_tree import build_goal_tree
from app.utils.iso_week import get_week_day
from app.utils.path import child_in_path, join_path, validate_goal_path
from app.utils.quarter import get_quarter_weeks, validate_time_period

logger = structlog.get_logger()


def to_object_id(goal_id: str) -> ObjectId:
    """
    Parse a goal id.

    Raises:
        GoalNotFoundError: If the id is not a valid ObjectId
    """
    try:
        return ObjectId(goal_id)
    except (InvalidId, TypeError):
        raise GoalNotFoundError()


def doc_to_goal(doc: dict) -> Goal:
    """Convert a goals document to a Goal model."""
    return Goal.model_validate({**doc, "_id": str(doc["_id"])})


def doc_to_state(doc: dict) -> GoalState:
    """Convert a goal_states document to a GoalState model."""
    return GoalState.model_validate({**doc, "_id": str(doc["_id"])})


def week_query(user_id: str, period: TimePeriod) -> dict:
    """Index-aligned filter for the states of one week."""
    return {
        "userId": user_id,
        "year": period.year,
        "quarter": period.quarter,
        "weekNumber": period.week_number,
    }


def daily_state_doc(period: TimePeriod, day_of_week: int) -> dict:
    """Daily sub-state for a day of the given week."""
    day = get_week_day(period.year, period.week_number, day_of_week)
    return {
        "dayOfWeek": int(day_of_week),
        "dateTimestamp": datetime.combine(day, datetime.min.time()),
    }


def is_goal_complete(goal: Goal, state: Optional[GoalState]) -> bool:
    """A goal counts as complete if either the goal or its week state says so."""
    return goal.is_complete or bool(state and state.is_complete)


class GoalService:
    """Service for goal records, week states and week trees."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.goals = db["goals"]
        self.goal_states = db["goal_states"]

    # Shared lookups

    async def get_week_states(self, user_id: str, period: TimePeriod) -> list[GoalState]:
        """All goal states of a week, in insertion order."""
        cursor = self.goal_states.find(week_query(user_id, period), sort=[("_id", 1)])
        docs = await cursor.to_list(length=None)
        return [doc_to_state(doc) for doc in docs]

    async def get_goals_by_ids(self, user_id: str, goal_ids: Iterable[str]) -> dict[str, Goal]:
        """Fetch the caller's goals by id; unknown ids are left out."""
        object_ids = [ObjectId(goal_id) for goal_id in set(goal_ids) if ObjectId.is_valid(goal_id)]
        if not object_ids:
            return {}
        cursor = self.goals.find({"_id": {"$in": object_ids}, "userId": user_id}, sort=[("_id", 1)])
        docs = await cursor.to_list(length=None)
        return {str(doc["_id"]): doc_to_goal(doc) for doc in docs}

    async def get_week_state(
        self,
        user_id: str,
        goal_id: str,
        period: TimePeriod,
    ) -> Optional[GoalState]:
        """State of one goal in one week, if any."""
        doc = await self.goal_states.find_one({**week_query(user_id, period), "goalId": goal_id})
        return doc_to_state(doc) if doc else None

    async def ensure_week_state(
        self,
        user_id: str,
        goal_id: str,
        period: TimePeriod,
    ) -> tuple[GoalState, bool]:
        """
        Make sure a goal has a state row in a week.

        Returns:
            The state and whether it was created
        """
        existing = await self.get_week_state(user_id, goal_id, period)
        if existing:
            return existing, False

        state_doc = {
            **week_query(user_id, period),
            "goalId": goal_id,
            "isStarred": False,
            "isPinned": False,
            "isComplete": False,
        }
        result = await self.goal_states.insert_one(state_doc)
        state_doc["_id"] = result.inserted_id
        return doc_to_state(state_doc), True

    # Goal records

    async def create_goal(self, user_id: str, goal_create: GoalCreate) -> Goal:
        """
        Create a goal at its depth, with its initial week state(s).

        Quarterly goals get a state for every week of their quarter, weekly
        goals for their week, daily goals for their week with a day assigned.
        Adhoc goals carry their week label in the ``adhoc`` sub-record.

        Args:
            user_id: User ID who owns the goal
            goal_create: Goal creation data

        Returns:
            Created goal object

        Raises:
            GoalValidationError: If title, parent or week data is inconsistent
            InvalidTimePeriodError: If the week is not part of the quarter
            GoalNotFoundError: If the parent does not exist
            GoalAccessDeniedError: If the parent belongs to another user
        """
        title = goal_create.title.strip()
        if not title:
            raise GoalValidationError("Title cannot be empty")

        depth = goal_create.depth
        period = None
        if depth != GoalDepth.QUARTERLY:
            if goal_create.week_number is None:
                raise GoalValidationError("weekNumber is required for non-quarterly goals")
            period = TimePeriod(
                year=goal_create.year,
                quarter=goal_create.quarter,
                week_number=goal_create.week_number,
            )
            validate_time_period(period)

        parent = None
        if depth in (GoalDepth.QUARTERLY, GoalDepth.ADHOC):
            if goal_create.parent_id:
                raise GoalValidationError("Quarterly and adhoc goals cannot have a parent")
            in_path = "/"
        else:
            if not goal_create.parent_id:
                raise GoalValidationError(f"Depth {int(depth)} goals require a parentId")
            parent = await self.get_goal(user_id, goal_create.parent_id)
            if parent.depth != depth - 1:
                raise GoalValidationError(
                    f"Parent of a depth {int(depth)} goal must have depth {int(depth) - 1}"
                )
            if (parent.year, parent.quarter) != (goal_create.year, goal_create.quarter):
                raise GoalValidationError("Parent goal belongs to a different quarter")
            in_path = child_in_path(parent.in_path, parent.id)
            if not validate_goal_path(depth, in_path):
                raise GoalTreeError(f"Parent {parent.id} has a malformed path {parent.in_path!r}")

        if depth == GoalDepth.DAILY and goal_create.day_of_week is None:
            raise GoalValidationError("dayOfWeek is required for daily goals")

        now = datetime.utcnow()
        goal_doc = {
            "userId": user_id,
            "year": goal_create.year,
            "quarter": goal_create.quarter,
            "title": title,
            "details": goal_create.details,
            "depth": int(depth),
            "parentId": parent.id if parent else None,
            "inPath": in_path,
            "isComplete": False,
            "completedAt": None,
            "domainId": goal_create.domain_id,
            "createdAt": now,
            "updatedAt": now,
        }
        if depth == GoalDepth.ADHOC:
            goal_doc["adhoc"] = {
                "weekNumber": goal_create.week_number,
                "dayOfWeek": int(goal_create.day_of_week) if goal_create.day_of_week else None,
                "dueDate": goal_create.due_date,
                "domainId": goal_create.domain_id,
            }

        result = await self.goals.insert_one(goal_doc)
        goal_doc["_id"] = result.inserted_id
        goal = doc_to_goal(goal_doc)

        if depth == GoalDepth.QUARTERLY:
            weeks = get_quarter_weeks(goal.year, goal.quarter).weeks
            await self.goal_states.insert_many([
                {
                    "userId": user_id,
                    "year": goal.year,
                    "quarter": goal.quarter,
                    "weekNumber": week,
                    "goalId": goal.id,
                    "isStarred": False,
                    "isPinned": False,
                    "isComplete": False,
                }
                for week in weeks
            ])
        elif depth in (GoalDepth.WEEKLY, GoalDepth.DAILY):
            state_doc = {
                **week_query(user_id, period),
                "goalId": goal.id,
                "isStarred": False,
                "isPinned": False,
                "isComplete": False,
            }
            if depth == GoalDepth.DAILY:
                state_doc["daily"] = daily_state_doc(period, goal_create.day_of_week)
            await self.goal_states.insert_one(state_doc)
            # Ancestors must be present in the week for the week tree to resolve.
            await self.ensure_week_state(user_id, parent.id, period)
            if parent.parent_id:
                await self.ensure_week_state(user_id, parent.parent_id, period)

        logger.info("goal_created", goal_id=goal.id, depth=int(depth))
        return goal

    async def get_goal(self, user_id: str, goal_id: str) -> Goal:
        """
        Get a single goal owned by the user.

        Raises:
            GoalNotFoundError: If goal not found
            GoalAccessDeniedError: If goal belongs to another user
        """
        goal_doc = await self.goals.find_one({"_id": to_object_id(goal_id)})
        if not goal_doc:
            raise GoalNotFoundError()
        if goal_doc["userId"] != user_id:
            raise GoalAccessDeniedError()
        return doc_to_goal(goal_doc)

    async def list_goals(
        self,
        user_id: str,
        year: int,
        quarter: int,
        depth: Optional[GoalDepth] = None,
    ) -> list[Goal]:
        """
        List a quarter's goals, optionally at one depth.

        Args:
            user_id: User ID
            year: Calendar year
            quarter: Quarter number (1-4)
            depth: Optional depth filter

        Returns:
            List of goals in creation order
        """
        query = {"userId": user_id, "year": year, "quarter": quarter}
        if depth is not None:
            query["depth"] = int(depth)

        cursor = self.goals.find(query, sort=[("_id", 1)])
        goal_docs = await cursor.to_list(length=None)
        return [doc_to_goal(doc) for doc in goal_docs]

    async def update_goal(self, user_id: str, goal_id: str, goal_update: GoalUpdate) -> Goal:
        """
        Update title, details, domain or completion of a goal.

        Raises:
            GoalValidationError: If the new title is empty
            GoalNotFoundError: If goal not found
            GoalAccessDeniedError: If goal belongs to another user
        """
        existing = await self.get_goal(user_id, goal_id)

        update_doc = {"updatedAt": datetime.utcnow()}
        if goal_update.title is not None:
            title = goal_update.title.strip()
            if not title:
                raise GoalValidationError("Title cannot be empty")
            update_doc["title"] = title
        if goal_update.details is not None:
            update_doc["details"] = goal_update.details
        if goal_update.domain_id is not None:
            update_doc["domainId"] = goal_update.domain_id
            if existing.adhoc is not None:
                update_doc["adhoc.domainId"] = goal_update.domain_id
        if goal_update.is_complete is not None:
            update_doc["isComplete"] = goal_update.is_complete
            update_doc["completedAt"] = datetime.utcnow() if goal_update.is_complete else None

        updated_doc = await self.goals.find_one_and_update(
            {"_id": ObjectId(existing.id)},
            {"$set": update_doc},
            return_document=True,
        )
        return doc_to_goal(updated_doc)

    async def update_goal_parent(self, user_id: str, goal_id: str, parent_id: str) -> Goal:
        """
        Move a weekly goal under another quarterly goal of the same quarter.

        Child paths are rewritten and the new parent is given a state in
        every week the weekly goal appears in.

        Raises:
            GoalValidationError: If the goal is not weekly or the parent is not
                a quarterly goal of the same quarter
            GoalNotFoundError: If either goal is missing
            GoalAccessDeniedError: If either goal belongs to another user
        """
        goal = await self.get_goal(user_id, goal_id)
        if goal.depth != GoalDepth.WEEKLY:
            raise GoalValidationError("Only weekly goals can be reparented")
        parent = await self.get_goal(user_id, parent_id)
        if parent.depth != GoalDepth.QUARTERLY:
            raise GoalValidationError("New parent must be a quarterly goal")
        if (parent.year, parent.quarter) != (goal.year, goal.quarter):
            raise GoalValidationError("New parent belongs to a different quarter")

        new_in_path = child_in_path(parent.in_path, parent.id)
        updated_doc = await self.goals.find_one_and_update(
            {"_id": ObjectId(goal.id)},
            {"$set": {"parentId": parent.id, "inPath": new_in_path, "updatedAt": datetime.utcnow()}},
            return_document=True,
        )
        await self.goals.update_many(
            {"userId": user_id, "parentId": goal.id},
            {"$set": {"inPath": child_in_path(new_in_path, goal.id)}},
        )

        cursor = self.goal_states.find({"userId": user_id, "goalId": goal.id})
        for state_doc in await cursor.to_list(length=None):
            state = doc_to_state(state_doc)
            period = TimePeriod(year=state.year, quarter=state.quarter, week_number=state.week_number)
            await self.ensure_week_state(user_id, parent.id, period)

        return doc_to_goal(updated_doc)

    async def update_week_state(
        self,
        user_id: str,
        goal_id: str,
        period: TimePeriod,
        state_update: GoalStateUpdate,
    ) -> GoalState:
        """
        Star, pin or complete a goal for one week.

        Starring clears the pin and pinning clears the star.

        Raises:
            GoalNotFoundError: If goal or its state for the week is missing
            GoalAccessDeniedError: If goal belongs to another user
            InvalidTimePeriodError: If the week is not part of the quarter
        """
        validate_time_period(period)
        goal = await self.get_goal(user_id, goal_id)
        state = await self.get_week_state(user_id, goal.id, period)
        if state is None:
            raise GoalNotFoundError(f"Goal has no state in week {period}")

        update_doc = {}
        if state_update.is_starred is not None:
            update_doc["isStarred"] = state_update.is_starred
            if state_update.is_starred:
                update_doc["isPinned"] = False
        if state_update.is_pinned is not None and not update_doc.get("isStarred"):
            update_doc["isPinned"] = state_update.is_pinned
            if state_update.is_pinned:
                update_doc["isStarred"] = False
        if state_update.is_complete is not None:
            update_doc["isComplete"] = state_update.is_complete
        if not update_doc:
            return state

        updated_doc = await self.goal_states.find_one_and_update(
            {"_id": ObjectId(state.id)},
            {"$set": update_doc},
            return_document=True,
        )
        return doc_to_state(updated_doc)

    async def delete_goal(self, user_id: str, goal_id: str) -> dict:
        """
        Delete a goal, its descendants and all of their week states.

        Returns:
            Dictionary with deleted_count (goals removed)

        Raises:
            GoalNotFoundError: If goal not found
            GoalAccessDeniedError: If goal belongs to another user
        """
        goal = await self.get_goal(user_id, goal_id)
        descendant_path = join_path(goal.in_path, goal.id)

        cursor = self.goals.find(
            {
                "userId": user_id,
                "$or": [
                    {"inPath": descendant_path},
                    {"inPath": {"$regex": f"^{re.escape(descendant_path)}/"}},
                ],
            },
            {"_id": 1},
        )
        descendant_ids = [doc["_id"] for doc in await cursor.to_list(length=None)]
        object_ids = [ObjectId(goal.id), *descendant_ids]

        await self.goal_states.delete_many(
            {"userId": user_id, "goalId": {"$in": [str(oid) for oid in object_ids]}}
        )
        result = await self.goals.delete_many({"_id": {"$in": object_ids}})

        logger.info("goal_deleted", goal_id=goal.id, deleted_count=result.deleted_count)
        return {"deleted_count": result.deleted_count}

    # Week view

    async def get_week_goals_tree(self, user_id: str, period: TimePeriod) -> list[GoalTreeNode]:
        """
        Build the goal tree of one week, each node carrying its week state.

        Raises:
            InvalidTimePeriodError: If the week is not part of the quarter
            GoalTreeError: If a goal's parent is missing from the week
        """
        validate_time_period(period)
        states = await self.get_week_states(user_id, period)
        state_by_goal = {state.goal_id: state for state in states}
        goals_by_id = await self.get_goals_by_ids(user_id, state_by_goal)

        def decorate(goal: Goal) -> GoalTreeNode:
            return GoalTreeNode(**goal.model_dump(), state=state_by_goal.get(goal.id))

        ordered = [goals_by_id[goal_id] for goal_id in state_by_goal if goal_id in goals_by_id]
        return build_goal_tree(ordered, decorate).tree
