"""Tests for GoalService."""
import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId

from app.models.goal import GoalCreate, GoalDepth
from app.models.time_period import TimePeriod

USER = "user123"
WEEK_5 = TimePeriod(year=2025, quarter=1, week_number=5)


def quarterly(title="Get fit", year=2025, quarter=1):
    return GoalCreate(title=title, year=year, quarter=quarter, depth=GoalDepth.QUARTERLY)


def weekly(parent_id, title="Run 3x", week_number=5):
    return GoalCreate(
        title=title,
        year=2025,
        quarter=1,
        depth=GoalDepth.WEEKLY,
        parent_id=parent_id,
        week_number=week_number,
    )


def daily(parent_id, title="Monday run", week_number=5, day_of_week=1):
    return GoalCreate(
        title=title,
        year=2025,
        quarter=1,
        depth=GoalDepth.DAILY,
        parent_id=parent_id,
        week_number=week_number,
        day_of_week=day_of_week,
    )


@pytest.mark.asyncio
class TestGoalServiceCreate:
    """Tests for creating goals."""

    async def test_create_quarterly_goal(self, db):
        """Test that a quarterly goal gets a state for every week of its quarter."""
        from app.services.goal_service import GoalService

        service = GoalService(db)
        goal = await service.create_goal(USER, quarterly())

        assert goal.depth == GoalDepth.QUARTERLY
        assert goal.in_path == "/"
        assert goal.parent_id is None
        states = await db["goal_states"].find({"goalId": goal.id}).to_list(length=None)
        assert sorted(state["weekNumber"] for state in states) == list(range(1, 14))

    async def test_create_weekly_and_daily_goals(self, db):
        """Test paths and week states down the hierarchy."""
        from app.services.goal_service import GoalService

        service = GoalService(db)
        q = await service.create_goal(USER, quarterly())
        w = await service.create_goal(USER, weekly(q.id))
        d = await service.create_goal(USER, daily(w.id, day_of_week=3))

        assert w.in_path == f"/{q.id}"
        assert d.in_path == f"/{q.id}/{w.id}"
        daily_state = await service.get_week_state(USER, d.id, WEEK_5)
        assert daily_state.daily.day_of_week == 3
        assert daily_state.daily.date_timestamp == datetime(2025, 1, 29)
        assert await service.get_week_state(USER, w.id, WEEK_5) is not None

    async def test_create_strips_title(self, db):
        """Test title trimming."""
        from app.services.goal_service import GoalService

        goal = await GoalService(db).create_goal(USER, quarterly(title="  Get fit  "))

        assert goal.title == "Get fit"

    async def test_create_empty_title(self, db):
        """Test that a blank title is rejected."""
        from app.errors import GoalValidationError
        from app.services.goal_service import GoalService

        with pytest.raises(GoalValidationError):
            await GoalService(db).create_goal(USER, quarterly(title="   "))

    async def test_create_weekly_without_parent(self, db):
        """Test that weekly goals need a parent."""
        from app.errors import GoalValidationError
        from app.services.goal_service import GoalService

        with pytest.raises(GoalValidationError):
            await GoalService(db).create_goal(USER, weekly(None))

    async def test_create_weekly_with_wrong_parent_depth(self, db):
        """Test that a weekly goal cannot sit under another weekly goal."""
        from app.errors import GoalValidationError
        from app.services.goal_service import GoalService

        service = GoalService(db)
        q = await service.create_goal(USER, quarterly())
        w = await service.create_goal(USER, weekly(q.id))

        with pytest.raises(GoalValidationError):
            await service.create_goal(USER, weekly(w.id))

    async def test_create_daily_without_day(self, db):
        """Test that daily goals need a day."""
        from app.errors import GoalValidationError
        from app.services.goal_service import GoalService

        service = GoalService(db)
        q = await service.create_goal(USER, quarterly())
        w = await service.create_goal(USER, weekly(q.id))

        with pytest.raises(GoalValidationError):
            await service.create_goal(USER, daily(w.id, day_of_week=None))

    async def test_create_week_outside_quarter(self, db):
        """Test that the week must belong to the quarter."""
        from app.errors import InvalidTimePeriodError
        from app.services.goal_service import GoalService

        service = GoalService(db)
        q = await service.create_goal(USER, quarterly())

        with pytest.raises(InvalidTimePeriodError):
            await service.create_goal(USER, weekly(q.id, week_number=14))

    async def test_create_under_foreign_parent(self, db):
        """Test that another user's parent is refused."""
        from app.errors import GoalAccessDeniedError
        from app.services.goal_service import GoalService

        service = GoalService(db)
        q = await service.create_goal("someone-else", quarterly())

        with pytest.raises(GoalAccessDeniedError):
            await service.create_goal(USER, weekly(q.id))

    async def test_create_under_malformed_parent_path(self, db):
        """Test that a parent with a broken inPath is a structural error."""
        from app.errors import GoalTreeError
        from app.services.goal_service import GoalService

        service = GoalService(db)
        q = await service.create_goal(USER, quarterly())
        await db["goals"].update_one({"_id": ObjectId(q.id)}, {"$set": {"inPath": "/stray"}})

        with pytest.raises(GoalTreeError):
            await service.create_goal(USER, weekly(q.id))
        assert await db["goals"].count_documents({"depth": 1}) == 0


@pytest.mark.asyncio
class TestGoalServiceGet:
    """Tests for getting goals."""

    async def test_get_goal_not_found(self):
        """Test getting a goal that does not exist."""
        from app.errors import GoalNotFoundError
        from app.services.goal_service import GoalService

        mock_db = MagicMock()
        mock_goals = AsyncMock()
        mock_db.__getitem__.return_value = mock_goals
        mock_goals.find_one.return_value = None

        service = GoalService(mock_db)

        with pytest.raises(GoalNotFoundError):
            await service.get_goal(user_id=USER, goal_id=str(ObjectId()))

    async def test_get_goal_invalid_id(self):
        """Test that a malformed id reads as not found."""
        from app.errors import GoalNotFoundError
        from app.services.goal_service import GoalService

        service = GoalService(MagicMock())

        with pytest.raises(GoalNotFoundError):
            await service.get_goal(user_id=USER, goal_id="not-an-id")

    async def test_get_goal_wrong_user(self):
        """Test getting another user's goal."""
        from app.errors import GoalAccessDeniedError
        from app.services.goal_service import GoalService

        mock_db = MagicMock()
        mock_goals = AsyncMock()
        mock_db.__getitem__.return_value = mock_goals
        mock_goals.find_one.return_value = {
            "_id": ObjectId(),
            "userId": "different_user",
            "year": 2025,
            "quarter": 1,
            "title": "Secret",
            "depth": 0,
        }

        service = GoalService(mock_db)

        with pytest.raises(GoalAccessDeniedError):
            await service.get_goal(user_id=USER, goal_id=str(ObjectId()))

    async def test_list_goals_by_depth(self, db):
        """Test listing a quarter's goals filtered by depth."""
        from app.services.goal_service import GoalService

        service = GoalService(db)
        q = await service.create_goal(USER, quarterly())
        await service.create_goal(USER, weekly(q.id))
        await service.create_goal(USER, quarterly(title="Q2 goal", quarter=2))

        all_q1 = await service.list_goals(USER, 2025, 1)
        quarterly_only = await service.list_goals(USER, 2025, 1, depth=GoalDepth.QUARTERLY)

        assert len(all_q1) == 2
        assert [goal.id for goal in quarterly_only] == [q.id]


@pytest.mark.asyncio
class TestGoalServiceUpdate:
    """Tests for updating goals and week states."""

    async def test_complete_and_reopen(self, db):
        """Test completedAt bookkeeping."""
        from app.models.goal import GoalUpdate
        from app.services.goal_service import GoalService

        service = GoalService(db)
        q = await service.create_goal(USER, quarterly())

        completed = await service.update_goal(USER, q.id, GoalUpdate(is_complete=True))
        reopened = await service.update_goal(USER, q.id, GoalUpdate(is_complete=False))

        assert completed.is_complete is True
        assert completed.completed_at is not None
        assert reopened.is_complete is False
        assert reopened.completed_at is None

    async def test_update_blank_title(self, db):
        """Test that renaming to blank is rejected."""
        from app.errors import GoalValidationError
        from app.models.goal import GoalUpdate
        from app.services.goal_service import GoalService

        service = GoalService(db)
        q = await service.create_goal(USER, quarterly())

        with pytest.raises(GoalValidationError):
            await service.update_goal(USER, q.id, GoalUpdate(title=""))

    async def test_star_clears_pin(self, db):
        """Test that starring and pinning are exclusive."""
        from app.models.goal_state import GoalStateUpdate
        from app.services.goal_service import GoalService

        service = GoalService(db)
        q = await service.create_goal(USER, quarterly())

        pinned = await service.update_week_state(
            USER, q.id, WEEK_5, GoalStateUpdate(is_pinned=True)
        )
        starred = await service.update_week_state(
            USER, q.id, WEEK_5, GoalStateUpdate(is_starred=True)
        )

        assert (pinned.is_pinned, pinned.is_starred) == (True, False)
        assert (starred.is_pinned, starred.is_starred) == (False, True)

    async def test_update_state_missing_week(self, db):
        """Test updating a week the goal is not part of."""
        from app.errors import GoalNotFoundError
        from app.models.goal_state import GoalStateUpdate
        from app.services.goal_service import GoalService

        service = GoalService(db)
        q = await service.create_goal(USER, quarterly())
        w = await service.create_goal(USER, weekly(q.id))
        week_6 = TimePeriod(year=2025, quarter=1, week_number=6)

        with pytest.raises(GoalNotFoundError):
            await service.update_week_state(USER, w.id, week_6, GoalStateUpdate(is_complete=True))

    async def test_reparent_weekly_goal(self, db):
        """Test moving a weekly goal under another quarterly goal."""
        from app.services.goal_service import GoalService

        service = GoalService(db)
        q1 = await service.create_goal(USER, quarterly(title="Get fit"))
        q2 = await service.create_goal(USER, quarterly(title="Be healthy"))
        w = await service.create_goal(USER, weekly(q1.id))
        d = await service.create_goal(USER, daily(w.id))

        moved = await service.update_goal_parent(USER, w.id, q2.id)

        assert moved.parent_id == q2.id
        assert moved.in_path == f"/{q2.id}"
        child = await service.get_goal(USER, d.id)
        assert child.in_path == f"/{q2.id}/{w.id}"

    async def test_reparent_requires_quarterly_parent(self, db):
        """Test that only quarterly goals can be new parents."""
        from app.errors import GoalValidationError
        from app.services.goal_service import GoalService

        service = GoalService(db)
        q = await service.create_goal(USER, quarterly())
        w1 = await service.create_goal(USER, weekly(q.id))
        w2 = await service.create_goal(USER, weekly(q.id, title="Swim"))

        with pytest.raises(GoalValidationError):
            await service.update_goal_parent(USER, w1.id, w2.id)


@pytest.mark.asyncio
class TestGoalServiceDelete:
    """Tests for deleting goals."""

    async def test_delete_cascades(self, db):
        """Test that descendants and their states go too."""
        from app.services.goal_service import GoalService

        service = GoalService(db)
        q = await service.create_goal(USER, quarterly())
        w = await service.create_goal(USER, weekly(q.id))
        await service.create_goal(USER, daily(w.id))
        other = await service.create_goal(USER, quarterly(title="Keep me"))

        result = await service.delete_goal(USER, q.id)

        assert result == {"deleted_count": 3}
        remaining = await service.list_goals(USER, 2025, 1)
        assert [goal.id for goal in remaining] == [other.id]
        states = await db["goal_states"].find({"goalId": q.id}).to_list(length=None)
        assert states == []

    async def test_delete_weekly_keeps_parent(self, db):
        """Test deleting a mid-level goal."""
        from app.services.goal_service import GoalService

        service = GoalService(db)
        q = await service.create_goal(USER, quarterly())
        w = await service.create_goal(USER, weekly(q.id))
        await service.create_goal(USER, daily(w.id))

        result = await service.delete_goal(USER, w.id)

        assert result == {"deleted_count": 2}
        assert [goal.id for goal in await service.list_goals(USER, 2025, 1)] == [q.id]


@pytest.mark.asyncio
class TestWeekGoalsTree:
    """Tests for the week tree view."""

    async def test_week_tree(self, db):
        """Test that a week's goals come back as a tree with states attached."""
        from app.services.goal_service import GoalService

        service = GoalService(db)
        q = await service.create_goal(USER, quarterly())
        w = await service.create_goal(USER, weekly(q.id))
        d = await service.create_goal(USER, daily(w.id, day_of_week=2))
        await service.create_goal(USER, weekly(q.id, title="Next week", week_number=6))

        tree = await service.get_week_goals_tree(USER, WEEK_5)

        assert [node.id for node in tree] == [q.id]
        assert [node.id for node in tree[0].children] == [w.id]
        daily_node = tree[0].children[0].children[0]
        assert daily_node.id == d.id
        assert daily_node.state.daily.day_of_week == 2
        assert daily_node.grand_parent_title == "Get fit"

    async def test_empty_week(self, db):
        """Test a week with no goals."""
        from app.services.goal_service import GoalService

        assert await GoalService(db).get_week_goals_tree(USER, WEEK_5) == []
