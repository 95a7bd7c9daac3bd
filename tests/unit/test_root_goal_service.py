"""Tests for root-goal identity resolution."""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from bson import ObjectId


def goal_doc(title, depth=1, parent_id=None, root_goal_id=None, _id=None):
    doc = {
        "_id": _id or ObjectId(),
        "userId": "user123",
        "year": 2025,
        "quarter": 1,
        "title": title,
        "depth": depth,
        "parentId": parent_id,
        "inPath": f"/{parent_id}" if parent_id else "/",
        "isComplete": False,
    }
    if root_goal_id:
        doc["carryOver"] = {
            "type": "week",
            "numWeeks": 1,
            "fromGoal": {"previousGoalId": root_goal_id, "rootGoalId": root_goal_id},
        }
    return doc


def mock_cursor(docs):
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=docs)
    return cursor


def mock_database(goal_docs, state_docs=None):
    mock_goals = MagicMock()
    mock_goals.find.return_value = mock_cursor(goal_docs)
    mock_states = MagicMock()
    mock_states.find.return_value = mock_cursor(state_docs or [])
    mock_db = MagicMock()
    mock_db.__getitem__.side_effect = {"goals": mock_goals, "goal_states": mock_states}.__getitem__
    return mock_db, mock_goals, mock_states


class TestRootGoalIdentity:
    """Tests for get_root_goal_id and deduplicate_by_root_goal_id."""

    def test_original_goal_is_its_own_root(self):
        """Test root of a goal without carry-over."""
        from app.models.goal import Goal
        from app.services.root_goal_service import get_root_goal_id

        goal = Goal.model_validate({**goal_doc("Run"), "_id": "g1"})

        assert get_root_goal_id(goal) == "g1"

    def test_copy_reports_recorded_root(self):
        """Test root of a carried-over copy."""
        from app.models.goal import Goal
        from app.services.root_goal_service import get_root_goal_id

        goal = Goal.model_validate({**goal_doc("Run", root_goal_id="g0"), "_id": "g2"})

        assert get_root_goal_id(goal) == "g0"

    def test_deduplicate_keeps_first(self):
        """Test that the first goal per root survives."""
        from app.models.goal import Goal
        from app.services.root_goal_service import deduplicate_by_root_goal_id

        goals = [
            Goal.model_validate({**goal_doc("A"), "_id": "g0"}),
            Goal.model_validate({**goal_doc("A copy", root_goal_id="g0"), "_id": "g1"}),
            Goal.model_validate({**goal_doc("B"), "_id": "g2"}),
        ]

        unique = deduplicate_by_root_goal_id(goals)

        assert [goal.id for goal in unique] == ["g0", "g2"]


@pytest.mark.asyncio
class TestFindExistingGoalByRootId:
    """Tests for RootGoalService.find_existing_goal_by_root_id."""

    async def test_no_candidates(self):
        """Test that nothing is found in an empty quarter."""
        from app.models.goal import GoalDepth
        from app.services.root_goal_service import RootGoalService

        mock_db, _, _ = mock_database([])
        service = RootGoalService(mock_db)

        found = await service.find_existing_goal_by_root_id(
            "user123", "root1", 2025, 2, GoalDepth.QUARTERLY
        )

        assert found is None

    async def test_finds_copy_by_root(self):
        """Test matching a quarterly copy by its recorded root."""
        from app.models.goal import GoalDepth
        from app.services.root_goal_service import RootGoalService

        copy = goal_doc("Get fit", depth=0, root_goal_id="root1")
        other = goal_doc("Read more", depth=0)
        mock_db, mock_goals, _ = mock_database([other, copy])
        service = RootGoalService(mock_db)

        found = await service.find_existing_goal_by_root_id(
            "user123", "root1", 2025, 2, GoalDepth.QUARTERLY
        )

        assert found.id == str(copy["_id"])
        query = mock_goals.find.call_args[0][0]
        assert query == {"userId": "user123", "year": 2025, "quarter": 2, "depth": 0}

    async def test_parent_rule_for_weekly_goals(self):
        """Test that a weekly match must sit under the requested parent."""
        from app.models.goal import GoalDepth
        from app.services.root_goal_service import RootGoalService

        under_a = goal_doc("Run 3x", parent_id="qA", root_goal_id="root1")
        under_b = goal_doc("Run 3x", parent_id="qB", root_goal_id="root1")
        mock_db, _, _ = mock_database([under_a, under_b])
        service = RootGoalService(mock_db)

        found = await service.find_existing_goal_by_root_id(
            "user123", "root1", 2025, 1, GoalDepth.WEEKLY, parent_id="qB"
        )
        missing = await service.find_existing_goal_by_root_id(
            "user123", "root1", 2025, 1, GoalDepth.WEEKLY, parent_id="qC"
        )

        assert found.id == str(under_b["_id"])
        assert missing is None

    async def test_week_restricts_to_goals_with_state(self):
        """Test that week_number narrows candidates to goals present that week."""
        from app.models.goal import GoalDepth
        from app.services.root_goal_service import RootGoalService

        present = goal_doc("Run 3x", parent_id="qA", root_goal_id="root1")
        mock_db, mock_goals, mock_states = mock_database(
            [present], state_docs=[{"goalId": str(present["_id"])}]
        )
        service = RootGoalService(mock_db)

        found = await service.find_existing_goal_by_root_id(
            "user123", "root1", 2025, 1, GoalDepth.WEEKLY, week_number=6
        )

        assert found is not None
        state_query = mock_states.find.call_args[0][0]
        assert state_query["weekNumber"] == 6
        goal_query = mock_goals.find.call_args[0][0]
        assert goal_query["_id"] == {"$in": [present["_id"]]}

    async def test_duplicates_pick_oldest_and_warn(self):
        """Test deterministic tie-break when a root exists twice."""
        from app.models.goal import GoalDepth
        from app.services.root_goal_service import RootGoalService

        older = goal_doc("Get fit", depth=0, root_goal_id="root1")
        newer = goal_doc("Get fit", depth=0, root_goal_id="root1")
        mock_db, _, _ = mock_database([older, newer])
        service = RootGoalService(mock_db)

        with patch("app.services.root_goal_service.logger") as mock_logger:
            found = await service.find_existing_goal_by_root_id(
                "user123", "root1", 2025, 2, GoalDepth.QUARTERLY
            )

        assert found.id == str(older["_id"])
        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args[0][0] == "duplicate_root_goal"


@pytest.mark.asyncio
class TestBuildExistingGoalsMap:
    """Tests for RootGoalService.build_existing_goals_map."""

    async def test_map_by_root(self):
        """Test root id -> goal mapping, oldest first."""
        from app.models.goal import GoalDepth
        from app.services.root_goal_service import RootGoalService

        original_id = ObjectId()
        original = goal_doc("Run", parent_id="qA", _id=original_id)
        copy = goal_doc("Run", parent_id="qA", root_goal_id=str(original_id))
        fresh = goal_doc("Swim", parent_id="qA")
        mock_db, _, _ = mock_database([original, copy, fresh])
        service = RootGoalService(mock_db)

        existing = await service.build_existing_goals_map(
            "user123", 2025, 1, GoalDepth.WEEKLY
        )

        assert set(existing) == {str(original_id), str(fresh["_id"])}
        assert existing[str(original_id)].id == str(original_id)
