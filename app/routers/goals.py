"""Goal router - API endpoints for goal records, week trees and week states."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.database import get_database
from app.errors import http_error_from
from app.models.goal import Goal, GoalCreate, GoalDepth, GoalParentUpdate, GoalUpdate
from app.models.goal_state import GoalState, GoalStateUpdate
from app.models.goal_tree import GoalTreeNode
from app.models.time_period import TimePeriod
from app.routers.auth import get_current_user_id
from app.services.goal_service import GoalService


router = APIRouter(prefix="/goals", tags=["goals"])


@router.post("", response_model=Goal, status_code=status.HTTP_201_CREATED)
async def create_goal(
    goal: GoalCreate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Create a goal.

    - Requires authentication
    - Weekly goals need a quarterly parent, daily goals a weekly parent and a day
    - Quarterly goals get a state for every week of their quarter
    """
    service = GoalService(db)
    try:
        return await service.create_goal(user_id=user_id, goal_create=goal)
    except ValueError as e:
        raise http_error_from(e)


@router.get("", response_model=list[Goal])
async def list_goals(
    year: int = Query(..., description="Calendar year"),
    quarter: int = Query(..., ge=1, le=4, description="Quarter (1-4)"),
    depth: Optional[GoalDepth] = Query(None, description="Filter by depth (-1, 0, 1, 2)"),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    List a quarter's goals for the authenticated user.

    - Requires authentication
    - Optional filter: depth
    """
    service = GoalService(db)
    return await service.list_goals(user_id=user_id, year=year, quarter=quarter, depth=depth)


@router.get("/weeks/{year}/{quarter}/{week_number}", response_model=list[GoalTreeNode])
async def get_week_goals_tree(
    year: int,
    quarter: int,
    week_number: int,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Get the quarterly -> weekly -> daily tree of one week.

    - Requires authentication
    - Each node carries its state for the week
    - Returns 400 if the week is not part of the quarter
    """
    service = GoalService(db)
    try:
        period = TimePeriod(year=year, quarter=quarter, week_number=week_number)
        return await service.get_week_goals_tree(user_id=user_id, period=period)
    except ValueError as e:
        raise http_error_from(e)


@router.get("/{goal_id}", response_model=Goal)
async def get_goal(
    goal_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Get a single goal.

    - Requires authentication
    - Returns 404 if goal not found, 403 if owned by someone else
    """
    service = GoalService(db)
    try:
        return await service.get_goal(user_id=user_id, goal_id=goal_id)
    except ValueError as e:
        raise http_error_from(e)


@router.patch("/{goal_id}", response_model=Goal)
async def update_goal(
    goal_id: str,
    goal_update: GoalUpdate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Update a goal.

    - Requires authentication
    - Completing a goal stamps completedAt, reopening clears it
    """
    service = GoalService(db)
    try:
        return await service.update_goal(
            user_id=user_id,
            goal_id=goal_id,
            goal_update=goal_update,
        )
    except ValueError as e:
        raise http_error_from(e)


@router.patch("/{goal_id}/parent", response_model=Goal)
async def update_goal_parent(
    goal_id: str,
    parent_update: GoalParentUpdate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Move a weekly goal under another quarterly goal of the same quarter.

    - Requires authentication
    - Daily children follow their weekly goal
    """
    service = GoalService(db)
    try:
        return await service.update_goal_parent(
            user_id=user_id,
            goal_id=goal_id,
            parent_id=parent_update.parent_id,
        )
    except ValueError as e:
        raise http_error_from(e)


@router.patch("/{goal_id}/weeks/{year}/{quarter}/{week_number}", response_model=GoalState)
async def update_week_state(
    goal_id: str,
    year: int,
    quarter: int,
    week_number: int,
    state_update: GoalStateUpdate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Star, pin or complete a goal for one week.

    - Requires authentication
    - Starring clears the pin, pinning clears the star
    """
    service = GoalService(db)
    try:
        period = TimePeriod(year=year, quarter=quarter, week_number=week_number)
        return await service.update_week_state(
            user_id=user_id,
            goal_id=goal_id,
            period=period,
            state_update=state_update,
        )
    except ValueError as e:
        raise http_error_from(e)


@router.delete("/{goal_id}")
async def delete_goal(
    goal_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Delete a goal with its descendants and their week states.

    - Requires authentication
    - Returns 404 if goal not found
    """
    service = GoalService(db)
    try:
        return await service.delete_goal(user_id=user_id, goal_id=goal_id)
    except ValueError as e:
        raise http_error_from(e)
