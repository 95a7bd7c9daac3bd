"""Carryover router - week, day, quarter and adhoc goal migration endpoints.

Every POST takes ``dryRun``: true returns a read-only preview, false applies
the migration and returns the same summary with mutation counts.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.database import get_database
from app.errors import http_error_from
from app.models.carryover import (
    AdhocMovePreview,
    AdhocMoveResult,
    DayMovePreview,
    DayMoveRequest,
    DayMoveResult,
    LastNonEmptyWeekRequest,
    QuarterCarryoverPreview,
    QuarterCarryoverResult,
    QuarterMoveRequest,
    WeekCarryoverPreview,
    WeekCarryoverResult,
    WeekMoveRequest,
)
from app.models.time_period import TimePeriod
from app.routers.auth import get_current_user_id
from app.services.adhoc_goal_service import AdhocGoalService
from app.services.quarter_carryover_service import QuarterCarryoverService
from app.services.week_carryover_service import WeekCarryoverService


router = APIRouter(prefix="/carryover", tags=["carryover"])


@router.post("/week", response_model=None)
async def move_goals_from_week(
    request: WeekMoveRequest,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
) -> WeekCarryoverPreview | WeekCarryoverResult:
    """
    Carry incomplete goals from one week into another.

    - Requires authentication
    - Goals already carried into the destination week are reported as skipped
    - Returns 400 for invalid or identical weeks
    """
    service = WeekCarryoverService(db)
    try:
        if request.dry_run:
            return await service.preview_move_goals_from_week(
                user_id, request.from_period, request.to_period
            )
        return await service.move_goals_from_week(
            user_id, request.from_period, request.to_period
        )
    except ValueError as e:
        raise http_error_from(e)


@router.get("/week/last-non-empty", response_model=Optional[TimePeriod])
async def find_last_non_empty_week(
    year: int = Query(...),
    quarter: int = Query(..., ge=1, le=4),
    week_number: int = Query(..., alias="weekNumber", ge=1, le=53),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Find the nearest earlier week that still has movable goals.

    - Requires authentication
    - Returns null when nothing is found within the search horizon
    """
    service = WeekCarryoverService(db)
    try:
        period = TimePeriod(year=year, quarter=quarter, week_number=week_number)
        return await service.find_last_non_empty_week(user_id, period)
    except ValueError as e:
        raise http_error_from(e)


@router.post("/week/last-non-empty", response_model=None)
async def move_goals_from_last_non_empty_week(
    request: LastNonEmptyWeekRequest,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
) -> WeekCarryoverPreview | WeekCarryoverResult:
    """
    Pull goals from the nearest earlier week that has any.

    - Requires authentication
    - canPull is false when no such week exists
    """
    service = WeekCarryoverService(db)
    try:
        if request.dry_run:
            return await service.preview_move_goals_from_last_non_empty_week(
                user_id, request.to_period
            )
        return await service.move_goals_from_last_non_empty_week(user_id, request.to_period)
    except ValueError as e:
        raise http_error_from(e)


@router.post("/goals/{goal_id}/week", response_model=None)
async def move_weekly_goal(
    goal_id: str,
    request: WeekMoveRequest,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
) -> WeekCarryoverPreview | WeekCarryoverResult:
    """
    Move a single weekly goal (with its incomplete daily goals) to another week.

    - Requires authentication
    - Returns 404 if the goal is missing, 403 if owned by someone else
    """
    service = WeekCarryoverService(db)
    try:
        if request.dry_run:
            return await service.preview_move_weekly_goal(
                user_id, goal_id, request.from_period, request.to_period
            )
        return await service.move_weekly_goal(
            user_id, goal_id, request.from_period, request.to_period
        )
    except ValueError as e:
        raise http_error_from(e)


@router.post("/day", response_model=None)
async def move_goals_from_day(
    request: DayMoveRequest,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
) -> DayMovePreview | DayMoveResult:
    """
    Move the daily goals of one day to another day of the same quarter.

    - Requires authentication
    - moveOnlyIncomplete (default true) leaves completed goals in place
    - Returns 400 for a missing dayOfWeek, another quarter or the same day
    """
    service = WeekCarryoverService(db)
    try:
        if request.dry_run:
            return await service.preview_move_goals_from_day(
                user_id, request.from_period, request.to_period, request.move_only_incomplete
            )
        return await service.move_goals_from_day(
            user_id, request.from_period, request.to_period, request.move_only_incomplete
        )
    except ValueError as e:
        raise http_error_from(e)


@router.post("/quarter", response_model=None)
async def move_goals_from_quarter(
    request: QuarterMoveRequest,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
) -> QuarterCarryoverPreview | QuarterCarryoverResult:
    """
    Copy incomplete quarterly goals (and move adhoc goals) into a new quarter.

    - Requires authentication
    - Source quarter defaults to the one before the target
    - Optional selectedQuarterlyGoalIds / selectedAdhocGoalIds narrow the move
    """
    service = QuarterCarryoverService(db)
    kwargs = {
        "from_quarter": request.from_quarter,
        "selected_quarterly_goal_ids": request.selected_quarterly_goal_ids,
        "selected_adhoc_goal_ids": request.selected_adhoc_goal_ids,
    }
    try:
        if request.dry_run:
            return await service.preview_move_goals_from_quarter(
                user_id, request.to_quarter, **kwargs
            )
        return await service.move_goals_from_quarter(user_id, request.to_quarter, **kwargs)
    except ValueError as e:
        raise http_error_from(e)


@router.post("/adhoc", response_model=None)
async def move_adhoc_goals(
    request: WeekMoveRequest,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
) -> AdhocMovePreview | AdhocMoveResult:
    """
    Move incomplete adhoc goals from one week (or day) to another.

    - Requires authentication
    - A dayOfWeek on the destination assigns that day to every moved goal
    """
    service = AdhocGoalService(db)
    try:
        if request.dry_run:
            return await service.preview_move_adhoc_goals(
                user_id, request.from_period, request.to_period
            )
        return await service.move_adhoc_goals(user_id, request.from_period, request.to_period)
    except ValueError as e:
        raise http_error_from(e)
