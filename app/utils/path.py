"""Materialized goal path utilities."""
import re

from app.models.goal import GoalDepth

_SEGMENT = r"[A-Za-z0-9;]+"
_PATH_PATTERNS = {
    GoalDepth.QUARTERLY: re.compile(r"^/$"),
    GoalDepth.ADHOC: re.compile(r"^/$"),
    GoalDepth.WEEKLY: re.compile(rf"^/{_SEGMENT}$"),
    GoalDepth.DAILY: re.compile(rf"^/{_SEGMENT}/{_SEGMENT}$"),
}


def join_path(*parts: str) -> str:
    """
    Join path segments with single slashes.

    Examples:
        >>> join_path("/", "abc")
        '/abc'
        >>> join_path("/abc", "def")
        '/abc/def'
    """
    path = "/".join(parts)
    return re.sub(r"/{2,}", "/", path)


def child_in_path(parent_in_path: str, parent_id: str) -> str:
    """
    Ancestor path of a child goal given its parent's.

    Examples:
        >>> child_in_path("/", "q1")
        '/q1'
        >>> child_in_path("/q1", "w1")
        '/q1/w1'
    """
    return join_path(parent_in_path, parent_id)


def validate_goal_path(depth: int, in_path: str) -> bool:
    """
    Check that an ``inPath`` has the shape its depth requires.

    Quarterly and adhoc goals sit at ``/``, weekly goals at ``/{quarterlyId}``
    and daily goals at ``/{quarterlyId}/{weeklyId}``.

    Examples:
        >>> validate_goal_path(1, "/abc123")
        True
        >>> validate_goal_path(2, "/abc123")
        False
    """
    if not in_path:
        return False
    try:
        pattern = _PATH_PATTERNS[GoalDepth(depth)]
    except ValueError:
        return False
    return bool(pattern.match(in_path))
