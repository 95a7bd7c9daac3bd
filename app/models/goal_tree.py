"""Goal tree node model (derived, never persisted)."""
from typing import Optional

from pydantic import Field

from app.models.goal import Goal
from app.models.goal_state import GoalState


class GoalTreeNode(Goal):
    """A goal linked to its children, with its materialized path."""

    path: str = ""
    parent_title: Optional[str] = None
    grand_parent_title: Optional[str] = None
    state: Optional[GoalState] = None
    children: list["GoalTreeNode"] = Field(default_factory=list)
