"""Goal tree reconstruction from a flat list of goals.

Nodes are allocated into an id index first and linked by id afterwards, so no
recursion is needed and sibling order follows input order.
"""
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from app.errors import GoalTreeError
from app.models.goal import Goal, GoalDepth
from app.models.goal_tree import GoalTreeNode
from app.utils.path import join_path

NodeDecorator = Callable[[Goal], GoalTreeNode]


def default_decorator(goal: Goal) -> GoalTreeNode:
    """Wrap a goal in a bare tree node."""
    return GoalTreeNode(**goal.model_dump())


@dataclass
class GoalTree:
    """Roots of the hierarchy plus an id -> node index."""

    tree: list[GoalTreeNode] = field(default_factory=list)
    index: dict[str, GoalTreeNode] = field(default_factory=dict)

    def get(self, goal_id: str) -> Optional[GoalTreeNode]:
        return self.index.get(goal_id)


def build_goal_tree(
    goals: Iterable[Goal],
    decorate: Optional[NodeDecorator] = None,
) -> GoalTree:
    """
    Build the quarterly -> weekly -> daily hierarchy.

    Depth 0 goals become roots. Adhoc goals (depth -1) are indexed but not
    linked into the hierarchy.

    Args:
        goals: Flat list of goals, typically one quarter's worth
        decorate: Optional factory turning a goal into its node, used to
            attach presentation fields such as the week state

    Returns:
        GoalTree with roots in input order and an index of every node

    Raises:
        GoalTreeError: If a depth > 0 goal has no parentId, its parent is
            not among the supplied goals, or the parent sits at the wrong depth
    """
    decorate = decorate or default_decorator
    tree = GoalTree()
    ordered: list[GoalTreeNode] = []

    for goal in goals:
        node = decorate(goal)
        tree.index[node.id] = node
        ordered.append(node)

    # Stable sort: parents are linked before their children whatever the input order.
    for node in sorted(ordered, key=lambda n: n.depth if n.depth >= 0 else 99):
        if node.depth == GoalDepth.ADHOC:
            node.path = join_path(node.in_path, node.id)
            continue

        if node.depth == GoalDepth.QUARTERLY:
            node.path = join_path("/", node.id)
            tree.tree.append(node)
            continue

        parent = tree.index.get(node.parent_id) if node.parent_id else None
        if parent is None:
            raise GoalTreeError(
                f"depth {int(node.depth)} goal has no parent. "
                f"node id: {node.id}, parent id: {node.parent_id}"
            )
        if parent.depth != node.depth - 1:
            raise GoalTreeError(
                f"depth {int(node.depth)} goal {node.id} is attached to "
                f"depth {int(parent.depth)} goal {parent.id}"
            )

        node.path = join_path(parent.path, node.id)
        node.parent_title = parent.title
        if node.depth == GoalDepth.DAILY:
            grand_parent = tree.index.get(parent.parent_id) if parent.parent_id else None
            node.grand_parent_title = grand_parent.title if grand_parent else None
        parent.children.append(node)

    return tree
