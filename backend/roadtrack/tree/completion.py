"""Completion rates, computed bottom-up.

Rates are percentages in ``[0, 100]``. A leaf counts as 100 or 0 depending on
its own flag; an inner node is the mean of its children. A node without
children (for instance a milestone that has no sections yet) is scored by its
own flag.
"""

from roadtrack.tree.model import RoadmapTree, TreeNode


def node_completion_rate(node: TreeNode) -> float:
    """Completion percentage of a node, rounded to two decimals."""
    if not node.children:
        return 100.0 if node.is_completed else 0.0

    total = sum(node_completion_rate(child) for child in node.children)
    return round(total / len(node.children), 2)


def roadmap_completion_rate(roadmap: RoadmapTree) -> float:
    """Mean of milestone rates; 0 for a roadmap without milestones."""
    if not roadmap.nodes:
        return 0.0

    total = sum(node_completion_rate(milestone) for milestone in roadmap.nodes)
    return round(total / len(roadmap.nodes), 2)


def has_any_completed(roadmap: RoadmapTree) -> bool:
    """True if at least one node anywhere in the roadmap is completed."""
    return any(node.is_completed for node in roadmap.iter_nodes())
