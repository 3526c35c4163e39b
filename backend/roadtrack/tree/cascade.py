"""Upward propagation of completion state.

Completion only ever moves from False to True here: a client reports
finished nodes, parents whose children are all finished follow, and the
roadmap is finished once every milestone is.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from roadtrack.core.logging import get_logger
from roadtrack.tree.model import RoadmapTree, TreeNode, utcnow, walk_with_depth

logger = get_logger(__name__)


@dataclass(frozen=True)
class NodeCompletion:
    """A client-reported completion flag for one node."""

    node_id: str
    is_completed: bool


@dataclass
class CascadeResult:
    """What a cascade pass changed."""

    roadmap: RoadmapTree
    changed_node_ids: list[str] = field(default_factory=list)
    roadmap_completed: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.changed_node_ids) or self.roadmap_completed


def _complete_if_children_done(node: TreeNode, now: datetime) -> bool:
    if node.is_completed or not node.children:
        return False
    if all(child.is_completed for child in node.children):
        node.is_completed = True
        node.updated_at = now
        return True
    return False


def cascade_completions(
    roadmap: RoadmapTree,
    completions: Iterable[NodeCompletion],
    now: datetime | None = None,
) -> CascadeResult:
    """Apply completions and propagate them to parents and the roadmap.

    Mutates ``roadmap`` in place.
    """
    now = now or utcnow()
    result = CascadeResult(roadmap=roadmap)
    by_id = roadmap.index()

    # 1. Direct completions reported by the client
    for completion in completions:
        node = by_id.get(completion.node_id)
        if node is None:
            logger.debug(
                "Ignoring completion for unknown node",
                roadmap_id=roadmap.id,
                node_id=completion.node_id,
            )
            continue
        if completion.is_completed and not node.is_completed:
            node.is_completed = True
            node.updated_at = now
            result.changed_node_ids.append(node.id)

    # 2. Sections and deeper, deepest first, then milestones
    ranked = sorted(walk_with_depth(roadmap.nodes), key=lambda pair: pair[1], reverse=True)
    for node, depth in ranked:
        if depth > 0 and _complete_if_children_done(node, now):
            result.changed_node_ids.append(node.id)
    for milestone in roadmap.nodes:
        if _complete_if_children_done(milestone, now):
            result.changed_node_ids.append(milestone.id)

    # 3. Roadmap
    if not roadmap.is_completed and all(m.is_completed for m in roadmap.nodes):
        roadmap.is_completed = True
        roadmap.updated_at = now
        result.roadmap_completed = True

    return result


def apply_cascade(
    roadmap: RoadmapTree,
    completions: Iterable[NodeCompletion],
    now: datetime | None = None,
) -> RoadmapTree:
    """Mutating variant returning the updated roadmap itself."""
    return cascade_completions(roadmap, completions, now=now).roadmap
