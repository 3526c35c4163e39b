"""In-memory roadmap trees.

A roadmap owns a forest of ``TreeNode`` objects. All three levels
(milestone, section, subsection) share the one node type; the level is
implied by how far a node sits from its root.
"""

from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import IntEnum


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Normalize a datetime to aware UTC; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class NodeLevel(IntEnum):
    """Conceptual level of a node, equal to its depth."""

    MILESTONE = 0
    SECTION = 1
    SUBSECTION = 2


@dataclass
class TreeNode:
    """A milestone, section or subsection."""

    id: str
    roadmap_id: str
    name: str
    parent_id: str | None = None
    description: str = ""
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_completed: bool = False
    sequence: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    children: list["TreeNode"] = field(default_factory=list)


@dataclass
class RoadmapTree:
    """A roadmap aggregate with its node forest held as root nodes."""

    id: str
    user_id: int
    name: str
    is_published: bool = False
    is_completed: bool = False
    is_deleted: bool = False
    version: int = 1
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    nodes: list[TreeNode] = field(default_factory=list)

    def iter_nodes(self) -> Iterator[TreeNode]:
        """Yield every node depth-first: milestone, its sections, their subsections."""
        return walk(self.nodes)

    def index(self) -> dict[str, TreeNode]:
        """Map node id to node across all levels."""
        return {node.id: node for node in self.iter_nodes()}


def walk(nodes: Iterable[TreeNode]) -> Iterator[TreeNode]:
    """Pre-order depth-first traversal of a forest."""
    for node in nodes:
        yield node
        yield from walk(node.children)


def walk_with_depth(nodes: Iterable[TreeNode], depth: int = 0) -> Iterator[tuple[TreeNode, int]]:
    for node in nodes:
        yield node, depth
        yield from walk_with_depth(node.children, depth + 1)


def depth_of(roadmap: RoadmapTree, node_id: str) -> int:
    """Count parent hops from a node up to its milestone.

    Raises:
        KeyError: if the node (or one of its ancestors) is not in the roadmap
    """
    by_id = roadmap.index()
    depth = 0
    node = by_id[node_id]
    while node.parent_id is not None:
        node = by_id[node.parent_id]
        depth += 1
    return depth


def level_of(roadmap: RoadmapTree, node_id: str) -> NodeLevel:
    """Name the level of a node; raises ValueError below subsection depth."""
    return NodeLevel(depth_of(roadmap, node_id))


def assemble_forest(roadmap_id: str, flat_nodes: Iterable[TreeNode]) -> list[TreeNode]:
    """Link flat node rows into a forest ordered by sequence at every level.

    ``children`` of the given nodes is rebuilt from ``parent_id``.

    Raises:
        ValueError: if a node belongs to another roadmap or names a parent
            that is not part of the roadmap
    """
    nodes = list(flat_nodes)
    known_ids = {node.id for node in nodes}
    by_parent: dict[str | None, list[TreeNode]] = defaultdict(list)

    for node in nodes:
        if node.roadmap_id != roadmap_id:
            raise ValueError(f"Node {node.id} belongs to roadmap {node.roadmap_id}, not {roadmap_id}")
        if node.parent_id is not None and node.parent_id not in known_ids:
            raise ValueError(f"Node {node.id} references missing parent {node.parent_id}")
        by_parent[node.parent_id].append(node)

    for siblings in by_parent.values():
        siblings.sort(key=lambda n: (n.sequence, n.created_at))
    for node in nodes:
        node.children = by_parent.get(node.id, [])

    return by_parent.get(None, [])


def flatten(roadmap: RoadmapTree) -> list[TreeNode]:
    """List every node of the roadmap in traversal order."""
    return list(roadmap.iter_nodes())
