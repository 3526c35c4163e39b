"""Loading and persisting roadmap trees.

The tree engine works on ``RoadmapTree`` objects; this module converts them
to and from ``Roadmap``/``RoadmapNode`` rows. Functions here only flush: the
caller's session (``get_session``) commits or rolls back the whole
request as one transaction.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from roadtrack.core.errors import ConflictError, NotFoundError
from roadtrack.core.logging import get_logger
from roadtrack.models.roadmap import Roadmap, RoadmapNode
from roadtrack.tree.model import RoadmapTree, TreeNode, assemble_forest, ensure_utc, flatten

logger = get_logger(__name__)


# ============================================================================
# Row <-> tree conversion
# ============================================================================


def _node_from_row(row: RoadmapNode) -> TreeNode:
    return TreeNode(
        id=row.id,
        roadmap_id=row.roadmap_id,
        parent_id=row.parent_id,
        name=row.name,
        description=row.description or "",
        start_date=ensure_utc(row.start_date),
        end_date=ensure_utc(row.end_date),
        is_completed=row.is_completed,
        sequence=row.sequence,
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
    )


def tree_from_row(row: Roadmap) -> RoadmapTree:
    """Build the in-memory tree of a roadmap row whose nodes are loaded."""
    return RoadmapTree(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        is_published=row.is_published,
        is_completed=row.is_completed,
        is_deleted=row.is_deleted,
        version=row.version,
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
        nodes=assemble_forest(row.id, (_node_from_row(n) for n in row.nodes)),
    )


def row_from_tree(tree: RoadmapTree) -> Roadmap:
    """Build new (transient) rows for a whole roadmap tree."""
    return Roadmap(
        id=tree.id,
        user_id=tree.user_id,
        name=tree.name,
        is_published=tree.is_published,
        is_completed=tree.is_completed,
        is_deleted=tree.is_deleted,
        version=tree.version,
        created_at=tree.created_at,
        updated_at=tree.updated_at,
        nodes=[
            RoadmapNode(
                id=node.id,
                roadmap_id=tree.id,
                parent_id=node.parent_id,
                name=node.name,
                description=node.description,
                start_date=node.start_date,
                end_date=node.end_date,
                is_completed=node.is_completed,
                sequence=node.sequence,
                created_at=node.created_at,
                updated_at=node.updated_at,
            )
            for node in flatten(tree)
        ],
    )


# ============================================================================
# Queries
# ============================================================================


async def _get_row(
    db: AsyncSession,
    roadmap_id: str,
    include_deleted: bool = False,
) -> Roadmap | None:
    stmt = select(Roadmap).where(Roadmap.id == roadmap_id).options(selectinload(Roadmap.nodes))
    if not include_deleted:
        stmt = stmt.where(Roadmap.is_deleted.is_(False))
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def load_roadmap_with_tree(
    db: AsyncSession,
    roadmap_id: str,
    include_deleted: bool = False,
) -> RoadmapTree | None:
    """Load one roadmap with its full node tree.

    Args:
        db: Database session
        roadmap_id: Roadmap ID
        include_deleted: Also return soft-deleted roadmaps

    Returns:
        Roadmap tree or None
    """
    row = await _get_row(db, roadmap_id, include_deleted=include_deleted)
    return tree_from_row(row) if row else None


async def load_roadmaps_for_user(
    db: AsyncSession,
    user_id: int,
    search_term: str | None = None,
) -> list[RoadmapTree]:
    """Load a user's non-deleted roadmaps, optionally narrowed by name.

    Args:
        db: Database session
        user_id: Owner
        search_term: Case-insensitive substring of the roadmap name

    Returns:
        Roadmap trees with nodes loaded
    """
    stmt = (
        select(Roadmap)
        .where(Roadmap.user_id == user_id, Roadmap.is_deleted.is_(False))
        .options(selectinload(Roadmap.nodes))
    )
    if search_term and search_term.strip():
        stmt = stmt.where(Roadmap.name.ilike(f"%{search_term.strip()}%"))

    result = await db.execute(stmt)
    return [tree_from_row(row) for row in result.scalars().all()]


async def name_taken(
    db: AsyncSession,
    user_id: int,
    name: str,
    exclude_id: str | None = None,
) -> bool:
    """Check whether another live roadmap of the user already uses ``name``."""
    stmt = select(Roadmap.id).where(
        Roadmap.user_id == user_id,
        Roadmap.name == name,
        Roadmap.is_deleted.is_(False),
    )
    if exclude_id is not None:
        stmt = stmt.where(Roadmap.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.first() is not None


async def node_ids_used_elsewhere(
    db: AsyncSession,
    node_ids: list[str],
    roadmap_id: str | None = None,
) -> set[str]:
    """Return the ids among ``node_ids`` that belong to another roadmap.

    Soft-deleted roadmaps still hold their node rows, so they count too.
    With no ``roadmap_id`` every stored node counts.
    """
    if not node_ids:
        return set()
    stmt = select(RoadmapNode.id).where(RoadmapNode.id.in_(node_ids))
    if roadmap_id is not None:
        stmt = stmt.where(RoadmapNode.roadmap_id != roadmap_id)
    result = await db.execute(stmt)
    return set(result.scalars().all())


# ============================================================================
# Writes
# ============================================================================


async def commit_insert(db: AsyncSession, roadmap: RoadmapTree) -> None:
    """Insert a new roadmap and all of its nodes."""
    db.add(row_from_tree(roadmap))
    await db.flush()


async def commit_replace(
    db: AsyncSession,
    old_roadmap_id: str,
    new_roadmap: RoadmapTree,
    expected_version: int | None = None,
) -> None:
    """Delete the stored aggregate and insert its replacement.

    Both statements run in the caller's transaction; if the insert fails the
    rollback restores the old tree.

    Raises:
        NotFoundError: if the old roadmap is gone
        ConflictError: if ``expected_version`` no longer matches
    """
    old_row = await _get_row(db, old_roadmap_id)
    if old_row is None:
        raise NotFoundError(f"Roadmap with id '{old_roadmap_id}' not found")
    if expected_version is not None and old_row.version != expected_version:
        raise ConflictError(
            f"Roadmap '{old_roadmap_id}' was modified concurrently "
            f"(expected version {expected_version}, found {old_row.version})"
        )

    await db.delete(old_row)
    await db.flush()

    db.add(row_from_tree(new_roadmap))
    await db.flush()
    logger.debug(
        "Roadmap tree replaced",
        roadmap_id=new_roadmap.id,
        version=new_roadmap.version,
    )


async def commit_mutation(db: AsyncSession, roadmap: RoadmapTree) -> None:
    """Write completion flags and timestamps of a mutated tree back in place.

    Raises:
        NotFoundError: if the roadmap is gone
    """
    row = await _get_row(db, roadmap.id)
    if row is None:
        raise NotFoundError(f"Roadmap with id '{roadmap.id}' not found")

    row.is_completed = roadmap.is_completed
    row.updated_at = roadmap.updated_at

    by_id = roadmap.index()
    for node_row in row.nodes:
        node = by_id.get(node_row.id)
        if node is None:
            continue
        node_row.is_completed = node.is_completed
        node_row.updated_at = node.updated_at

    await db.flush()


async def mark_deleted(db: AsyncSession, roadmap_id: str, is_deleted: bool = True) -> bool:
    """Set the soft-delete flag. Returns False if the roadmap does not exist."""
    row = await db.get(Roadmap, roadmap_id)
    if row is None:
        return False
    row.is_deleted = is_deleted
    await db.flush()
    return True
