"""Roadmap use cases: create, edit, complete, delete, list and details.

Each function loads what it needs through the repository, runs the tree
engine, and writes the result back within the caller's transaction.
"""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from roadtrack.core.errors import ConflictError, NotFoundError, SubmissionError
from roadtrack.core.logging import get_logger
from roadtrack.schemas.roadmap import (
    NodeCompletionUpdate,
    RoadmapDetail,
    RoadmapListPage,
    RoadmapListQuery,
    RoadmapSubmission,
)
from roadtrack.services import roadmap_repository
from roadtrack.tree.cascade import NodeCompletion, cascade_completions
from roadtrack.tree.model import RoadmapTree, utcnow
from roadtrack.tree.projection import compute_details, compute_list_page
from roadtrack.tree.reconcile import build_create, reconcile, submitted_node_ids

logger = get_logger(__name__)


async def _require_roadmap(db: AsyncSession, roadmap_id: str) -> RoadmapTree:
    roadmap = await roadmap_repository.load_roadmap_with_tree(db, roadmap_id)
    if roadmap is None:
        raise NotFoundError(f"Roadmap with id '{roadmap_id}' not found")
    return roadmap


async def _ensure_name_available(
    db: AsyncSession,
    user_id: int,
    name: str,
    exclude_id: str | None = None,
) -> None:
    if await roadmap_repository.name_taken(db, user_id, name, exclude_id=exclude_id):
        raise ConflictError(f"A roadmap with the name '{name}' already exists")


async def _ensure_node_ids_free(
    db: AsyncSession,
    submission: RoadmapSubmission,
    roadmap_id: str | None = None,
) -> None:
    foreign = await roadmap_repository.node_ids_used_elsewhere(
        db, submitted_node_ids(submission), roadmap_id=roadmap_id
    )
    if foreign:
        raise SubmissionError(
            f"Node ids belong to another roadmap: {', '.join(sorted(foreign))}"
        )


# ============================================================================
# Reads
# ============================================================================


async def get_details(db: AsyncSession, roadmap_id: str) -> RoadmapDetail:
    """Get the full tree of a roadmap with completion rates.

    Raises:
        NotFoundError: if the roadmap does not exist or was deleted
    """
    roadmap = await _require_roadmap(db, roadmap_id)
    return compute_details(roadmap)


async def list_roadmaps(
    db: AsyncSession,
    user_id: int,
    query: RoadmapListQuery,
    now: datetime | None = None,
) -> RoadmapListPage:
    """List one page of a user's roadmaps with status bucket counts."""
    roadmaps = await roadmap_repository.load_roadmaps_for_user(db, user_id, query.search)
    if not roadmaps:
        logger.info("No roadmaps found", user_id=user_id, search=query.search)

    page = compute_list_page(roadmaps, query, now=now)
    logger.info(
        "Roadmaps listed",
        user_id=user_id,
        filter=query.filter,
        total=page.total_count,
        page=page.page,
    )
    return page


# ============================================================================
# Writes
# ============================================================================


async def create_roadmap(
    db: AsyncSession,
    user_id: int,
    submission: RoadmapSubmission,
    now: datetime | None = None,
) -> RoadmapDetail:
    """Create a roadmap from a submitted tree.

    Raises:
        ConflictError: if the user already has a roadmap with this name
        SubmissionError: if node ids repeat within the submission
            or belong to another roadmap
    """
    await _ensure_name_available(db, user_id, submission.name)
    await _ensure_node_ids_free(db, submission)

    roadmap = build_create(submission, user_id, now=now)
    await roadmap_repository.commit_insert(db, roadmap)

    logger.info(
        "Roadmap created",
        roadmap_id=roadmap.id,
        user_id=user_id,
        node_count=len(roadmap.index()),
    )
    return compute_details(roadmap)


async def update_roadmap(
    db: AsyncSession,
    roadmap_id: str,
    user_id: int,
    submission: RoadmapSubmission,
    now: datetime | None = None,
) -> RoadmapDetail:
    """Replace a roadmap's tree with an edited submission.

    Nodes keep their completion and creation time when the submission
    carries their id. The old aggregate is deleted and the rebuilt one
    inserted in the same transaction.

    Raises:
        NotFoundError: if the roadmap does not exist or was deleted
        ConflictError: on a duplicate name or a stale ``submission.version``
        SubmissionError: if node ids repeat within the submission
            or belong to another roadmap
    """
    old = await _require_roadmap(db, roadmap_id)
    await _ensure_name_available(db, old.user_id, submission.name, exclude_id=old.id)
    await _ensure_node_ids_free(db, submission, roadmap_id=old.id)

    new = reconcile(old, submission, now=now)
    await roadmap_repository.commit_replace(
        db, old.id, new, expected_version=submission.version
    )

    old_ids = set(old.index())
    new_ids = set(new.index())
    logger.info(
        "Roadmap updated",
        roadmap_id=roadmap_id,
        user_id=user_id,
        version=new.version,
        kept=len(old_ids & new_ids),
        added=len(new_ids - old_ids),
        removed=len(old_ids - new_ids),
    )
    return compute_details(new)


async def complete_nodes(
    db: AsyncSession,
    roadmap_id: str,
    update: NodeCompletionUpdate,
    now: datetime | None = None,
) -> RoadmapDetail:
    """Mark nodes completed and cascade the state upward.

    Raises:
        NotFoundError: if the roadmap does not exist or was deleted
    """
    roadmap = await _require_roadmap(db, roadmap_id)

    result = cascade_completions(
        roadmap,
        (NodeCompletion(node_id=item.id, is_completed=item.is_completed) for item in update.nodes),
        now=now or utcnow(),
    )
    if result.changed:
        await roadmap_repository.commit_mutation(db, roadmap)

    logger.info(
        "Roadmap completion updated",
        roadmap_id=roadmap_id,
        changed_nodes=len(result.changed_node_ids),
        roadmap_completed=result.roadmap_completed,
    )
    return compute_details(roadmap)


async def delete_roadmap(db: AsyncSession, roadmap_id: str, is_deleted: bool = True) -> None:
    """Soft-delete (or restore) a roadmap.

    Raises:
        NotFoundError: if no roadmap has this id
        ConflictError: when restoring, if a live roadmap of the same user
            now uses its name
    """
    if not is_deleted:
        roadmap = await roadmap_repository.load_roadmap_with_tree(
            db, roadmap_id, include_deleted=True
        )
        if roadmap is None:
            raise NotFoundError(f"Roadmap with id '{roadmap_id}' not found")
        await _ensure_name_available(db, roadmap.user_id, roadmap.name, exclude_id=roadmap.id)

    if not await roadmap_repository.mark_deleted(db, roadmap_id, is_deleted):
        raise NotFoundError(f"Roadmap with id '{roadmap_id}' not found")
    logger.info("Roadmap deletion flag set", roadmap_id=roadmap_id, is_deleted=is_deleted)
