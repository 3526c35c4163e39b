"""Roadmap API routes."""

from fastapi import APIRouter, Response, status

from roadtrack.api.deps import CurrentUser, DBSession
from roadtrack.core.logging import get_logger
from roadtrack.schemas.roadmap import (
    NodeCompletionUpdate,
    RoadmapDetail,
    RoadmapListPage,
    RoadmapListQuery,
    RoadmapSubmission,
)
from roadtrack.services import roadmap_service

logger = get_logger(__name__)
router = APIRouter(prefix="/roadmaps", tags=["roadmaps"])


@router.get("", response_model=RoadmapListPage)
async def list_roadmaps(
    db: DBSession,
    user_id: CurrentUser,
    search: str | None = None,
    filter: str | None = None,
    page: int | None = None,
    page_size: int | None = None,
    sort_by: str | None = None,
) -> RoadmapListPage:
    """List the current user's roadmaps.

    Omitted query parameters fall back to the configured listing defaults.
    """
    given = {
        "search": search,
        "filter": filter,
        "page": page,
        "page_size": page_size,
        "sort_by": sort_by,
    }
    query = RoadmapListQuery(**{key: value for key, value in given.items() if value})
    return await roadmap_service.list_roadmaps(db, user_id, query)


@router.post("", response_model=RoadmapDetail, status_code=status.HTTP_201_CREATED)
async def create_roadmap(
    data: RoadmapSubmission,
    db: DBSession,
    user_id: CurrentUser,
) -> RoadmapDetail:
    """Create a roadmap with its milestones, sections and subsections."""
    return await roadmap_service.create_roadmap(db, user_id, data)


@router.get("/{roadmap_id}", response_model=RoadmapDetail)
async def get_roadmap(roadmap_id: str, db: DBSession) -> RoadmapDetail:
    """Get a roadmap with its full tree and completion rates."""
    return await roadmap_service.get_details(db, roadmap_id)


@router.put("/{roadmap_id}", response_model=RoadmapDetail)
async def update_roadmap(
    roadmap_id: str,
    data: RoadmapSubmission,
    db: DBSession,
    user_id: CurrentUser,
) -> RoadmapDetail:
    """Replace a roadmap's tree with an edited version.

    Nodes submitted with their existing id keep completion state and
    creation time; nodes left out are removed.
    """
    return await roadmap_service.update_roadmap(db, roadmap_id, user_id, data)


@router.patch("/{roadmap_id}/nodes", response_model=RoadmapDetail)
async def complete_nodes(
    roadmap_id: str,
    data: NodeCompletionUpdate,
    db: DBSession,
) -> RoadmapDetail:
    """Mark nodes completed; parents and the roadmap follow when all children are done."""
    return await roadmap_service.complete_nodes(db, roadmap_id, data)


@router.delete("/{roadmap_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_roadmap(roadmap_id: str, db: DBSession, is_deleted: bool = True) -> Response:
    """Soft-delete a roadmap, or restore it with ``is_deleted=false``."""
    await roadmap_service.delete_roadmap(db, roadmap_id, is_deleted=is_deleted)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
