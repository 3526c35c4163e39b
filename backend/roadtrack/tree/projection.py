"""Read views over roadmap trees: list pages and details.

List pages work on roadmaps already narrowed by the search term. Bucket
counts are taken over that whole candidate set, before the status filter,
so a client can show how many roadmaps each filter would return.
"""

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timedelta
from typing import Any

from roadtrack.core.config import get_settings
from roadtrack.schemas.roadmap import (
    BucketCounts,
    NodeDetail,
    RoadmapDetail,
    RoadmapFilter,
    RoadmapListPage,
    RoadmapListQuery,
    RoadmapSummary,
)
from roadtrack.tree.completion import has_any_completed, node_completion_rate, roadmap_completion_rate
from roadtrack.tree.model import RoadmapTree, TreeNode, ensure_utc, utcnow

DISPLAY_DATE_FORMAT = "%d-%m-%Y"
# Dates are shown one day later than stored; clients have always relied on it
DISPLAY_DATE_OFFSET = timedelta(days=1)


# ============================================================================
# Dates
# ============================================================================


def earliest_start(roadmap: RoadmapTree) -> datetime | None:
    dates = [m.start_date for m in roadmap.nodes if m.start_date is not None]
    return min(dates) if dates else None


def latest_end(roadmap: RoadmapTree) -> datetime | None:
    dates = [m.end_date for m in roadmap.nodes if m.end_date is not None]
    return max(dates) if dates else None


def format_display_date(value: datetime | None) -> str | None:
    """Format a milestone date for display, shifted by the display offset."""
    if value is None:
        return None
    return (ensure_utc(value) + DISPLAY_DATE_OFFSET).strftime(DISPLAY_DATE_FORMAT)


def format_date(value: datetime) -> str:
    return value.strftime(DISPLAY_DATE_FORMAT)


# ============================================================================
# Status buckets
# ============================================================================


def is_draft(roadmap: RoadmapTree) -> bool:
    return not roadmap.is_published


def is_not_started(roadmap: RoadmapTree) -> bool:
    return roadmap.is_published and not roadmap.is_completed and not has_any_completed(roadmap)


def is_in_progress(roadmap: RoadmapTree) -> bool:
    return roadmap.is_published and not roadmap.is_completed and has_any_completed(roadmap)


def is_near_due(roadmap: RoadmapTree, now: datetime, window: timedelta) -> bool:
    end = latest_end(roadmap)
    if roadmap.is_completed or end is None:
        return False
    return now < ensure_utc(end) <= now + window


def is_overdue(roadmap: RoadmapTree, now: datetime) -> bool:
    end = latest_end(roadmap)
    if roadmap.is_completed or end is None:
        return False
    return ensure_utc(end) < now


def _predicates(now: datetime, window: timedelta) -> dict[RoadmapFilter, Callable[[RoadmapTree], bool]]:
    return {
        RoadmapFilter.DRAFT: is_draft,
        RoadmapFilter.PUBLISHED: lambda r: r.is_published,
        RoadmapFilter.NOT_STARTED: is_not_started,
        RoadmapFilter.IN_PROGRESS: is_in_progress,
        RoadmapFilter.COMPLETED: lambda r: r.is_completed,
        RoadmapFilter.NEAR_DUE: lambda r: is_near_due(r, now, window),
        RoadmapFilter.OVERDUE: lambda r: is_overdue(r, now),
    }


def count_buckets(
    roadmaps: Sequence[RoadmapTree],
    now: datetime | None = None,
    near_due_days: int | None = None,
) -> BucketCounts:
    """Count roadmaps per bucket. Buckets overlap; each is evaluated on its own."""
    now = now or utcnow()
    if near_due_days is None:
        near_due_days = get_settings().ROADMAP_NEAR_DUE_DAYS
    predicates = _predicates(now, timedelta(days=near_due_days))

    counts = {
        status.value.replace("-", "_"): sum(1 for r in roadmaps if check(r))
        for status, check in predicates.items()
    }
    return BucketCounts(total=len(roadmaps), **counts)


def filter_roadmaps(
    roadmaps: Iterable[RoadmapTree],
    status: RoadmapFilter,
    now: datetime | None = None,
    near_due_days: int | None = None,
) -> list[RoadmapTree]:
    if status is RoadmapFilter.ALL:
        return list(roadmaps)
    now = now or utcnow()
    if near_due_days is None:
        near_due_days = get_settings().ROADMAP_NEAR_DUE_DAYS
    check = _predicates(now, timedelta(days=near_due_days))[status]
    return [r for r in roadmaps if check(r)]


# ============================================================================
# Projection and sorting
# ============================================================================


def summarize(roadmap: RoadmapTree) -> RoadmapSummary:
    """Project a roadmap onto its list row."""
    start = earliest_start(roadmap)
    end = latest_end(roadmap)
    return RoadmapSummary(
        id=roadmap.id,
        name=roadmap.name,
        is_published=roadmap.is_published,
        is_completed=roadmap.is_completed,
        completion_rate=roadmap_completion_rate(roadmap),
        milestone_count=len(roadmap.nodes),
        created_at=roadmap.created_at,
        updated_at=roadmap.updated_at,
        starts_at=start,
        ends_at=end,
        start_date=format_display_date(start),
        end_date=format_display_date(end),
    )


SORT_FIELDS: dict[str, Callable[[RoadmapSummary], Any]] = {
    "updatedat": lambda s: s.updated_at,
    "createdat": lambda s: s.created_at,
    "progress": lambda s: s.completion_rate,
    "name": lambda s: s.name.casefold(),
    "startdate": lambda s: s.starts_at,
    "enddate": lambda s: s.ends_at,
}
DEFAULT_SORT = ("updatedat", True)


def parse_sort(sort_by: str | None) -> tuple[str, bool]:
    """Split a sort key into (field, descending); unknown keys give the default."""
    key = (sort_by or "").strip().lower()
    descending = key.endswith("desc")
    field = key[: -len("desc")] if descending else key
    if field not in SORT_FIELDS:
        return DEFAULT_SORT
    return field, descending


def sort_summaries(summaries: Iterable[RoadmapSummary], sort_by: str | None) -> list[RoadmapSummary]:
    """Sort list rows; rows without a value for the field go last either way."""
    field, descending = parse_sort(sort_by)
    key = SORT_FIELDS[field]

    rows = list(summaries)
    present = [s for s in rows if key(s) is not None]
    missing = [s for s in rows if key(s) is None]
    present.sort(key=key, reverse=descending)
    return present + missing


def paginate(items: Sequence[RoadmapSummary], page: int, page_size: int) -> list[RoadmapSummary]:
    start = (page - 1) * page_size
    return list(items[start : start + page_size])


def compute_list_page(
    roadmaps: Sequence[RoadmapTree],
    query: RoadmapListQuery,
    now: datetime | None = None,
) -> RoadmapListPage:
    """Filter, project, sort and slice one page of roadmaps."""
    settings = get_settings()
    now = now or utcnow()
    page = max(query.page, 1)
    page_size = query.page_size if query.page_size > 0 else settings.ROADMAP_DEFAULT_PAGE_SIZE

    buckets = count_buckets(roadmaps, now=now)
    selected = filter_roadmaps(roadmaps, RoadmapFilter.parse(query.filter), now=now)
    ordered = sort_summaries((summarize(r) for r in selected), query.sort_by)

    return RoadmapListPage(
        items=paginate(ordered, page, page_size),
        total_count=len(ordered),
        page=page,
        page_size=page_size,
        bucket_counts=buckets,
    )


# ============================================================================
# Details
# ============================================================================


def node_detail(node: TreeNode) -> NodeDetail:
    return NodeDetail(
        id=node.id,
        roadmap_id=node.roadmap_id,
        parent_id=node.parent_id,
        name=node.name,
        description=node.description,
        is_completed=node.is_completed,
        start_date=node.start_date,
        end_date=node.end_date,
        sequence=node.sequence,
        created_at=node.created_at,
        updated_at=node.updated_at,
        completion_rate=node_completion_rate(node),
        children=[node_detail(child) for child in node.children],
    )


def compute_details(roadmap: RoadmapTree) -> RoadmapDetail:
    """Full tree view with per-node completion rates and display dates."""
    return RoadmapDetail(
        id=roadmap.id,
        user_id=roadmap.user_id,
        name=roadmap.name,
        is_published=roadmap.is_published,
        is_completed=roadmap.is_completed,
        version=roadmap.version,
        created_at=format_date(roadmap.created_at),
        updated_at=format_date(roadmap.updated_at),
        start_date=format_display_date(earliest_start(roadmap)),
        end_date=format_display_date(latest_end(roadmap)),
        completion_rate=roadmap_completion_rate(roadmap),
        nodes=[node_detail(milestone) for milestone in roadmap.nodes],
    )
