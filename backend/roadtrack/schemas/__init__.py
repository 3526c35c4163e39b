"""Pydantic schemas."""

from roadtrack.schemas.roadmap import (
    BucketCounts,
    MilestoneSubmission,
    NodeCompletionItem,
    NodeCompletionUpdate,
    NodeDetail,
    RoadmapDetail,
    RoadmapFilter,
    RoadmapListPage,
    RoadmapListQuery,
    RoadmapSubmission,
    RoadmapSummary,
    SectionSubmission,
    SubsectionSubmission,
)

__all__ = [
    "RoadmapSubmission",
    "MilestoneSubmission",
    "SectionSubmission",
    "SubsectionSubmission",
    "NodeCompletionItem",
    "NodeCompletionUpdate",
    "NodeDetail",
    "RoadmapDetail",
    "RoadmapSummary",
    "RoadmapFilter",
    "RoadmapListQuery",
    "RoadmapListPage",
    "BucketCounts",
]
