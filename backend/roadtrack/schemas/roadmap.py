"""Roadmap schemas for API requests and responses."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from roadtrack.core.config import get_settings

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000


class RoadmapFilter(str, Enum):
    """Status filters offered by the roadmap list."""

    ALL = "all"
    DRAFT = "draft"
    PUBLISHED = "published"
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    NEAR_DUE = "near-due"
    OVERDUE = "overdue"

    @classmethod
    def parse(cls, value: str | None) -> "RoadmapFilter":
        """Resolve a filter name; unknown or empty names mean ALL."""
        if not value:
            return cls.ALL
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.ALL


# ============================================================================
# Submissions
# ============================================================================


class NodeSubmission(BaseModel):
    """Fields shared by milestones, sections and subsections in a submission."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str | None = None  # existing node id; empty means "new node"
    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    start_date: datetime | None = None
    end_date: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _blank_id_is_new(cls, value: object) -> object:
        if isinstance(value, UUID):
            return str(value)
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SubsectionSubmission(NodeSubmission):
    """A subsection (leaf level)."""


class SectionSubmission(NodeSubmission):
    """A section and its subsections."""

    subsections: list[SubsectionSubmission | None] = Field(default_factory=list)

    @field_validator("subsections", mode="before")
    @classmethod
    def _null_subsections(cls, value: object) -> object:
        return [] if value is None else value


class MilestoneSubmission(NodeSubmission):
    """A milestone and its sections."""

    sections: list[SectionSubmission | None] = Field(default_factory=list)

    @field_validator("sections", mode="before")
    @classmethod
    def _null_sections(cls, value: object) -> object:
        return [] if value is None else value


class RoadmapSubmission(BaseModel):
    """A full roadmap as submitted by a client on create or update.

    ``None`` entries in the milestone/section/subsection lists are tolerated
    and skipped when the tree is built.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    is_published: bool = False
    version: int | None = None  # version the edit was based on (update only)
    milestones: list[MilestoneSubmission | None] = Field(default_factory=list)

    @field_validator("milestones", mode="before")
    @classmethod
    def _null_milestones(cls, value: object) -> object:
        return [] if value is None else value

    @model_validator(mode="after")
    def _published_needs_content(self) -> "RoadmapSubmission":
        if self.is_published and not any(
            milestone is not None and any(section is not None for section in milestone.sections)
            for milestone in self.milestones
        ):
            raise ValueError(
                "A published roadmap needs at least one milestone with at least one section"
            )
        return self


class NodeCompletionItem(BaseModel):
    """Completion flag reported for one node."""

    id: str
    is_completed: bool


class NodeCompletionUpdate(BaseModel):
    """Batch of completion flags for nodes of one roadmap."""

    nodes: list[NodeCompletionItem] = Field(default_factory=list)


# ============================================================================
# Responses
# ============================================================================


class NodeDetail(BaseModel):
    """A node with its computed completion rate and children."""

    id: str
    roadmap_id: str
    parent_id: str | None
    name: str
    description: str
    is_completed: bool
    start_date: datetime | None
    end_date: datetime | None
    sequence: int
    created_at: datetime
    updated_at: datetime
    completion_rate: float
    children: list["NodeDetail"] = Field(default_factory=list)


class RoadmapDetail(BaseModel):
    """Full roadmap view."""

    id: str
    user_id: int
    name: str
    is_published: bool
    is_completed: bool
    version: int
    created_at: str  # dd-mm-YYYY
    updated_at: str  # dd-mm-YYYY
    start_date: str | None
    end_date: str | None
    completion_rate: float
    nodes: list[NodeDetail] = Field(default_factory=list)


class RoadmapSummary(BaseModel):
    """One row of the roadmap list."""

    id: str
    name: str
    is_published: bool
    is_completed: bool
    completion_rate: float
    milestone_count: int
    created_at: datetime
    updated_at: datetime
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    start_date: str | None = None  # display value, dd-mm-YYYY
    end_date: str | None = None  # display value, dd-mm-YYYY


class BucketCounts(BaseModel):
    """How many candidate roadmaps fall in each status bucket."""

    total: int = 0
    draft: int = 0
    published: int = 0
    not_started: int = 0
    in_progress: int = 0
    completed: int = 0
    near_due: int = 0
    overdue: int = 0


class RoadmapListQuery(BaseModel):
    """Search, filter, sort and paging options for the roadmap list.

    Omitted options take the configured listing defaults.
    """

    search: str | None = None
    filter: str = Field(default_factory=lambda: get_settings().ROADMAP_DEFAULT_FILTER)
    page: int = Field(default_factory=lambda: get_settings().ROADMAP_DEFAULT_PAGE)
    page_size: int = Field(default_factory=lambda: get_settings().ROADMAP_DEFAULT_PAGE_SIZE)
    sort_by: str = Field(default_factory=lambda: get_settings().ROADMAP_DEFAULT_SORT)


class RoadmapListPage(BaseModel):
    """A page of roadmap summaries plus bucket counts."""

    items: list[RoadmapSummary]
    total_count: int
    page: int
    page_size: int
    bucket_counts: BucketCounts
