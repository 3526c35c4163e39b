"""Rebuild a roadmap tree from a client submission.

An edit submits the whole roadmap again. Nodes are matched to the persisted
tree by id, anywhere in the roadmap, so a node keeps its completion flag and
creation time even if it moved to another parent. Everything the client can
edit is taken from the submission. Nodes missing from the submission are
gone from the result: the caller replaces the stored aggregate wholesale.
"""

import uuid
from collections.abc import Callable
from datetime import datetime, timedelta

from roadtrack.core.config import get_settings
from roadtrack.core.errors import SubmissionError
from roadtrack.schemas.roadmap import NodeSubmission, RoadmapSubmission
from roadtrack.tree.model import RoadmapTree, TreeNode, ensure_utc, utcnow

IdFactory = Callable[[], str]


def new_id() -> str:
    return str(uuid.uuid4())


class SequenceClock:
    """Hands out ordering keys in traversal order.

    ``sequence`` counts up from zero. ``timestamp`` starts at the submission
    time and moves forward by a fixed step, so nodes created by the same
    submission get strictly increasing ``created_at`` values.
    """

    def __init__(self, start: datetime, step: timedelta | None = None) -> None:
        if step is None:
            step = timedelta(milliseconds=get_settings().NODE_TIMESTAMP_STEP_MS)
        if step <= timedelta(0):
            raise ValueError("SequenceClock step must be positive")
        self.timestamp = start
        self.sequence = 0
        self.step = step

    def advance(self) -> None:
        self.timestamp += self.step
        self.sequence += 1


class _TreeBuilder:
    def __init__(
        self,
        roadmap_id: str,
        previous: dict[str, TreeNode],
        now: datetime,
        id_factory: IdFactory,
    ) -> None:
        self.roadmap_id = roadmap_id
        self.previous = previous
        self.now = now
        self.clock = SequenceClock(now)
        self.id_factory = id_factory
        self.seen_ids: set[str] = set()

    def build(self, item: NodeSubmission, parent_id: str | None) -> TreeNode:
        node_id = item.id or self.id_factory()
        if node_id in self.seen_ids:
            raise SubmissionError(f"Node id '{node_id}' appears more than once in the submission")
        self.seen_ids.add(node_id)

        old = self.previous.get(node_id)
        node = TreeNode(
            id=node_id,
            roadmap_id=self.roadmap_id,
            parent_id=parent_id,
            name=item.name,
            description=item.description or "",
            start_date=ensure_utc(item.start_date),
            end_date=ensure_utc(item.end_date),
            is_completed=old.is_completed if old else False,
            sequence=self.clock.sequence,
            created_at=old.created_at if old else self.clock.timestamp,
            updated_at=self.now,
        )
        self.clock.advance()
        return node


def reconcile(
    old: RoadmapTree,
    submission: RoadmapSubmission,
    now: datetime | None = None,
    id_factory: IdFactory = new_id,
) -> RoadmapTree:
    """Build the replacement for ``old`` from an edited submission.

    Raises:
        SubmissionError: if a node id is used twice in the submission
    """
    now = now or utcnow()
    builder = _TreeBuilder(old.id, old.index(), now, id_factory)

    milestones: list[TreeNode] = []
    for milestone_in in submission.milestones:
        if milestone_in is None:
            continue
        milestone = builder.build(milestone_in, parent_id=None)

        for section_in in milestone_in.sections:
            if section_in is None:
                continue
            section = builder.build(section_in, parent_id=milestone.id)

            for subsection_in in section_in.subsections:
                if subsection_in is None:
                    continue
                section.children.append(builder.build(subsection_in, parent_id=section.id))

            milestone.children.append(section)

        milestones.append(milestone)

    return RoadmapTree(
        id=old.id,
        user_id=old.user_id,
        name=submission.name,
        is_published=submission.is_published,
        is_completed=bool(milestones) and all(m.is_completed for m in milestones),
        is_deleted=False,
        version=old.version + 1,
        created_at=old.created_at,
        updated_at=now,
        nodes=milestones,
    )


def build_create(
    submission: RoadmapSubmission,
    user_id: int,
    now: datetime | None = None,
    id_factory: IdFactory = new_id,
) -> RoadmapTree:
    """Build a brand-new roadmap: reconciliation against an empty tree."""
    now = now or utcnow()
    empty = RoadmapTree(
        id=id_factory(),
        user_id=user_id,
        name=submission.name,
        version=0,
        created_at=now,
        updated_at=now,
    )
    return reconcile(empty, submission, now=now, id_factory=id_factory)


def submitted_node_ids(submission: RoadmapSubmission) -> list[str]:
    """Ids the client supplied, in traversal order; new nodes have none."""
    ids: list[str] = []
    for milestone in submission.milestones:
        if milestone is None:
            continue
        if milestone.id:
            ids.append(milestone.id)
        for section in milestone.sections:
            if section is None:
                continue
            if section.id:
                ids.append(section.id)
            ids.extend(sub.id for sub in section.subsections if sub is not None and sub.id)
    return ids
