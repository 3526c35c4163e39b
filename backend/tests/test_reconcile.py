"""Tests for rebuilding roadmap trees from submissions."""

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from factories import T0, make_node, make_roadmap
from roadtrack.core.errors import SubmissionError
from roadtrack.schemas.roadmap import RoadmapSubmission
from roadtrack.tree.reconcile import SequenceClock, build_create, reconcile, submitted_node_ids

NOW = T0 + timedelta(days=3)
STEP = timedelta(milliseconds=10)


def _ids(prefix: str = "new"):
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


@pytest.fixture
def stored():
    """Milestone A (completed) with section B (completed) and subsection C (open)."""
    return make_roadmap(
        [
            make_node(
                "A",
                is_completed=True,
                created_at=T0,
                children=[
                    make_node(
                        "B",
                        is_completed=True,
                        sequence=1,
                        created_at=T0 + STEP,
                        children=[make_node("C", sequence=2, created_at=T0 + 2 * STEP)],
                    )
                ],
            )
        ],
        version=4,
    )


def _submission(**overrides) -> RoadmapSubmission:
    data = {
        "name": "Learn Rust",
        "milestones": [
            {
                "id": "A",
                "name": "Basics",
                "sections": [{"id": "B", "name": "Syntax", "subsections": [{"id": "C", "name": "Loops"}]}],
            }
        ],
    }
    data.update(overrides)
    return RoadmapSubmission.model_validate(data)


class TestSequenceClock:
    def test_advances_in_fixed_steps(self):
        clock = SequenceClock(T0, step=STEP)
        clock.advance()
        clock.advance()
        assert clock.timestamp == T0 + 2 * STEP
        assert clock.sequence == 2

    def test_rejects_non_positive_step(self):
        with pytest.raises(ValueError):
            SequenceClock(T0, step=timedelta(0))


class TestReconcile:
    """Editing an existing roadmap."""

    def test_renamed_milestone_keeps_history(self, stored):
        """Milestone A renamed to X keeps id, completion and created_at."""
        submission = _submission(
            milestones=[{"id": "A", "name": "X", "sections": [{"id": "B", "name": "Syntax"}]}]
        )
        new = reconcile(stored, submission, now=NOW)

        milestone = new.nodes[0]
        assert milestone.id == "A"
        assert milestone.name == "X"
        assert milestone.is_completed is True
        assert milestone.created_at == T0
        assert milestone.updated_at == NOW

    def test_new_section_gets_fresh_identity(self, stored):
        """A section without id under milestone A is new and ordered after A."""
        submission = _submission(
            milestones=[
                {
                    "id": "A",
                    "name": "Basics",
                    "sections": [{"id": "B", "name": "Syntax"}, {"name": "Ownership"}],
                }
            ]
        )
        new = reconcile(stored, submission, now=NOW, id_factory=_ids())

        milestone = new.nodes[0]
        added = milestone.children[1]
        assert added.id == "new-1"
        assert added.parent_id == "A"
        assert added.is_completed is False
        assert added.created_at == NOW + 2 * STEP
        assert added.created_at > milestone.created_at
        assert [c.sequence for c in milestone.children] == [1, 2]

    def test_unchanged_nodes_keep_completion_and_created_at(self, stored):
        new = reconcile(stored, _submission(), now=NOW)
        by_id = new.index()

        assert by_id["B"].is_completed is True
        assert by_id["B"].created_at == T0 + STEP
        assert by_id["C"].is_completed is False
        assert by_id["C"].created_at == T0 + 2 * STEP
        assert all(node.updated_at == NOW for node in by_id.values())

    def test_unknown_id_is_treated_as_new(self, stored):
        submission = _submission(milestones=[{"id": "Z", "name": "Other"}])
        new = reconcile(stored, submission, now=NOW)

        assert new.nodes[0].id == "Z"
        assert new.nodes[0].is_completed is False
        assert new.nodes[0].created_at == NOW

    def test_nodes_left_out_are_dropped(self, stored):
        submission = _submission(milestones=[{"id": "A", "name": "Basics"}])
        new = reconcile(stored, submission, now=NOW)
        assert set(new.index()) == {"A"}

    def test_match_is_found_at_any_level(self, stored):
        """Subsection C promoted to a milestone keeps its created_at."""
        submission = _submission(milestones=[{"id": "C", "name": "Loops, promoted"}])
        new = reconcile(stored, submission, now=NOW)

        assert new.nodes[0].parent_id is None
        assert new.nodes[0].created_at == T0 + 2 * STEP

    def test_null_entries_are_skipped(self, stored):
        submission = _submission(
            milestones=[
                None,
                {"id": "A", "name": "Basics", "sections": [None, {"id": "B", "name": "S", "subsections": [None]}]},
            ]
        )
        new = reconcile(stored, submission, now=NOW)

        assert [n.id for n in new.iter_nodes()] == ["A", "B"]
        assert [n.sequence for n in new.iter_nodes()] == [0, 1]

    def test_traversal_order_drives_sequence_and_timestamps(self):
        old = make_roadmap([])
        submission = _submission(
            milestones=[
                {"name": "M1", "sections": [{"name": "S1", "subsections": [{"name": "SS1"}, {"name": "SS2"}]}]},
                {"name": "M2"},
            ]
        )
        new = reconcile(old, submission, now=NOW, id_factory=_ids())
        nodes = list(new.iter_nodes())

        assert [n.name for n in nodes] == ["M1", "S1", "SS1", "SS2", "M2"]
        assert [n.sequence for n in nodes] == [0, 1, 2, 3, 4]
        created = [n.created_at for n in nodes]
        assert created == [NOW + i * STEP for i in range(5)]

    def test_description_and_dates_are_normalized(self):
        plus_two = timezone(timedelta(hours=2))
        submission = _submission(
            milestones=[
                {
                    "name": "M1",
                    "description": None,
                    "start_date": datetime(2026, 5, 1, 10, 0, tzinfo=plus_two),
                    "end_date": "2026-05-10T00:00:00",
                }
            ]
        )
        new = reconcile(make_roadmap([]), submission, now=NOW)
        milestone = new.nodes[0]

        assert milestone.description == ""
        assert milestone.start_date == datetime(2026, 5, 1, 8, 0, tzinfo=timezone.utc)
        assert milestone.start_date.utcoffset() == timedelta(0)
        assert milestone.end_date == datetime(2026, 5, 10, tzinfo=timezone.utc)

    def test_roadmap_fields(self, stored):
        new = reconcile(stored, _submission(name="Renamed", is_published=True), now=NOW)

        assert new.id == stored.id
        assert new.user_id == stored.user_id
        assert new.name == "Renamed"
        assert new.is_published is True
        assert new.version == 5
        assert new.created_at == stored.created_at
        assert new.updated_at == NOW

    def test_roadmap_completion_follows_milestones(self, stored):
        assert reconcile(stored, _submission(), now=NOW).is_completed is True

        with_new_milestone = _submission(
            milestones=[{"id": "A", "name": "Basics"}, {"name": "Advanced"}]
        )
        assert reconcile(stored, with_new_milestone, now=NOW).is_completed is False

    def test_duplicate_ids_are_rejected(self, stored):
        submission = _submission(
            milestones=[{"id": "A", "name": "One"}, {"id": "A", "name": "Two"}]
        )
        with pytest.raises(SubmissionError, match="more than once"):
            reconcile(stored, submission, now=NOW)

    def test_old_tree_is_untouched(self, stored):
        before = [(n.id, n.name, n.is_completed, n.created_at) for n in stored.iter_nodes()]
        reconcile(stored, _submission(milestones=[{"id": "A", "name": "X"}]), now=NOW)
        assert [(n.id, n.name, n.is_completed, n.created_at) for n in stored.iter_nodes()] == before


class TestBuildCreate:
    def test_builds_fresh_tree(self):
        submission = _submission(
            milestones=[{"name": "M1", "sections": [{"name": "S1"}]}],
        )
        roadmap = build_create(submission, user_id=7, now=NOW, id_factory=_ids())

        assert roadmap.id == "new-1"
        assert roadmap.user_id == 7
        assert roadmap.version == 1
        assert roadmap.created_at == NOW
        assert roadmap.is_completed is False
        nodes = list(roadmap.iter_nodes())
        assert [n.id for n in nodes] == ["new-2", "new-3"]
        assert all(n.roadmap_id == "new-1" for n in nodes)
        assert nodes[1].parent_id == "new-2"
        assert not any(n.is_completed for n in nodes)

    def test_submitted_ids_are_kept(self):
        submission = _submission(milestones=[{"id": "client-id", "name": "M1"}])
        roadmap = build_create(submission, user_id=1, now=NOW)
        assert roadmap.nodes[0].id == "client-id"


def test_submitted_node_ids_skip_new_and_null_entries():
    submission = _submission(
        milestones=[
            None,
            {
                "id": "A",
                "name": "Basics",
                "sections": [
                    {"name": "New section", "subsections": [{"id": "C", "name": "Loops"}, None]},
                    {"id": "B", "name": "Syntax"},
                ],
            },
        ]
    )
    assert submitted_node_ids(submission) == ["A", "C", "B"]
