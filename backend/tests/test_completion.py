"""Tests for completion rate aggregation."""

import pytest

from factories import make_node, make_roadmap
from roadtrack.tree.completion import has_any_completed, node_completion_rate, roadmap_completion_rate


class TestNodeCompletionRate:
    """Rates of single nodes."""

    def test_open_leaf(self):
        assert node_completion_rate(make_node("a")) == 0.0

    def test_completed_leaf(self):
        assert node_completion_rate(make_node("a", is_completed=True)) == 100.0

    def test_milestone_without_sections_uses_own_flag(self):
        """A childless milestone is scored by its own flag."""
        assert node_completion_rate(make_node("m", is_completed=True)) == 100.0
        assert node_completion_rate(make_node("m", is_completed=False)) == 0.0

    def test_parent_flag_ignored_when_children_exist(self):
        """An inner node is the mean of its children, whatever its own flag says."""
        node = make_node("s", is_completed=True, children=[make_node("a"), make_node("b")])
        assert node_completion_rate(node) == 0.0

    def test_mean_is_rounded_to_two_decimals(self):
        node = make_node(
            "s",
            children=[make_node("a", is_completed=True), make_node("b"), make_node("c")],
        )
        assert node_completion_rate(node) == 33.33

    def test_nested_means(self):
        """Milestone = mean of sections, each section = mean of its subsections."""
        milestone = make_node(
            "m",
            children=[
                make_node("s1", children=[make_node("a", is_completed=True), make_node("b")]),
                make_node("s2", is_completed=True),
            ],
        )
        assert node_completion_rate(milestone) == 75.0

    def test_does_not_mutate(self, scenario_roadmap):
        before = [(n.id, n.is_completed) for n in scenario_roadmap.iter_nodes()]
        node_completion_rate(scenario_roadmap.nodes[0])
        assert [(n.id, n.is_completed) for n in scenario_roadmap.iter_nodes()] == before


class TestRoadmapCompletionRate:
    """Rates of whole roadmaps."""

    def test_scenario_all_subsections_open(self, scenario_roadmap):
        assert roadmap_completion_rate(scenario_roadmap) == 0.0

    def test_no_milestones(self):
        assert roadmap_completion_rate(make_roadmap([])) == 0.0

    def test_mean_over_milestones(self):
        roadmap = make_roadmap(
            [
                make_node("m1", is_completed=True),
                make_node("m2", children=[make_node("s1", is_completed=True), make_node("s2")]),
            ]
        )
        assert roadmap_completion_rate(roadmap) == 75.0

    def test_has_any_completed(self, scenario_roadmap):
        assert has_any_completed(scenario_roadmap) is False
        scenario_roadmap.nodes[0].children[0].children[1].is_completed = True
        assert has_any_completed(scenario_roadmap) is True


def _tree(flags: list[list[bool]]):
    """Milestone with one section per inner list, subsections per flag."""
    return make_node(
        "m",
        children=[
            make_node(
                f"s{i}",
                children=[make_node(f"s{i}-{j}", is_completed=flag) for j, flag in enumerate(section)],
            )
            for i, section in enumerate(flags)
        ],
    )


@pytest.mark.parametrize(
    "flags",
    [
        [[True]],
        [[False]],
        [[True, False]],
        [[True, True], [True]],
        [[False, False], [False]],
        [[True, False, False], [True, True], [False]],
    ],
)
def test_rate_bounds_and_extremes(flags):
    """Rate stays in [0, 100]; 100 iff every leaf is done, 0 iff none is."""
    milestone = _tree(flags)
    leaves = [flag for section in flags for flag in section]
    rate = node_completion_rate(milestone)

    assert 0.0 <= rate <= 100.0
    assert (rate == 100.0) == all(leaves)
    assert (rate == 0.0) == (not any(leaves))
