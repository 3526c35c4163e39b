"""Roadmap tree engine: completion, cascade, reconciliation and read views."""

from roadtrack.tree.cascade import CascadeResult, NodeCompletion, apply_cascade, cascade_completions
from roadtrack.tree.completion import node_completion_rate, roadmap_completion_rate
from roadtrack.tree.model import NodeLevel, RoadmapTree, TreeNode
from roadtrack.tree.projection import compute_details, compute_list_page
from roadtrack.tree.reconcile import SequenceClock, build_create, reconcile

__all__ = [
    "CascadeResult",
    "NodeCompletion",
    "NodeLevel",
    "RoadmapTree",
    "SequenceClock",
    "TreeNode",
    "apply_cascade",
    "build_create",
    "cascade_completions",
    "compute_details",
    "compute_list_page",
    "node_completion_rate",
    "reconcile",
    "roadmap_completion_rate",
]
