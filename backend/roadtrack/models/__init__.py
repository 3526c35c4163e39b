"""Database models."""

from roadtrack.models.roadmap import Roadmap, RoadmapNode

__all__ = [
    "Roadmap",
    "RoadmapNode",
]
