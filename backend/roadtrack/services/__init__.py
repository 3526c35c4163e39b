"""Service layer modules."""

from roadtrack.services import roadmap_repository, roadmap_service

__all__ = [
    "roadmap_repository",
    "roadmap_service",
]
