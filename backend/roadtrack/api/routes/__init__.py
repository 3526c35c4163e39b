"""API routes."""

from roadtrack.api.routes import roadmaps

__all__ = ["roadmaps"]
