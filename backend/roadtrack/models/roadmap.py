"""Roadmap and node tables.

Nodes are stored flat: every node row carries its roadmap id and, below the
milestone level, the id of its parent node. The roadmap owns all of its node
rows, so deleting a roadmap row deletes its whole tree.
"""

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roadtrack.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Roadmap(Base):
    __tablename__ = "roadmaps"
    __table_args__ = (Index("ix_roadmaps_user_name", "user_id", "name"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)

    name: Mapped[str] = mapped_column(String(100))
    is_published: Mapped[bool] = mapped_column(Boolean, default=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)

    # Optimistic concurrency token, bumped on every replace
    version: Mapped[int] = mapped_column(Integer, default=1)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    nodes: Mapped[list["RoadmapNode"]] = relationship(
        back_populates="roadmap",
        cascade="all, delete-orphan",
        order_by="RoadmapNode.sequence",
    )


class RoadmapNode(Base):
    __tablename__ = "roadmap_nodes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    roadmap_id: Mapped[str] = mapped_column(ForeignKey("roadmaps.id"), index=True)
    parent_id: Mapped[str | None] = mapped_column(String(36), default=None, index=True)

    name: Mapped[str] = mapped_column(String(100))
    description: Mapped[str] = mapped_column(Text, default="")
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    sequence: Mapped[int] = mapped_column(Integer, default=0)  # display order, per submission

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    roadmap: Mapped[Roadmap] = relationship(back_populates="nodes")
