"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table.

Key concepts:
- String UUID primary keys (portable across PostgreSQL and SQLite)
- Python-side created_at/updated_at defaults, so values are loaded on the
  instance right after flush (no lazy refresh in async code)
- updated_at bumps on every ORM update; the realtime stream uses it as the
  per-record version when fingerprinting collections
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


# ══════════════════════════════════════════════════════════════
# Media: carousel images, music tracks, showcase projects
# ══════════════════════════════════════════════════════════════


class Image(TimestampMixin, Base):
    """A carousel image. Displayed in `order`, then creation time."""

    __tablename__ = "images"
    __table_args__ = (Index("ix_images_order", "order"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    src: Mapped[str] = mapped_column(Text, nullable=False)
    alt: Mapped[str] = mapped_column(String(255), nullable=False)
    width: Mapped[int] = mapped_column(Integer, default=550, nullable=False)
    height: Mapped[int] = mapped_column(Integer, default=384, nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    priority: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    image_offset_x: Mapped[float] = mapped_column(Float, default=50, nullable=False)
    image_offset_y: Mapped[float] = mapped_column(Float, default=50, nullable=False)


class Track(TimestampMixin, Base):
    """A music player track."""

    __tablename__ = "tracks"
    __table_args__ = (Index("ix_tracks_order", "order"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    subtitle: Mapped[str] = mapped_column(String(255), nullable=False)
    src: Mapped[str] = mapped_column(Text, nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class Project(TimestampMixin, Base):
    """A showcase project card.

    Learn: `order` is nullable because older rows were created before
    manual ordering existed. GET /projects back-fills them.
    """

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[Optional[str]] = mapped_column(Text)
    link: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(50), default="web", nullable=False)
    order: Mapped[Optional[int]] = mapped_column(Integer)
    # Thumbnail crop / positioning, all optional
    crop_x: Mapped[Optional[float]] = mapped_column(Float)
    crop_y: Mapped[Optional[float]] = mapped_column(Float)
    crop_size: Mapped[Optional[float]] = mapped_column(Float)
    image_offset_x: Mapped[Optional[float]] = mapped_column(Float)
    image_offset_y: Mapped[Optional[float]] = mapped_column(Float)
    scale: Mapped[Optional[float]] = mapped_column(Float)


# ══════════════════════════════════════════════════════════════
# Comments + emoji reactions
# ══════════════════════════════════════════════════════════════


class Comment(TimestampMixin, Base):
    """A visitor comment with denormalized reaction counters."""

    __tablename__ = "comments"
    __table_args__ = (Index("ix_comments_created_at", "created_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    likes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    fires: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    hearts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    laughs: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    wows: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    reactions: Mapped[list["CommentReaction"]] = relationship(
        back_populates="comment",
        cascade="all, delete-orphan",
        order_by="CommentReaction.created_at",
    )


class CommentReaction(Base):
    """One visitor's reaction of one type on one comment.

    Learn: the unique constraint is what makes reactions a toggle —
    a second click of the same type removes the row instead of adding one.
    """

    __tablename__ = "comment_reactions"
    __table_args__ = (
        UniqueConstraint(
            "comment_id", "user_id", "type", name="uq_comment_reactions_user_type"
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    comment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("comments.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    comment: Mapped["Comment"] = relationship(back_populates="reactions")


# ══════════════════════════════════════════════════════════════
# Visitor stats
# ══════════════════════════════════════════════════════════════


class ViewCount(Base):
    """Site-wide page view counter. A single row with id "main"."""

    __tablename__ = "view_counts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default="main")
    count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


class CountryVisit(Base):
    """Visit counter per country name."""

    __tablename__ = "country_visits"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    country: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_visit: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
