"""Post domain model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text, text
from sqlmodel import Field, SQLModel

from core.ids import new_entity_id

from .timestamps import utcnow


class Post(SQLModel, table=True):
    """User-authored content with denormalized engagement counters."""

    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_created_at_id", "created_at", "id"),
        Index("ix_posts_user_created_at", "user_id", "created_at"),
    )

    id: str = Field(default_factory=new_entity_id, sa_column=Column(String(36), primary_key=True))
    # Back-reference only; comments and likes are cleaned up by the post store.
    user_id: str = Field(sa_column=Column(String(36), nullable=False))
    content: str = Field(default="", sa_column=Column(Text, nullable=False))
    caption: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    images: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    likes: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    comments_count: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default=text("0")),
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
