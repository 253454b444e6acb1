"""Post comment model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, String, Text
from sqlmodel import Field, SQLModel

from core.ids import new_entity_id

from .timestamps import utcnow


class Comment(SQLModel, table=True):
    """Text reply authored by a user on a post."""

    __tablename__ = "comments"
    __table_args__ = (
        Index("ix_comments_post_created_at", "post_id", "created_at"),
    )

    id: str = Field(default_factory=new_entity_id, sa_column=Column(String(36), primary_key=True))
    post_id: str = Field(sa_column=Column(String(36), nullable=False))
    user_id: str = Field(sa_column=Column(String(36), nullable=False, index=True))
    content: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
