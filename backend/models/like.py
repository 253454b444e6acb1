"""Post like model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, String
from sqlmodel import Field, SQLModel

from core.ids import new_entity_id

from .timestamps import utcnow


class Like(SQLModel, table=True):
    """Records that a user liked a post.

    The (post, user) pair is not unique at the storage level; the like
    ledger checks for an existing record before inserting.
    """

    __tablename__ = "likes"
    __table_args__ = (
        Index("ix_likes_post_user", "post_id", "user_id"),
    )

    id: str = Field(default_factory=new_entity_id, sa_column=Column(String(36), primary_key=True))
    post_id: str = Field(sa_column=Column(String(36), nullable=False))
    user_id: str = Field(sa_column=Column(String(36), nullable=False))
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
