"""User domain model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, String
from sqlmodel import Field, SQLModel

from core.ids import new_entity_id

from .timestamps import utcnow


class User(SQLModel, table=True):
    """Registered application user."""

    __tablename__ = "users"

    id: str = Field(default_factory=new_entity_id, sa_column=Column(String(36), primary_key=True))
    name: str = Field(sa_column=Column(String(120), nullable=False))
    email: str = Field(
        sa_column=Column(String(255), unique=True, nullable=False, index=True)
    )
    # Accounts created through Google sign-in have no local password.
    password_hash: str | None = Field(
        default=None, sa_column=Column(String(255), nullable=True)
    )
    google_id: str | None = Field(
        default=None, sa_column=Column(String(255), nullable=True, index=True)
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
