"""
SQLAlchemy 2.0 ORM models for Matchday.
Lineup players/coach are JSON columns (JSONB on PostgreSQL).
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    pass


class EventORM(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint(
            "(home_score IS NULL) = (away_score IS NULL)", name="chk_score_pair"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    role: Mapped[Optional[str]] = mapped_column(String(10))
    opponent: Mapped[Optional[str]] = mapped_column(String(200))
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    venue: Mapped[Optional[str]] = mapped_column(String(10))
    home_score: Mapped[Optional[int]] = mapped_column(Integer)
    away_score: Mapped[Optional[int]] = mapped_column(Integer)
    external_id: Mapped[Optional[int]] = mapped_column(BigInteger, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    lineup: Mapped[Optional["LineupORM"]] = relationship(
        back_populates="event", uselist=False, lazy="selectin", cascade="all, delete-orphan"
    )


class LineupORM(Base):
    __tablename__ = "lineups"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    formation: Mapped[str] = mapped_column(String(20), nullable=False)
    players: Mapped[list[Any]] = mapped_column(JSONType, nullable=False, default=list)
    coach: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType)
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    event: Mapped["EventORM"] = relationship(back_populates="lineup")
