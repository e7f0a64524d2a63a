"""Timeline event ORM model."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from medintake_lib.db.connection import Base


def _new_event_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimelineEvent(Base):
    """Medical timeline entry indexing a generated artifact under its owner."""
    
    __tablename__ = "timeline_events"
    __table_args__ = (
        Index("ix_timeline_events_owner_created", "owner_id", "created_at"),
    )
    
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_event_id)
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    ai_processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    source_document: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
