"""
CRUD operations for the TimelineEvent model.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from medintake_lib.db.crud.base import CRUDBase
from medintake_lib.db.models import TimelineEvent


class TimelineEventCRUD(CRUDBase[TimelineEvent]):
    """
    CRUD operations for per-owner medical timeline entries.

    Events are only ever inserted, keyed by owner.
    """

    def __init__(self):
        """Initialize TimelineEventCRUD."""
        super().__init__(TimelineEvent)

    async def create_event(
        self,
        session: AsyncSession,
        *,
        owner_id: str,
        title: str,
        event_type: str,
        ai_processed: bool,
        source_document: dict[str, Any],
        created_at: datetime | None = None,
    ) -> TimelineEvent:
        """
        Append a timeline event for an owner.

        Args:
            session: Database session.
            owner_id: Stable identity of the owner.
            title: Display title.
            event_type: Event category, e.g. "document".
            ai_processed: Whether the source was machine-generated.
            source_document: JSON-serializable artifact description.
            created_at: Creation time; defaults to now (UTC).

        Returns:
            The created event with its generated ID.
        """
        return await self.insert(
            session,
            owner_id=owner_id,
            title=title,
            event_type=event_type,
            ai_processed=ai_processed,
            source_document=source_document,
            created_at=created_at or datetime.now(timezone.utc),
        )


timeline_event_crud = TimelineEventCRUD()
