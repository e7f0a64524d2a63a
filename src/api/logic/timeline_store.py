"""
Timeline record store backed by the metadata database.
"""

import logging

from api.logic.models import TimelineRecord
from medintake_lib.db.connection import DatabaseManager, get_db_manager
from medintake_lib.db.crud import timeline_event_crud

logger = logging.getLogger(__name__)


class TimelineRecordStore:
    """Appends timeline records to an owner's collection."""

    def __init__(self, db: DatabaseManager | None = None) -> None:
        """
        Initialize store.

        Args:
            db: Database manager providing sessions (uses global if not provided).
        """
        self._db = db

    @property
    def db(self) -> DatabaseManager:
        """Get database manager."""
        if self._db is not None:
            return self._db
        return get_db_manager()

    async def add(self, record: TimelineRecord) -> str:
        """
        Insert a record and return its generated ID.

        The insert is committed before the ID is returned.
        """
        async with self.db.session() as session:
            event = await timeline_event_crud.create_event(
                session,
                owner_id=record.owner_id,
                title=record.title,
                event_type=record.event_type,
                ai_processed=record.ai_processed,
                source_document=record.source_document(),
                created_at=record.created_at,
            )
            event_id = event.id

        logger.info(f"🗂️ Timeline event {event_id} recorded for owner {record.owner_id}")
        return event_id
