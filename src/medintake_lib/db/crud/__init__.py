"""
CRUD operations for MedIntake database models.

Usage:
    from medintake_lib.db.crud import timeline_event_crud

    event = await timeline_event_crud.create_event(session, owner_id="uid", ...)
"""

from medintake_lib.db.crud.base import CRUDBase
from medintake_lib.db.crud.timeline_event import TimelineEventCRUD, timeline_event_crud

__all__ = [
    "CRUDBase",
    "TimelineEventCRUD",
    "timeline_event_crud",
]
