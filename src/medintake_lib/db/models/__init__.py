"""
SQLAlchemy ORM models for all MedIntake database tables.

Usage:
    from medintake_lib.db.models import TimelineEvent
"""

from medintake_lib.db.models.timeline_event import TimelineEvent

__all__ = [
    "TimelineEvent",
]
