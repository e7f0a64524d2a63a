"""
Shared insert helper for append-only tables.

Timeline rows are never read back, updated or deleted by the service, so
model CRUD classes only get inserts from this base.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from medintake_lib.db.connection import Base

ModelT = TypeVar("ModelT", bound=Base)


class CRUDBase(Generic[ModelT]):
    """
    Generic append-only operations bound to one model class.

    Args:
        model: The SQLAlchemy model class.
    """

    def __init__(self, model: type[ModelT]):
        self.model = model

    async def insert(self, session: AsyncSession, **values: Any) -> ModelT:
        """
        Add a row and flush so server and Python-side defaults are populated.

        The caller's session decides when the insert is committed.
        """
        row = self.model(**values)
        session.add(row)
        await session.flush()
        await session.refresh(row)
        return row
