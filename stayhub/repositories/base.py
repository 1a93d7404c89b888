"""
Shared async SQLAlchemy persistence for accounts, listings and reviews.
Writes commit immediately and roll the session back when they fail.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func, Select
from stayhub.database import Base
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository bound to one model and one session.
    Subclasses add the lookups their service layer needs.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    @property
    def _name(self) -> str:
        return self.model.__name__

    def _apply_filters(self, query: Select, filters: Optional[Dict[str, Any]]) -> Select:
        """AND together equality filters; keys that are not columns are ignored."""
        for field, value in (filters or {}).items():
            column = getattr(self.model, field, None)
            if column is not None:
                query = query.where(column == value)
        return query

    async def _commit(self, action: str, ident: Any) -> None:
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"{self._name} {action} failed for {ident}: {e}")
            raise

    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Insert one row built from obj_in and return it refreshed.

        Raises:
            SQLAlchemyError: The insert or commit failed; the session is rolled back
        """
        db_obj = self.model(**obj_in)
        self.db.add(db_obj)
        await self._commit("insert", obj_in.get("id", "new row"))
        await self.db.refresh(db_obj)
        logger.debug(f"Inserted {self._name} {db_obj.id}")
        return db_obj

    async def get_by_id(self, id: uuid.UUID) -> Optional[ModelType]:
        """Primary-key lookup; None when absent."""
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_multi(
        self,
        filters: Optional[Dict[str, Any]] = None,
        newest_first: bool = True,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[ModelType]:
        """
        Rows matching the equality filters, ordered by created_at then id.

        Args:
            filters: Column name to required value
            newest_first: Descending created_at when True
            skip: Offset into the ordered rows
            limit: Page size, unbounded when None
        """
        created = self.model.created_at.desc() if newest_first else self.model.created_at.asc()
        query = self._apply_filters(select(self.model), filters).order_by(created, self.model.id)

        if skip:
            query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)

        rows = list((await self.db.execute(query)).scalars().all())
        logger.debug(f"Loaded {len(rows)} {self._name} rows")
        return rows

    async def update(self, id: uuid.UUID, obj_in: Dict[str, Any]) -> Optional[ModelType]:
        """
        Overwrite the given columns of one row.
        Every key in obj_in is written, None included; returns None when the row is missing.
        """
        db_obj = await self.get_by_id(id)
        if db_obj is None:
            return None

        for field, value in obj_in.items():
            setattr(db_obj, field, value)

        await self._commit("update", id)
        await self.db.refresh(db_obj)
        logger.debug(f"Updated {self._name} {id}")
        return db_obj

    async def delete(self, id: uuid.UUID) -> bool:
        """Remove one row; False when nothing matched."""
        try:
            result = await self.db.execute(delete(self.model).where(self.model.id == id))
        except Exception:
            await self.db.rollback()
            raise
        await self._commit("delete", id)
        return result.rowcount > 0

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        query = self._apply_filters(select(func.count(self.model.id)), filters)
        return (await self.db.execute(query)).scalar() or 0

    async def exists(self, id: uuid.UUID) -> bool:
        return await self.count({"id": id}) > 0
