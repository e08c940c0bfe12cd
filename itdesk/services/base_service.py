from typing import Any, Dict, Optional, Sequence, Type

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession


class BaseService:
    """
    Generic reusable CRUD helper for SQLAlchemy models.

    Sub-classes must provide:
        model (SQLAlchemy model class)
        load_options (loader options applied to every read, optional)
    """

    model: Type  # Concrete subclasses must override
    load_options: Sequence[Any] = ()

    # --------------------------------------------------------------------- #
    # Basic getters
    # --------------------------------------------------------------------- #
    async def get_by_id(self, db: AsyncSession, *, id: int, refresh: bool = False):
        """Fetch a single record by primary key with `load_options` applied."""
        stmt = select(self.model).options(*self.load_options).filter(self.model.id == id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await db.execute(stmt)
        return result.unique().scalars().first()

    async def get_multi(
        self,
        db: AsyncSession,
        *,
        filters: Sequence[Any] = (),
        order_by: Sequence[Any] = (),
        skip: int = 0,
        limit: Optional[int] = 100,
    ):
        stmt = select(self.model).options(*self.load_options).filter(*filters).order_by(*order_by).offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await db.execute(stmt)
        return result.unique().scalars().all()

    # --------------------------------------------------------------------- #
    # Mutations
    # --------------------------------------------------------------------- #
    async def create(self, db: AsyncSession, *, obj_in: Dict[str, Any]):
        """Insert a record and return it reloaded, server defaults included."""
        db_obj = self.model(**obj_in)
        db.add(db_obj)
        await db.commit()
        return await self.get_by_id(db, id=db_obj.id, refresh=True)

    async def update(self, db: AsyncSession, *, db_obj, fields: Dict[str, Any]) -> Any:
        """Patch an existing DB model with already-validated fields."""
        for field, value in fields.items():
            setattr(db_obj, field, value)

        db.add(db_obj)
        await db.commit()
        return await self.get_by_id(db, id=db_obj.id, refresh=True)

    # --------------------------------------------------------------------- #
    # Statistics helpers
    # --------------------------------------------------------------------- #
    async def count(self, db: AsyncSession, *, filters: Sequence[Any] = ()) -> int:
        result = await db.execute(select(func.count()).select_from(self.model).filter(*filters))
        return result.scalar() or 0
