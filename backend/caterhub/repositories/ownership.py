"""
CaterHub Backend — Ownership-Scoped Repository
================================================

What:  Generic data access for tenant-owned rows (dishes, packages,
       package items). Every query it builds carries
       `caterer_id = :owner_id` next to the primary key.
Why:   There is no row-level security in the database. Putting the
       ownership predicate in one class means a service cannot read or
       mutate another tenant's row by forgetting a filter.
How:   `OwnedRepository(Model)` is instantiated once per entity at module
       level and receives the request's AsyncSession on every call, the
       same way the services do.

Usage:
    dishes = OwnedRepository(Dish)
    rows = await dishes.list_owned(db, owner_id, filters={"category_id": cid})
    dish = await dishes.get_owned(db, dish_id, owner_id)        # None if missing OR unowned
    dish = await dishes.require_owned(db, dish_id, owner_id, "Dish")  # raises 404
"""

import uuid
from typing import Any, Dict, Generic, Iterable, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from caterhub.database import Base
from caterhub.exceptions import NotFoundOrForbiddenError

ModelT = TypeVar("ModelT", bound=Base)


def as_uuid(value: Any) -> Optional[uuid.UUID]:
    """Parse an id from a path, query or body; None when malformed."""
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, AttributeError, TypeError):
        return None


class OwnedRepository(Generic[ModelT]):
    """
    CRUD helpers for a model with `id`, `caterer_id` and `created_at` columns.

    All methods take the session explicitly and never commit; the request
    dependency owns the transaction.
    """

    def __init__(self, model: Type[ModelT]):
        self.model = model

    # ── Query building ────────────────────────────────────────────────────

    def _owned_query(self, owner_id: uuid.UUID) -> Select:
        return select(self.model).where(self.model.caterer_id == owner_id)

    def _apply_filters(self, query: Select, filters: Optional[Dict[str, Any]]) -> Select:
        """Equality filters. None means "not filtered"; use `null_filters` for IS NULL."""
        for column, value in (filters or {}).items():
            if value is not None:
                query = query.where(getattr(self.model, column) == value)
        return query

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_owned(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        filters: Optional[Dict[str, Any]] = None,
        null_filters: Iterable[str] = (),
        ids: Optional[Sequence[uuid.UUID]] = None,
        limit: Optional[int] = None,
        refresh: bool = False,
    ) -> List[ModelT]:
        """Rows owned by `owner_id`, newest first."""
        query = self._apply_filters(self._owned_query(owner_id), filters)
        for column in null_filters:
            query = query.where(getattr(self.model, column).is_(None))
        if ids is not None:
            query = query.where(self.model.id.in_(ids))
        query = query.order_by(self.model.created_at.desc(), self.model.id)
        if limit is not None:
            query = query.limit(limit)
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_owned(
        self,
        db: AsyncSession,
        entity_id: Any,
        owner_id: uuid.UUID,
        for_update: bool = False,
        refresh: bool = False,
    ) -> Optional[ModelT]:
        """
        Fetch one row by id, only if `owner_id` owns it.

        Args:
            for_update: take a row lock (ignored by dialects without one)
            refresh:    re-read columns and eager relationships even if the
                        row is already in the session (used after writes)
        """
        pk = as_uuid(entity_id)
        if pk is None:
            return None
        query = self._owned_query(owner_id).where(self.model.id == pk)
        if for_update:
            query = query.with_for_update()
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def require_owned(
        self,
        db: AsyncSession,
        entity_id: Any,
        owner_id: uuid.UUID,
        resource: str,
        for_update: bool = False,
        refresh: bool = False,
    ) -> ModelT:
        """get_owned, raising NotFoundOrForbiddenError when the row is missing or unowned."""
        entity = await self.get_owned(
            db, entity_id, owner_id, for_update=for_update, refresh=refresh
        )
        if entity is None:
            raise NotFoundOrForbiddenError(resource=resource, resource_id=str(entity_id))
        return entity

    async def count_owned(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        filters: Optional[Dict[str, Any]] = None,
        null_filters: Iterable[str] = (),
        ids: Optional[Sequence[uuid.UUID]] = None,
    ) -> int:
        query = select(func.count()).select_from(self.model).where(
            self.model.caterer_id == owner_id
        )
        query = self._apply_filters(query, filters)
        for column in null_filters:
            query = query.where(getattr(self.model, column).is_(None))
        if ids is not None:
            query = query.where(self.model.id.in_(ids))
        result = await db.execute(query)
        return int(result.scalar() or 0)

    async def lock_owned_ids(
        self, db: AsyncSession, ids: Sequence[uuid.UUID], owner_id: uuid.UUID
    ) -> List[uuid.UUID]:
        """
        Lock and return the subset of `ids` owned by `owner_id`.

        SELECT ... FOR UPDATE on PostgreSQL; SQLite serializes writers at
        the database level and ignores the clause.
        """
        if not ids:
            return []
        query = (
            select(self.model.id)
            .where(self.model.caterer_id == owner_id, self.model.id.in_(ids))
            .with_for_update()
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_owned(
        self, db: AsyncSession, owner_id: uuid.UUID, **values: Any
    ) -> ModelT:
        """Insert a row owned by `owner_id` and flush so its id is assigned."""
        entity = self.model(caterer_id=owner_id, **values)
        db.add(entity)
        await db.flush()
        return entity

    async def update_owned(
        self, db: AsyncSession, entity: ModelT, values: Dict[str, Any]
    ) -> ModelT:
        """Apply `values` to an entity previously obtained via get/require_owned."""
        for column, value in values.items():
            setattr(entity, column, value)
        await db.flush()
        return entity

    async def delete_owned(self, db: AsyncSession, entity: ModelT) -> None:
        await db.delete(entity)
        await db.flush()

    async def bulk_update_owned(
        self,
        db: AsyncSession,
        ids: Sequence[uuid.UUID],
        owner_id: uuid.UUID,
        values: Dict[str, Any],
    ) -> None:
        """Single UPDATE ... WHERE id IN (...) AND caterer_id = :owner."""
        if not ids:
            return
        await db.execute(
            update(self.model)
            .where(self.model.caterer_id == owner_id, self.model.id.in_(ids))
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
