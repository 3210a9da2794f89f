"""
CaterHub Backend — Reference Checks Shared by the Catalog Services
====================================================================

What:  Resolve lookup ids sent by a client and confirm the tenant account.
Why:   Dish, package and package item writes all reject unknown references
       with InvalidReferenceError naming the entity, and all require the
       owner to be a caterer. One implementation keeps the messages
       identical across services.
"""

import uuid
from typing import Any, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from caterhub.database import Base
from caterhub.exceptions import (
    InvalidOwnerError,
    InvalidReferenceError,
    NotFoundOrForbiddenError,
    ValidationError,
)
from caterhub.models.user import User
from caterhub.repositories.ownership import as_uuid

ModelT = TypeVar("ModelT", bound=Base)

DEFAULT_CURRENCY = "AED"


async def ensure_caterer(db: AsyncSession, owner_id: uuid.UUID) -> User:
    """
    Confirm `owner_id` is an existing CATERER account.

    Raises:
        NotFoundOrForbiddenError("User not found") when the account is gone
        InvalidOwnerError when it exists with another role
    """
    user = await db.get(User, owner_id)
    if user is None:
        raise NotFoundOrForbiddenError(
            resource="User", resource_id=str(owner_id), message="User not found"
        )
    if not user.is_caterer:
        raise InvalidOwnerError(
            message=f"User with ID {owner_id} is not a caterer",
            context={"role": user.role},
        )
    return user


async def resolve_lookup(
    db: AsyncSession,
    model: Type[ModelT],
    raw_id: Any,
    message: str,
    entity: str,
) -> ModelT:
    """Load a lookup row by a client-supplied id or raise InvalidReferenceError."""
    pk = as_uuid(raw_id)
    row = await db.get(model, pk) if pk is not None else None
    if row is None:
        raise InvalidReferenceError(
            message=message, entity=entity, context={"id": str(raw_id)}
        )
    return row


async def resolve_lookup_many(
    db: AsyncSession,
    model: Type[ModelT],
    raw_ids: Sequence[Any],
    message: str,
    entity: str,
) -> List[ModelT]:
    """Load every id in `raw_ids` (duplicates collapsed); any unknown id fails the whole list."""
    ids = parse_id_list(raw_ids, field=f"{entity}_ids")
    if not ids:
        return []
    result = await db.execute(select(model).where(model.id.in_(ids)))
    rows = list(result.scalars().all())
    if len(rows) != len(ids):
        found = {row.id for row in rows}
        raise InvalidReferenceError(
            message=message,
            entity=entity,
            context={"missing": [str(i) for i in ids if i not in found]},
        )
    return rows


def parse_id_list(raw_ids: Optional[Sequence[Any]], field: str) -> List[uuid.UUID]:
    """
    Turn client ids into distinct UUIDs, preserving order.

    Raises:
        InvalidReferenceError listing every entry that is not a UUID
    """
    if raw_ids is None:
        return []
    ids: List[uuid.UUID] = []
    malformed = []
    for raw in raw_ids:
        pk = as_uuid(raw)
        if pk is None:
            malformed.append(str(raw))
        elif pk not in ids:
            ids.append(pk)
    if malformed:
        raise InvalidReferenceError(
            message=f"Invalid id in {field}",
            entity=field,
            context={"malformed": malformed},
        )
    return ids


def reject_nulls(values: dict, nullable: set) -> None:
    """Partial updates may clear nullable columns only."""
    for column, value in values.items():
        if value is None and column not in nullable:
            raise ValidationError(message=f"{column} cannot be empty", field=column)
