"""
CaterHub Backend — Package Item Service
=========================================

What:  Tenant-scoped CRUD for package items and the bulk link operation.
Why:   A package item pins one of the caterer's dishes (with a people
       count, quantity and the price at the time) and may sit in a package
       or wait as a draft until it is linked.

link_batch (all-or-nothing):
    1. item_ids must be a non-empty array
    2. the target package must be owned by the caller (404 otherwise)
    3. the caller's rows among the distinct ids are locked and counted;
       any shortfall raises PartialOwnershipMismatchError and nothing is written
    4. one UPDATE sets package_id on every row
    All four steps run in the request transaction.
"""

import logging
import uuid
from typing import Any, List, Optional, Sequence

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from caterhub.exceptions import (
    InvalidReferenceError,
    PartialOwnershipMismatchError,
    ValidationError,
)
from caterhub.models.dish import Dish
from caterhub.models.package import Package, PackageItem
from caterhub.repositories.ownership import OwnedRepository, as_uuid
from caterhub.schemas.package import PackageItemPayload, PackageItemResponse
from caterhub.services.references import ensure_caterer, reject_nulls

logger = logging.getLogger(__name__)

REQUIRED_ON_CREATE = ("dish_id", "people_count")
NULLABLE_COLUMNS = {"package_id", "price_at_time"}

items = OwnedRepository(PackageItem)
dishes = OwnedRepository(Dish)
packages = OwnedRepository(Package)


class PackageItemService:
    """Business rules for a caterer's package items."""

    async def list_items(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        draft_only: bool = False,
        package_id: Optional[str] = None,
    ) -> List[PackageItemResponse]:
        filters = {}
        if package_id is not None:
            pk = as_uuid(package_id)
            if pk is None:
                return []
            filters["package_id"] = pk
        rows = await items.list_owned(
            db,
            owner_id,
            filters=filters,
            null_filters=("package_id",) if draft_only else (),
        )
        return [PackageItemResponse.model_validate(row) for row in rows]

    async def get_item(
        self, db: AsyncSession, item_id: str, owner_id: uuid.UUID
    ) -> PackageItemResponse:
        item = await items.require_owned(db, item_id, owner_id, "Package item")
        return PackageItemResponse.model_validate(item)

    async def create_item(
        self, db: AsyncSession, owner_id: uuid.UUID, payload: PackageItemPayload
    ) -> PackageItemResponse:
        await ensure_caterer(db, owner_id)

        missing = [f for f in REQUIRED_ON_CREATE if getattr(payload, f) is None]
        if missing:
            raise ValidationError(
                message="Missing required fields: " + ", ".join(REQUIRED_ON_CREATE),
                context={"missing": missing},
            )

        dish = await self._owned_dish(db, payload.dish_id, owner_id)
        package_id = None
        if payload.package_id is not None:
            package_id = (await self._owned_package(db, payload.package_id, owner_id)).id

        item = await items.create_owned(
            db,
            owner_id,
            dish_id=dish.id,
            package_id=package_id,
            people_count=payload.people_count,
            quantity=payload.quantity if payload.quantity is not None else 1,
            price_at_time=(
                payload.price_at_time if payload.price_at_time is not None else dish.price
            ),
            is_optional=bool(payload.is_optional),
            is_addon=bool(payload.is_addon),
        )
        logger.info(
            "Package item created: id=%s dish=%s package=%s", item.id, dish.id, package_id
        )

        item = await items.require_owned(db, item.id, owner_id, "Package item", refresh=True)
        return PackageItemResponse.model_validate(item)

    async def update_item(
        self,
        db: AsyncSession,
        item_id: str,
        owner_id: uuid.UUID,
        payload: PackageItemPayload,
    ) -> PackageItemResponse:
        item = await items.require_owned(db, item_id, owner_id, "Package item")

        values = payload.model_dump(include=set(payload.model_fields_set))
        reject_nulls(values, NULLABLE_COLUMNS)

        if "dish_id" in values:
            values["dish_id"] = (await self._owned_dish(db, values["dish_id"], owner_id)).id
        if values.get("package_id") is not None:
            values["package_id"] = (
                await self._owned_package(db, values["package_id"], owner_id)
            ).id

        await items.update_owned(db, item, values)
        logger.info("Package item updated: id=%s fields=%s", item.id, sorted(values))

        item = await items.require_owned(db, item.id, owner_id, "Package item", refresh=True)
        return PackageItemResponse.model_validate(item)

    async def delete_item(self, db: AsyncSession, item_id: str, owner_id: uuid.UUID) -> None:
        item = await items.require_owned(db, item_id, owner_id, "Package item")
        await items.delete_owned(db, item)
        logger.info("Package item deleted: id=%s caterer=%s", item.id, owner_id)

    # ── Linking ───────────────────────────────────────────────────────────

    async def link_batch(
        self,
        db: AsyncSession,
        package_id: str,
        item_ids: Any,
        owner_id: uuid.UUID,
    ) -> List[PackageItemResponse]:
        if not isinstance(item_ids, list) or not item_ids:
            raise ValidationError(message="item_ids array is required", field="item_ids")

        package = await packages.require_owned(db, package_id, owner_id, "Package", for_update=True)
        ids = await self.attach_items(db, package.id, item_ids, owner_id)

        rows = await items.list_owned(db, owner_id, ids=ids, refresh=True)
        logger.info("Linked %d items to package %s", len(ids), package.id)
        return [PackageItemResponse.model_validate(row) for row in rows]

    async def attach_items(
        self,
        db: AsyncSession,
        package_id: uuid.UUID,
        raw_ids: Sequence[Any],
        owner_id: uuid.UUID,
    ) -> List[uuid.UUID]:
        """
        Verify every id is an item owned by `owner_id`, then point them all at `package_id`.

        Returns:
            The distinct item ids that were linked
        Raises:
            PartialOwnershipMismatchError if any id is malformed, missing or
            owned by another caterer. No row is updated in that case.
        """
        ids = self._distinct_ids(raw_ids)
        owned = set(await items.lock_owned_ids(db, ids, owner_id))
        if len(owned) != len(ids):
            raise PartialOwnershipMismatchError(
                context={
                    "requested": len(ids),
                    "owned": len(owned),
                    "rejected": [str(i) for i in ids if i not in owned],
                }
            )
        await items.bulk_update_owned(db, ids, owner_id, {"package_id": package_id})
        return ids

    async def replace_items(
        self,
        db: AsyncSession,
        package_id: uuid.UUID,
        raw_ids: Sequence[Any],
        owner_id: uuid.UUID,
    ) -> None:
        """Make `raw_ids` the exact item set of a package; dropped items go back to draft."""
        ids = await self.attach_items(db, package_id, raw_ids, owner_id) if raw_ids else []
        await self.detach_items(db, package_id, owner_id, keep=ids)

    async def detach_items(
        self,
        db: AsyncSession,
        package_id: uuid.UUID,
        owner_id: uuid.UUID,
        keep: Sequence[uuid.UUID] = (),
    ) -> None:
        """Return a package's items (except `keep`) to draft."""
        query = update(PackageItem).where(
            PackageItem.caterer_id == owner_id,
            PackageItem.package_id == package_id,
        )
        if keep:
            query = query.where(PackageItem.id.not_in(keep))
        await db.execute(
            query.values(package_id=None).execution_options(synchronize_session="fetch")
        )

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _distinct_ids(raw_ids: Sequence[Any]) -> List[uuid.UUID]:
        ids: List[uuid.UUID] = []
        for raw in raw_ids:
            pk = as_uuid(raw)
            if pk is None:
                raise PartialOwnershipMismatchError(context={"malformed": str(raw)})
            if pk not in ids:
                ids.append(pk)
        return ids

    async def _owned_dish(self, db: AsyncSession, raw_id: Any, owner_id: uuid.UUID) -> Dish:
        dish = await dishes.get_owned(db, raw_id, owner_id)
        if dish is None:
            raise InvalidReferenceError(
                message="Dish not found or does not belong to this caterer",
                entity="dish",
                context={"id": str(raw_id)},
            )
        return dish

    async def _owned_package(
        self, db: AsyncSession, raw_id: Any, owner_id: uuid.UUID
    ) -> Package:
        package = await packages.get_owned(db, raw_id, owner_id)
        if package is None:
            raise InvalidReferenceError(
                message="Package not found or does not belong to this caterer",
                entity="package",
                context={"id": str(raw_id)},
            )
        return package


# ── Singleton Instance ────────────────────────────────────────────────────
package_item_service = PackageItemService()
