"""
CaterHub Backend — Dish Service
=================================

What:  Tenant-scoped list/get/create/update/delete for dishes.
Why:   Holds the dish rules: required fields, lookup references, the
       subcategory-belongs-to-category invariant, free form links, and the
       delete guard against dishes still used by package items.
How:   Stateless; receives the request session on every call and goes
       through OwnedRepository for anything tenant-owned.

Flow (create):
    ensure caterer → required fields → cuisine/category/subcategory →
    free forms → insert → reload with relationships → DishResponse
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from caterhub.exceptions import InvalidReferenceError, ReferencedByPackageItemError, ValidationError
from caterhub.models.dish import Dish
from caterhub.models.lookup import Category, CuisineType, FreeForm, SubCategory
from caterhub.models.package import PackageItem
from caterhub.repositories.ownership import OwnedRepository, as_uuid
from caterhub.schemas.dish import DishPayload, DishResponse
from caterhub.services.references import (
    DEFAULT_CURRENCY,
    ensure_caterer,
    reject_nulls,
    resolve_lookup,
    resolve_lookup_many,
)

logger = logging.getLogger(__name__)

REQUIRED_ON_CREATE = ("name", "cuisine_type_id", "category_id", "sub_category_id", "price")
NULLABLE_COLUMNS = {"description", "image_url", "quantity_in_gm"}
REFERENCE_COLUMNS = ("cuisine_type_id", "category_id", "sub_category_id")

dishes = OwnedRepository(Dish)


class DishService:
    """Business rules for a caterer's dishes."""

    async def list_dishes(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        cuisine_type_id: Optional[str] = None,
        category_id: Optional[str] = None,
        sub_category_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> List[DishResponse]:
        filters = {"is_active": is_active}
        for column, raw in (
            ("cuisine_type_id", cuisine_type_id),
            ("category_id", category_id),
            ("sub_category_id", sub_category_id),
        ):
            if raw is None:
                continue
            pk = as_uuid(raw)
            if pk is None:
                # A malformed filter id cannot match any row
                return []
            filters[column] = pk

        rows = await dishes.list_owned(db, owner_id, filters=filters)
        return [DishResponse.model_validate(row) for row in rows]

    async def get_dish(self, db: AsyncSession, dish_id: str, owner_id: uuid.UUID) -> DishResponse:
        dish = await dishes.require_owned(db, dish_id, owner_id, "Dish")
        return DishResponse.model_validate(dish)

    async def create_dish(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        payload: DishPayload,
        image_url: Optional[str] = None,
    ) -> DishResponse:
        await ensure_caterer(db, owner_id)

        missing = [f for f in REQUIRED_ON_CREATE if getattr(payload, f) is None]
        if missing or not payload.name.strip():
            raise ValidationError(
                message="Missing required fields: " + ", ".join(REQUIRED_ON_CREATE),
                context={"missing": missing or ["name"]},
            )

        cuisine = await resolve_lookup(
            db, CuisineType, payload.cuisine_type_id, "Invalid cuisine type", "cuisine_type"
        )
        category = await resolve_lookup(
            db, Category, payload.category_id, "Invalid category", "category"
        )
        sub_category = await resolve_lookup(
            db, SubCategory, payload.sub_category_id, "Invalid subcategory", "sub_category"
        )
        self._check_sub_category(sub_category, category.id)

        free_forms = await resolve_lookup_many(
            db, FreeForm, payload.free_form_ids, "Invalid free form", "free_form"
        )

        dish = await dishes.create_owned(
            db,
            owner_id,
            name=payload.name.strip(),
            description=payload.description,
            image_url=image_url or payload.image_url,
            cuisine_type_id=cuisine.id,
            category_id=category.id,
            sub_category_id=sub_category.id,
            quantity_in_gm=payload.quantity_in_gm,
            pieces=payload.pieces if payload.pieces is not None else 1,
            price=payload.price,
            currency=(payload.currency or DEFAULT_CURRENCY).upper(),
            is_active=payload.is_active if payload.is_active is not None else True,
            free_forms=free_forms,
        )
        logger.info("Dish created: id=%s caterer=%s", dish.id, owner_id)

        dish = await dishes.require_owned(db, dish.id, owner_id, "Dish", refresh=True)
        return DishResponse.model_validate(dish)

    async def update_dish(
        self,
        db: AsyncSession,
        dish_id: str,
        owner_id: uuid.UUID,
        payload: DishPayload,
        image_url: Optional[str] = None,
    ) -> DishResponse:
        """
        Partial update: only fields present in the request change.

        Reference fields are re-validated; when only the subcategory
        changes it must belong to the dish's current category.
        """
        dish = await dishes.require_owned(db, dish_id, owner_id, "Dish")

        supplied = set(payload.model_fields_set)
        values = payload.model_dump(include=supplied - {"free_form_ids"})
        if image_url:
            values["image_url"] = image_url
        reject_nulls(values, NULLABLE_COLUMNS)

        if "name" in values:
            values["name"] = values["name"].strip()
            if not values["name"]:
                raise ValidationError(message="name cannot be empty", field="name")
        if "currency" in values:
            values["currency"] = values["currency"].upper()

        if "cuisine_type_id" in values:
            cuisine = await resolve_lookup(
                db, CuisineType, values["cuisine_type_id"], "Invalid cuisine type", "cuisine_type"
            )
            values["cuisine_type_id"] = cuisine.id

        category_id = dish.category_id
        if "category_id" in values:
            category = await resolve_lookup(
                db, Category, values["category_id"], "Invalid category", "category"
            )
            category_id = values["category_id"] = category.id

        if "sub_category_id" in values or "category_id" in values:
            sub_category = await resolve_lookup(
                db,
                SubCategory,
                values.get("sub_category_id", dish.sub_category_id),
                "Invalid subcategory",
                "sub_category",
            )
            self._check_sub_category(sub_category, category_id)
            values["sub_category_id"] = sub_category.id

        if "free_form_ids" in supplied:
            dish.free_forms = await resolve_lookup_many(
                db, FreeForm, payload.free_form_ids or [], "Invalid free form", "free_form"
            )

        await dishes.update_owned(db, dish, values)
        logger.info("Dish updated: id=%s fields=%s", dish.id, sorted(supplied))

        dish = await dishes.require_owned(db, dish.id, owner_id, "Dish", refresh=True)
        return DishResponse.model_validate(dish)

    async def delete_dish(self, db: AsyncSession, dish_id: str, owner_id: uuid.UUID) -> None:
        dish = await dishes.require_owned(db, dish_id, owner_id, "Dish", for_update=True)

        result = await db.execute(
            select(func.count()).select_from(PackageItem).where(PackageItem.dish_id == dish.id)
        )
        if int(result.scalar() or 0) > 0:
            raise ReferencedByPackageItemError(context={"dish_id": str(dish.id)})

        await dishes.delete_owned(db, dish)
        logger.info("Dish deleted: id=%s caterer=%s", dish.id, owner_id)

    @staticmethod
    def _check_sub_category(sub_category: SubCategory, category_id: uuid.UUID) -> None:
        if sub_category.category_id != category_id:
            raise InvalidReferenceError(
                message="Subcategory does not belong to the specified category",
                entity="sub_category",
                context={
                    "sub_category_id": str(sub_category.id),
                    "category_id": str(category_id),
                },
            )


# ── Singleton Instance ────────────────────────────────────────────────────
dish_service = DishService()
