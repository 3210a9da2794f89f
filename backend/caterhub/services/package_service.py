"""
CaterHub Backend — Package Service
====================================

What:  Tenant-scoped list/get/create/update/delete for packages.
Why:   A package bundles package items for a people count at a total
       price. Its item set can be given on create (linked) and on update
       (replaced; dropped items return to draft).
How:   Stateless; item linking is delegated to PackageItemService so the
       ownership checks for items live in one place.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from caterhub.exceptions import ValidationError
from caterhub.models.lookup import PackageType
from caterhub.models.package import CustomisationType, Package
from caterhub.repositories.ownership import OwnedRepository, as_uuid
from caterhub.schemas.package import PackagePayload, PackageResponse
from caterhub.services.package_item_service import package_item_service
from caterhub.services.references import (
    DEFAULT_CURRENCY,
    ensure_caterer,
    reject_nulls,
    resolve_lookup,
)

logger = logging.getLogger(__name__)

REQUIRED_ON_CREATE = ("name", "people_count", "package_type_id", "total_price")
NULLABLE_COLUMNS = {"cover_image_url", "rating"}

packages = OwnedRepository(Package)


class PackageService:
    """Business rules for a caterer's packages."""

    async def list_packages(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        package_type_id: Optional[str] = None,
        is_active: Optional[bool] = None,
        is_available: Optional[bool] = None,
    ) -> List[PackageResponse]:
        filters = {"is_active": is_active, "is_available": is_available}
        if package_type_id is not None:
            pk = as_uuid(package_type_id)
            if pk is None:
                return []
            filters["package_type_id"] = pk
        rows = await packages.list_owned(db, owner_id, filters=filters)
        return [PackageResponse.model_validate(row) for row in rows]

    async def get_package(
        self, db: AsyncSession, package_id: str, owner_id: uuid.UUID
    ) -> PackageResponse:
        package = await packages.require_owned(db, package_id, owner_id, "Package")
        return PackageResponse.model_validate(package)

    async def create_package(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        payload: PackagePayload,
        cover_image_url: Optional[str] = None,
    ) -> PackageResponse:
        await ensure_caterer(db, owner_id)

        missing = [f for f in REQUIRED_ON_CREATE if getattr(payload, f) is None]
        if missing or not payload.name.strip():
            raise ValidationError(
                message="Missing required fields: " + ", ".join(REQUIRED_ON_CREATE),
                context={"missing": missing or ["name"]},
            )

        package_type = await resolve_lookup(
            db, PackageType, payload.package_type_id, "Invalid package type", "package_type"
        )

        package = await packages.create_owned(
            db,
            owner_id,
            name=payload.name.strip(),
            people_count=payload.people_count,
            package_type_id=package_type.id,
            cover_image_url=cover_image_url or payload.cover_image_url,
            total_price=payload.total_price,
            currency=(payload.currency or DEFAULT_CURRENCY).upper(),
            rating=payload.rating,
            is_active=payload.is_active if payload.is_active is not None else True,
            is_available=payload.is_available if payload.is_available is not None else True,
            customisation_type=(
                payload.customisation_type or CustomisationType.FIXED
            ).value,
        )

        if payload.package_item_ids:
            await package_item_service.attach_items(
                db, package.id, payload.package_item_ids, owner_id
            )

        logger.info("Package created: id=%s caterer=%s", package.id, owner_id)
        package = await packages.require_owned(db, package.id, owner_id, "Package", refresh=True)
        return PackageResponse.model_validate(package)

    async def update_package(
        self,
        db: AsyncSession,
        package_id: str,
        owner_id: uuid.UUID,
        payload: PackagePayload,
        cover_image_url: Optional[str] = None,
    ) -> PackageResponse:
        package = await packages.require_owned(db, package_id, owner_id, "Package", for_update=True)

        supplied = set(payload.model_fields_set)
        values = payload.model_dump(include=supplied - {"package_item_ids"})
        if cover_image_url:
            values["cover_image_url"] = cover_image_url
        reject_nulls(values, NULLABLE_COLUMNS)

        if "name" in values:
            values["name"] = values["name"].strip()
            if not values["name"]:
                raise ValidationError(message="name cannot be empty", field="name")
        if "currency" in values:
            values["currency"] = values["currency"].upper()
        if "customisation_type" in values:
            values["customisation_type"] = CustomisationType(values["customisation_type"]).value
        if "package_type_id" in values:
            package_type = await resolve_lookup(
                db, PackageType, values["package_type_id"], "Invalid package type", "package_type"
            )
            values["package_type_id"] = package_type.id

        if "package_item_ids" in supplied:
            await package_item_service.replace_items(
                db, package.id, payload.package_item_ids or [], owner_id
            )

        await packages.update_owned(db, package, values)
        logger.info("Package updated: id=%s fields=%s", package.id, sorted(supplied))

        package = await packages.require_owned(db, package.id, owner_id, "Package", refresh=True)
        return PackageResponse.model_validate(package)

    async def delete_package(
        self, db: AsyncSession, package_id: str, owner_id: uuid.UUID
    ) -> None:
        """Delete a package; its items survive as drafts."""
        package = await packages.require_owned(db, package_id, owner_id, "Package", for_update=True)
        await package_item_service.detach_items(db, package.id, owner_id)
        await packages.delete_owned(db, package)
        logger.info("Package deleted: id=%s caterer=%s", package.id, owner_id)


# ── Singleton Instance ────────────────────────────────────────────────────
package_service = PackageService()
