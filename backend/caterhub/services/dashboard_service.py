"""
CaterHub Backend — Dashboard Aggregation Service
==================================================

What:  Counts, a financial summary and recent activity for one caterer.
Why:   The caterer home screen shows these numbers on every visit.
How:   A handful of COUNT / SUM aggregates scoped by caterer_id, plus the
       five newest dishes and packages. Derived numbers are computed so
       that `active + inactive == total` holds by construction.

Financial rules:
    - totalRevenuePotential: sum of every package's total_price
    - averagePackagePrice: that sum / package count (0 with no packages)
    - both rounded to 2 decimal places
    - currency: the currency of the caterer's first (oldest) package, or AED
"""

import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from caterhub.models.dish import Dish
from caterhub.models.package import Package, PackageItem
from caterhub.repositories.ownership import OwnedRepository
from caterhub.schemas.dashboard import (
    DashboardStats,
    DishCounts,
    FinancialSummary,
    PackageCounts,
    PackageItemCounts,
    RecentActivity,
    RecentDish,
    RecentPackage,
)
from caterhub.services.references import DEFAULT_CURRENCY, ensure_caterer

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5
TWO_PLACES = Decimal("0.01")

dishes = OwnedRepository(Dish)
packages = OwnedRepository(Package)
items = OwnedRepository(PackageItem)


def _round2(value: Decimal) -> float:
    return float(value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


class DashboardService:

    async def get_stats(self, db: AsyncSession, owner_id: uuid.UUID) -> DashboardStats:
        """
        Raises:
            NotFoundOrForbiddenError("User not found") for an unknown account
            InvalidOwnerError for an account that is not a caterer
        """
        await ensure_caterer(db, owner_id)

        total_dishes = await dishes.count_owned(db, owner_id)
        active_dishes = await dishes.count_owned(db, owner_id, filters={"is_active": True})

        total_packages = await packages.count_owned(db, owner_id)
        active_packages = await packages.count_owned(db, owner_id, filters={"is_active": True})
        available_packages = await packages.count_owned(
            db, owner_id, filters={"is_available": True}
        )

        total_items = await items.count_owned(db, owner_id)
        draft_items = await items.count_owned(db, owner_id, null_filters=("package_id",))

        financial = await self._financial_summary(db, owner_id, total_packages)

        recent_dishes = await dishes.list_owned(db, owner_id, limit=RECENT_LIMIT)
        recent_packages = await packages.list_owned(db, owner_id, limit=RECENT_LIMIT)

        return DashboardStats(
            dishes=DishCounts(
                total=total_dishes,
                active=active_dishes,
                inactive=total_dishes - active_dishes,
            ),
            packages=PackageCounts(
                total=total_packages,
                active=active_packages,
                available=available_packages,
                inactive=total_packages - active_packages,
            ),
            package_items=PackageItemCounts(
                total=total_items,
                draft=draft_items,
                linked=total_items - draft_items,
            ),
            financial=financial,
            recent=RecentActivity(
                dishes=[RecentDish.model_validate(d) for d in recent_dishes],
                packages=[RecentPackage.model_validate(p) for p in recent_packages],
            ),
        )

    async def _financial_summary(
        self, db: AsyncSession, owner_id: uuid.UUID, package_count: int
    ) -> FinancialSummary:
        result = await db.execute(
            select(func.coalesce(func.sum(Package.total_price), 0)).where(
                Package.caterer_id == owner_id
            )
        )
        total = Decimal(str(result.scalar() or 0))
        average = total / package_count if package_count else Decimal(0)

        result = await db.execute(
            select(Package.currency)
            .where(Package.caterer_id == owner_id)
            .order_by(Package.created_at.asc(), Package.id)
            .limit(1)
        )
        currency = result.scalar_one_or_none() or DEFAULT_CURRENCY

        return FinancialSummary(
            average_package_price=_round2(average),
            total_revenue_potential=_round2(total),
            currency=currency,
        )


dashboard_service = DashboardService()
