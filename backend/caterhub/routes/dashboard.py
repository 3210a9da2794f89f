"""
CaterHub Backend — Dashboard Route
====================================

What:  GET /caterer/dashboard, the caterer's counts and financial summary.
Note:  The response uses camelCase keys (packageItems, averagePackagePrice)
       via the schema aliases.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from caterhub.database import get_db_session
from caterhub.dependencies import require_caterer
from caterhub.schemas.common import Envelope, ErrorResponse
from caterhub.schemas.dashboard import DashboardStats
from caterhub.security import Identity
from caterhub.services.dashboard_service import dashboard_service

router = APIRouter(prefix="/caterer", tags=["Dashboard"])


@router.get(
    "/dashboard",
    response_model=Envelope[DashboardStats],
    responses={
        403: {"description": "Caller is not a caterer", "model": ErrorResponse},
        404: {"description": "Account no longer exists", "model": ErrorResponse},
    },
)
async def get_dashboard(
    identity: Identity = Depends(require_caterer),
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> Envelope[DashboardStats]:
    return Envelope(data=await dashboard_service.get_stats(db, identity.user_id))
