"""
Dashboard router.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.config.constants import REPORTING_ROLES
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context, require_roles
from shared.utils.schemas import DashboardOutput
from taqueria_api.services.domain import DashboardService


router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardOutput)
def get_stats(
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> DashboardOutput:
    """Today's orders and revenue, table occupancy, best sellers and open orders."""
    require_roles(ctx, REPORTING_ROLES)
    return DashboardService(db).get_stats()
