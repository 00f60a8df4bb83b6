"""
Dashboard API: GET /dashboard (any authenticated user) and GET /dashboard/analytics (manager/admin).
Query shape is validated here; a bad value is a 400 before any store access.
"""
from typing import Literal

from fastapi import APIRouter, Depends, Query

from smansys.api.deps import get_current_identity, require_manager_or_admin
from smansys.schemas.dashboard import AnalyticsResponse, DashboardResponse
from smansys.services.auth import Identity
from smansys.services.dashboard import DashboardQuery, build_analytics, build_dashboard
from smansys.store import Store, get_store

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

DateRange = Literal["7days", "30days", "90days", "custom"]
RoleFilter = Literal["admin", "manager", "user", "all"]


def dashboard_query(
    date_range: DateRange = Query("30days", alias="dateRange"),
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    role: RoleFilter = Query("all"),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> DashboardQuery:
    return DashboardQuery(
        date_range=date_range,
        start_date=start_date,
        end_date=end_date,
        role=role,
        search=search,
        page=page,
        limit=limit,
    )


@router.get("", response_model=DashboardResponse)
def get_dashboard(
    query: DashboardQuery = Depends(dashboard_query),
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store),
):
    """Overview counts, daily growth, five most recent matching users."""
    return build_dashboard(store.users, query)


@router.get("/analytics", response_model=AnalyticsResponse)
def get_analytics(
    query: DashboardQuery = Depends(dashboard_query),
    identity: Identity = Depends(require_manager_or_admin),
    store: Store = Depends(get_store),
):
    """Paginated matching users and per-role statistics (manager/admin only)."""
    return build_analytics(store.users, query)
