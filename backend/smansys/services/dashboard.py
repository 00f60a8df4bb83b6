"""
Dashboard aggregation: resolve the time window, build the user filter, run the aggregates, shape the response.

Scoping of each figure (kept exactly; several are global on purpose):
  - totalUsers: every active user, no window/role/search.
  - newUsers and userGrowth: active users created in the window (role/search ignored),
    so the growth series always sums to newUsers.
  - activeUsers: active users whose last login is within the trailing 7 days from now,
    whatever window was selected.
  - usersInRange and recentUsers: window + role + search.
  - roleDistribution (and analytics roleStats): all active users.
Every call recomputes everything; a store error aborts the whole request.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

from smansys.errors import ValidationFailed
from smansys.schemas.common import Pagination, page_count
from smansys.schemas.dashboard import (
    AnalyticsResponse,
    AppliedFilters,
    DashboardResponse,
    Overview,
    Period,
    RoleStatResponse,
    Statistics,
    TrendPoint,
    Trends,
    UserSummary,
)
from smansys.store.base import UserFilter, UserRecord, UserStore

logger = logging.getLogger(__name__)

DATE_RANGE_DAYS = {"7days": 7, "30days": 30, "90days": 90}
DEFAULT_DATE_RANGE = "30days"
CUSTOM_DATE_RANGE = "custom"
DATE_RANGES = (*DATE_RANGE_DAYS, CUSTOM_DATE_RANGE)
ROLE_FILTERS = ("admin", "manager", "user", "all")
ACTIVE_LOOKBACK = timedelta(days=7)
RECENT_USERS_LIMIT = 5


class TimeWindow(NamedTuple):
    start: datetime
    end: datetime


class DashboardQuery(NamedTuple):
    """Request-scoped dashboard parameters (already shape-validated by the route)."""

    date_range: str = DEFAULT_DATE_RANGE
    start_date: str | None = None
    end_date: str | None = None
    role: str = "all"
    search: str | None = None
    page: int = 1
    limit: int = 10


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_instant(value: str, field: str) -> datetime:
    """Parse an ISO 8601 date or datetime; naive values are UTC. Raises ValidationFailed."""
    text = (value or "").strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationFailed(
            f"{field} must be an ISO 8601 date or datetime",
            details=[{"field": field, "message": "Invalid date", "value": value}],
        ) from None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def resolve_window(
    date_range: str | None,
    start_date: str | None = None,
    end_date: str | None = None,
    now: datetime | None = None,
) -> TimeWindow:
    """
    Map the selector to [start, end]. 7/30/90 days end at now; unknown or missing means 30 days.
    custom uses startDate/endDate when given, else now-30d / now. An inverted custom window is rejected.
    """
    now = now or _utcnow()
    if date_range == CUSTOM_DATE_RANGE:
        start = parse_instant(start_date, "startDate") if start_date else now - timedelta(days=30)
        end = parse_instant(end_date, "endDate") if end_date else now
        if start > end:
            raise ValidationFailed(
                "startDate must be on or before endDate",
                details=[{"field": "startDate", "message": "startDate is after endDate"}],
            )
        return TimeWindow(start, end)
    days = DATE_RANGE_DAYS.get(date_range or DEFAULT_DATE_RANGE, DATE_RANGE_DAYS[DEFAULT_DATE_RANGE])
    return TimeWindow(now - timedelta(days=days), now)


def base_filter(window: TimeWindow) -> UserFilter:
    """Created within the window and active."""
    return UserFilter(created_from=window.start, created_to=window.end, active=True)


def build_user_filter(window: TimeWindow, role: str | None = None, search: str | None = None) -> UserFilter:
    """Base predicate plus an exact role clause (unless "all") and a name/email search clause."""
    f = base_filter(window)
    if role and role != "all":
        f = f.with_role(role)
    search = (search or "").strip()
    if search:
        f = f.with_search(search)
    return f


def _summary(u: UserRecord) -> UserSummary:
    return UserSummary(
        id=str(u.id),
        first_name=u.first_name,
        last_name=u.last_name,
        email=u.email,
        role=u.role,
        avatar=u.avatar or "",
        is_active=u.is_active,
        created_at=u.created_at,
        last_login=u.last_login,
    )


def _applied_filters(query: DashboardQuery) -> AppliedFilters:
    search = (query.search or "").strip()
    return AppliedFilters(date_range=query.date_range, role=query.role, search=search or None)


def build_dashboard(users: UserStore, query: DashboardQuery, now: datetime | None = None) -> DashboardResponse:
    """Overview, growth trend, recent users and the echoed filters for GET /dashboard."""
    now = now or _utcnow()
    window = resolve_window(query.date_range, query.start_date, query.end_date, now)
    in_window = base_filter(window)
    filtered = build_user_filter(window, query.role, query.search)

    role_distribution = users.count_by_role()
    users_in_range = users.count(filtered)
    new_users = users.count(in_window)
    active_users = users.count(UserFilter(active=True, last_login_from=now - ACTIVE_LOOKBACK))
    growth = users.daily_counts(in_window)
    recent = users.find(filtered, limit=RECENT_USERS_LIMIT)
    total_users = users.count(UserFilter(active=True))

    logger.debug(
        "Dashboard: window=%s..%s total=%s new=%s active=%s in_range=%s",
        window.start.isoformat(), window.end.isoformat(), total_users, new_users, active_users, users_in_range,
    )
    return DashboardResponse(
        overview=Overview(
            total_users=total_users,
            new_users=new_users,
            active_users=active_users,
            users_in_range=users_in_range,
            role_distribution=role_distribution,
        ),
        trends=Trends(
            period=Period(start=window.start, end=window.end),
            user_growth=[TrendPoint(date=day, count=n) for day, n in growth],
        ),
        recent_users=[_summary(u) for u in recent],
        filters=_applied_filters(query),
    )


def build_analytics(users: UserStore, query: DashboardQuery, now: datetime | None = None) -> AnalyticsResponse:
    """Paginated filtered user list plus per-role statistics over all active users."""
    now = now or _utcnow()
    window = resolve_window(query.date_range, query.start_date, query.end_date, now)
    filtered = build_user_filter(window, query.role, query.search)
    skip = (query.page - 1) * query.limit

    page_users = users.find(filtered, skip=skip, limit=query.limit)
    total = users.count(filtered)
    role_stats = users.role_stats(now - ACTIVE_LOOKBACK)

    return AnalyticsResponse(
        users=[_summary(u) for u in page_users],
        pagination=Pagination(
            page=query.page,
            limit=query.limit,
            total=total,
            pages=page_count(total, query.limit),
        ),
        statistics=Statistics(
            period=Period(start=window.start, end=window.end),
            role_stats=[
                RoleStatResponse(
                    role=s.role,
                    count=s.count,
                    avg_created_at=s.avg_created_at,
                    recent_login_count=s.recent_login_count,
                )
                for s in role_stats
            ],
            filters=_applied_filters(query),
        ),
    )
