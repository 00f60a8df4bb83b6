"""
Dashboard and analytics response schemas.
"""
from datetime import datetime

from smansys.schemas.common import CamelModel, Pagination


class Period(CamelModel):
    start: datetime
    end: datetime


class TrendPoint(CamelModel):
    date: str  # YYYY-MM-DD (UTC day)
    count: int


class Overview(CamelModel):
    total_users: int  # all active users, no filters
    new_users: int  # active users created in the window
    active_users: int  # active users with last_login in the trailing 7 days
    users_in_range: int  # window + role + search filters
    role_distribution: dict[str, int]


class Trends(CamelModel):
    period: Period
    user_growth: list[TrendPoint]


class AppliedFilters(CamelModel):
    date_range: str
    role: str
    search: str | None = None


class UserSummary(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    role: str
    avatar: str = ""
    is_active: bool = True
    created_at: datetime | None = None
    last_login: datetime | None = None


class DashboardResponse(CamelModel):
    overview: Overview
    trends: Trends
    recent_users: list[UserSummary]
    filters: AppliedFilters


class RoleStatResponse(CamelModel):
    role: str
    count: int
    avg_created_at: datetime | None = None
    recent_login_count: int


class Statistics(CamelModel):
    period: Period
    role_stats: list[RoleStatResponse]
    filters: AppliedFilters


class AnalyticsResponse(CamelModel):
    users: list[UserSummary]
    pagination: Pagination
    statistics: Statistics
