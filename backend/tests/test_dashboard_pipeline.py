"""
Dashboard pipeline against both store backends: window resolution, filter building,
overview/trend/recent figures and analytics pagination and role stats.
"""
from datetime import datetime, timedelta, timezone

import pytest

from smansys.errors import ValidationFailed
from smansys.services.dashboard import (
    ACTIVE_LOOKBACK,
    DashboardQuery,
    build_analytics,
    build_dashboard,
    build_user_filter,
    resolve_window,
)
from smansys.store import UserFilter

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _ago(days=0, hours=0):
    return NOW - timedelta(days=days, hours=hours)


@pytest.fixture
def users(any_store):
    return any_store.users


@pytest.fixture
def populated(users):
    """Six active users across roles and ages, plus one disabled account."""
    rows = [
        ("Alice", "Admin", "alice@school.example.com", "admin", _ago(2), _ago(1), True),
        ("Mohan", "Manager", "mohan@school.example.com", "manager", _ago(5), _ago(10), True),
        ("Uma", "One", "uma@school.example.com", "user", _ago(5, hours=-1), _ago(3), True),
        ("Ravi", "Two", "ravi@school.example.com", "user", _ago(20), None, True),
        ("Sita", "Three", "sita@school.example.com", "user", _ago(60), _ago(2), True),
        ("Old", "Timer", "old@school.example.com", "user", _ago(200), None, True),
        ("Gone", "Away", "gone@school.example.com", "user", _ago(3), _ago(1), False),
    ]
    for first, last, email, role, created, login, active in rows:
        users.create(
            first_name=first,
            last_name=last,
            email=email,
            password_hash="x",
            role=role,
            created_at=created,
            last_login=login,
            is_active=active,
        )
    return users


# --- window and filter -------------------------------------------------------


@pytest.mark.parametrize("date_range,days", [("7days", 7), ("30days", 30), ("90days", 90), (None, 30), ("1year", 30)])
def test_resolve_window_presets(date_range, days):
    window = resolve_window(date_range, now=NOW)
    assert window.end == NOW
    assert window.start == NOW - timedelta(days=days)


def test_resolve_window_custom():
    window = resolve_window("custom", "2026-09-01", "2026-10-10T00:00:00Z", now=NOW)
    assert window.start == datetime(2026, 9, 1, tzinfo=timezone.utc)
    assert window.end == datetime(2026, 10, 10, tzinfo=timezone.utc)

    defaults = resolve_window("custom", now=NOW)
    assert defaults.start == NOW - timedelta(days=30)
    assert defaults.end == NOW


def test_resolve_window_custom_rejects_inverted_and_garbage():
    with pytest.raises(ValidationFailed):
        resolve_window("custom", "2026-10-10", "2026-09-01", now=NOW)
    with pytest.raises(ValidationFailed) as exc:
        resolve_window("custom", "yesterday", None, now=NOW)
    assert exc.value.details[0]["field"] == "startDate"


def test_build_user_filter_clauses():
    window = resolve_window("30days", now=NOW)
    f = build_user_filter(window, role="all", search="   ")
    assert f == UserFilter(created_from=window.start, created_to=window.end, active=True)

    f = build_user_filter(window, role="manager", search=" mo ")
    assert f.role == "manager"
    assert f.search == "mo"
    assert f.active is True


# --- dashboard ----------------------------------------------------------------


def test_dashboard_overview_last_7_days(populated):
    resp = build_dashboard(populated, DashboardQuery(date_range="7days"), now=NOW)
    ov = resp.overview
    assert ov.total_users == 6
    assert ov.new_users == 3
    assert ov.active_users == 3
    assert ov.users_in_range == 3
    assert ov.role_distribution == {"admin": 1, "manager": 1, "user": 4}

    growth = [(p.date, p.count) for p in resp.trends.user_growth]
    assert growth == [("2026-10-13", 2), ("2026-10-16", 1)]
    assert sum(n for _, n in growth) == ov.new_users
    assert resp.trends.period.start == NOW - timedelta(days=7)
    assert resp.filters.date_range == "7days"
    assert resp.filters.role == "all"


@pytest.mark.parametrize("date_range,expected_new", [("7days", 3), ("30days", 4), ("90days", 5)])
def test_new_users_grow_with_window_and_match_trend(populated, date_range, expected_new):
    resp = build_dashboard(populated, DashboardQuery(date_range=date_range), now=NOW)
    assert resp.overview.new_users == expected_new
    assert sum(p.count for p in resp.trends.user_growth) == expected_new
    # global figures do not depend on the window
    assert resp.overview.total_users == 6
    assert resp.overview.active_users == 3


def test_role_and_search_narrow_only_scoped_figures(populated):
    resp = build_dashboard(populated, DashboardQuery(date_range="30days", role="user"), now=NOW)
    assert resp.overview.users_in_range == 2
    assert [u.first_name for u in resp.recent_users] == ["Uma", "Ravi"]
    assert resp.overview.new_users == 4
    assert resp.overview.role_distribution == {"admin": 1, "manager": 1, "user": 4}

    resp = build_dashboard(populated, DashboardQuery(date_range="30days", search="ALICE"), now=NOW)
    assert resp.overview.users_in_range == 1
    assert [u.email for u in resp.recent_users] == ["alice@school.example.com"]
    assert resp.filters.search == "ALICE"


def test_recent_users_newest_first_and_capped(populated):
    for i in range(6):
        populated.create(
            first_name=f"New{i}",
            last_name="Joiner",
            email=f"new{i}@school.example.com",
            password_hash="x",
            created_at=_ago(hours=i + 1),
        )
    resp = build_dashboard(populated, DashboardQuery(date_range="7days"), now=NOW)
    assert [u.first_name for u in resp.recent_users] == ["New0", "New1", "New2", "New3", "New4"]


def test_disabled_users_excluded_everywhere(populated):
    resp = build_dashboard(populated, DashboardQuery(date_range="7days", search="gone"), now=NOW)
    assert resp.overview.users_in_range == 0
    assert resp.recent_users == []


def test_custom_window(populated):
    q = DashboardQuery(date_range="custom", start_date="2026-09-01", end_date="2026-10-10")
    resp = build_dashboard(populated, q, now=NOW)
    assert resp.overview.new_users == 1
    assert [(p.date, p.count) for p in resp.trends.user_growth] == [("2026-09-28", 1)]
    assert [u.first_name for u in resp.recent_users] == ["Ravi"]


def test_empty_store(users):
    resp = build_dashboard(users, DashboardQuery(), now=NOW)
    assert resp.overview.total_users == 0
    assert resp.overview.role_distribution == {}
    assert resp.trends.user_growth == []
    assert resp.recent_users == []


# --- analytics ----------------------------------------------------------------


def test_analytics_pagination(populated):
    resp = build_analytics(populated, DashboardQuery(date_range="90days", page=2, limit=2), now=NOW)
    assert [u.first_name for u in resp.users] == ["Mohan", "Ravi"]
    assert resp.pagination.total == 5
    assert resp.pagination.pages == 3
    assert resp.pagination.page == 2

    resp = build_analytics(populated, DashboardQuery(date_range="90days", page=10, limit=2), now=NOW)
    assert resp.users == []
    assert resp.pagination.total == 5
    assert resp.pagination.pages == 3
    assert resp.pagination.page == 10


def test_analytics_role_stats(populated):
    resp = build_analytics(populated, DashboardQuery(date_range="7days", role="admin"), now=NOW)
    stats = {s.role: s for s in resp.statistics.role_stats}
    assert [s.role for s in resp.statistics.role_stats] == ["admin", "manager", "user"]
    assert stats["admin"].count == 1
    assert stats["admin"].recent_login_count == 1
    assert stats["manager"].recent_login_count == 0
    assert stats["user"].count == 4
    assert stats["user"].recent_login_count == 2
    assert abs((stats["admin"].avg_created_at - _ago(2)).total_seconds()) < 1
    # role filter applies to the list, not to the stats
    assert [u.role for u in resp.users] == ["admin"]
    assert resp.statistics.filters.role == "admin"


def test_active_lookback_is_seven_days():
    assert ACTIVE_LOOKBACK == timedelta(days=7)


def test_filters_echo_the_trimmed_search(populated):
    resp = build_dashboard(populated, DashboardQuery(date_range="30days", search="  alice "), now=NOW)
    assert resp.filters.search == "alice"
    assert resp.overview.users_in_range == 1

    resp = build_analytics(populated, DashboardQuery(date_range="30days", search="   "), now=NOW)
    assert resp.statistics.filters.search is None
