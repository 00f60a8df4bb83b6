"""
In-memory store: users and students held per instance, guarded by a lock (handlers run in a threadpool).
Used by the test suite and by STORAGE_BACKEND=memory for demos; nothing survives a restart.
Records are copied in and out so callers never share mutable state with the store.
"""
import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone

from smansys.store.base import (
    DuplicateKeyError,
    RoleStat,
    StudentFilter,
    StudentRecord,
    UserFilter,
    UserRecord,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _contains(value: str | None, term: str) -> bool:
    return term in (value or "").lower()


def _user_matches(u: UserRecord, f: UserFilter) -> bool:
    if f.active is not None and u.is_active != f.active:
        return False
    if f.created_from is not None and u.created_at < f.created_from:
        return False
    if f.created_to is not None and u.created_at > f.created_to:
        return False
    if f.last_login_from is not None and (u.last_login is None or u.last_login < f.last_login_from):
        return False
    if f.role is not None and u.role != f.role:
        return False
    if f.search:
        term = f.search.lower()
        if not (_contains(u.first_name, term) or _contains(u.last_name, term) or _contains(u.email, term)):
            return False
    return True


def _student_matches(s: StudentRecord, f: StudentFilter) -> bool:
    if f.class_name is not None and s.class_name != f.class_name:
        return False
    if f.section is not None and s.section != f.section:
        return False
    if f.accommodation_type is not None and s.accommodation_type != f.accommodation_type:
        return False
    if f.transport_needed is not None and s.transport_needed != f.transport_needed:
        return False
    if f.search:
        term = f.search.lower()
        if not (_contains(s.first_name, term) or _contains(s.last_name, term) or _contains(s.roll_number, term)):
            return False
    return True


def _page(items: list, skip: int, limit: int | None) -> list:
    end = None if limit is None else skip + limit
    return items[skip:end]


class MemoryUserStore:
    def __init__(self, lock: threading.Lock):
        self._lock = lock
        self._users: dict[uuid.UUID, UserRecord] = {}

    def get(self, user_id: uuid.UUID) -> UserRecord | None:
        with self._lock:
            u = self._users.get(user_id)
            return replace(u) if u else None

    def get_by_email(self, email: str) -> UserRecord | None:
        key = (email or "").strip().lower()
        with self._lock:
            for u in self._users.values():
                if u.email == key:
                    return replace(u)
        return None

    def create(self, **fields) -> UserRecord:
        now = _now()
        fields["email"] = fields["email"].strip().lower()
        fields.setdefault("created_at", now)
        fields.setdefault("updated_at", fields["created_at"])
        record = UserRecord(id=fields.pop("id", None) or uuid.uuid4(), **fields)
        with self._lock:
            if any(u.email == record.email for u in self._users.values()):
                raise DuplicateKeyError("email")
            self._users[record.id] = record
            return replace(record)

    def update(self, user_id: uuid.UUID, **fields) -> UserRecord | None:
        if "email" in fields:
            fields["email"] = fields["email"].strip().lower()
        with self._lock:
            current = self._users.get(user_id)
            if current is None:
                return None
            if "email" in fields and any(
                u.email == fields["email"] and u.id != user_id for u in self._users.values()
            ):
                raise DuplicateKeyError("email")
            fields.setdefault("updated_at", _now())
            updated = replace(current, **fields)
            self._users[user_id] = updated
            return replace(updated)

    def _matching(self, f: UserFilter) -> list[UserRecord]:
        with self._lock:
            return [replace(u) for u in self._users.values() if _user_matches(u, f)]

    def count(self, user_filter: UserFilter) -> int:
        return len(self._matching(user_filter))

    def find(self, user_filter: UserFilter, skip: int = 0, limit: int | None = None) -> list[UserRecord]:
        items = sorted(self._matching(user_filter), key=lambda u: u.created_at, reverse=True)
        return _page(items, skip, limit)

    def count_by_role(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for u in self._matching(UserFilter(active=True)):
            counts[u.role] = counts.get(u.role, 0) + 1
        return dict(sorted(counts.items()))

    def daily_counts(self, user_filter: UserFilter) -> list[tuple[str, int]]:
        buckets: dict[str, int] = {}
        for u in self._matching(user_filter):
            day = u.created_at.astimezone(timezone.utc).strftime("%Y-%m-%d")
            buckets[day] = buckets.get(day, 0) + 1
        return sorted(buckets.items())

    def role_stats(self, login_since: datetime) -> list[RoleStat]:
        grouped: dict[str, list[UserRecord]] = {}
        for u in self._matching(UserFilter(active=True)):
            grouped.setdefault(u.role, []).append(u)
        stats = []
        for role in sorted(grouped):
            users = grouped[role]
            mean_ts = sum(u.created_at.timestamp() for u in users) / len(users)
            stats.append(RoleStat(
                role=role,
                count=len(users),
                avg_created_at=datetime.fromtimestamp(mean_ts, tz=timezone.utc),
                recent_login_count=sum(1 for u in users if u.last_login and u.last_login >= login_since),
            ))
        return stats


class MemoryStudentStore:
    def __init__(self, lock: threading.Lock):
        self._lock = lock
        self._students: dict[uuid.UUID, StudentRecord] = {}

    def get(self, student_id: uuid.UUID) -> StudentRecord | None:
        with self._lock:
            s = self._students.get(student_id)
            return replace(s) if s else None

    def get_by_roll_number(self, roll_number: str) -> StudentRecord | None:
        with self._lock:
            for s in self._students.values():
                if s.roll_number == roll_number:
                    return replace(s)
        return None

    def create(self, **fields) -> StudentRecord:
        now = _now()
        fields.setdefault("created_at", now)
        fields.setdefault("updated_at", fields["created_at"])
        if fields.get("academic_details") is None:
            fields.pop("academic_details", None)
        record = StudentRecord(id=fields.pop("id", None) or uuid.uuid4(), **fields)
        with self._lock:
            if any(s.roll_number == record.roll_number for s in self._students.values()):
                raise DuplicateKeyError("roll_number")
            self._students[record.id] = record
            return replace(record)

    def update(self, student_id: uuid.UUID, **fields) -> StudentRecord | None:
        with self._lock:
            current = self._students.get(student_id)
            if current is None:
                return None
            if "roll_number" in fields and any(
                s.roll_number == fields["roll_number"] and s.id != student_id for s in self._students.values()
            ):
                raise DuplicateKeyError("roll_number")
            if "academic_details" in fields and fields["academic_details"] is None:
                fields.pop("academic_details")
            fields.setdefault("updated_at", _now())
            updated = replace(current, **fields)
            self._students[student_id] = updated
            return replace(updated)

    def delete(self, student_id: uuid.UUID) -> bool:
        with self._lock:
            return self._students.pop(student_id, None) is not None

    def _matching(self, f: StudentFilter) -> list[StudentRecord]:
        with self._lock:
            return [replace(s) for s in self._students.values() if _student_matches(s, f)]

    def count(self, student_filter: StudentFilter) -> int:
        return len(self._matching(student_filter))

    def find(self, student_filter: StudentFilter, skip: int = 0, limit: int | None = None) -> list[StudentRecord]:
        items = sorted(self._matching(student_filter), key=lambda s: s.created_at, reverse=True)
        return _page(items, skip, limit)


class MemoryStore:
    """Both stores over one lock. Create one per app (or per test)."""

    def __init__(self):
        lock = threading.Lock()
        self.users = MemoryUserStore(lock)
        self.students = MemoryStudentStore(lock)
