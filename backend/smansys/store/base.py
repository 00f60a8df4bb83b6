"""
Storage interface: user and student stores behind Protocols, so routes and the dashboard
pipeline never touch a concrete backend. Implementations: memory_impl (tests, demo) and sql_impl.

Filters are frozen value objects. A filter starts from a base predicate and gains explicit
optional clauses through with_* methods; a None field means "no clause".
"""
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import NamedTuple, Protocol

ROLES = ("admin", "manager", "user")
DEFAULT_ROLE = "user"


class StoreError(Exception):
    """Base class for store failures surfaced to the API layer."""


class DuplicateKeyError(StoreError):
    """Raised when a write would violate a unique key (users.email, students.roll_number)."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Duplicate value for unique key '{key}'")


@dataclass
class UserRecord:
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    password_hash: str
    role: str = DEFAULT_ROLE
    avatar: str = ""
    bio: str = ""
    phone: str = ""
    address: str = ""
    location: str = ""
    district: str = ""
    pincode: str = ""
    state: str = ""
    is_active: bool = True
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass
class StudentRecord:
    id: uuid.UUID
    first_name: str
    last_name: str
    roll_number: str
    class_name: str
    section: str
    gender: str
    date_of_birth: date
    address: str
    accommodation_type: str = "Day Scholler"
    transport_needed: bool = False
    location: str | None = None
    district: str | None = None
    pincode: str | None = None
    state: str | None = None
    contact_number: str | None = None
    email: str | None = None
    parent_details: dict | None = None
    academic_details: dict = field(default_factory=lambda: {"rank": None, "points": 0})
    avatar: str = ""
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class UserFilter:
    """Predicate over users. Every set field is ANDed; search is an OR over first/last name and email."""
    created_from: datetime | None = None
    created_to: datetime | None = None
    last_login_from: datetime | None = None
    active: bool | None = None
    role: str | None = None
    search: str | None = None

    def with_role(self, role: str) -> "UserFilter":
        return replace(self, role=role)

    def with_search(self, search: str) -> "UserFilter":
        return replace(self, search=search)


@dataclass(frozen=True)
class StudentFilter:
    """Predicate over students. search is an OR over first/last name and roll number."""
    search: str | None = None
    class_name: str | None = None
    section: str | None = None
    accommodation_type: str | None = None
    transport_needed: bool | None = None

    def with_search(self, search: str) -> "StudentFilter":
        return replace(self, search=search)

    def with_class(self, class_name: str) -> "StudentFilter":
        return replace(self, class_name=class_name)

    def with_section(self, section: str) -> "StudentFilter":
        return replace(self, section=section)

    def with_accommodation_type(self, accommodation_type: str) -> "StudentFilter":
        return replace(self, accommodation_type=accommodation_type)

    def with_transport_needed(self, transport_needed: bool) -> "StudentFilter":
        return replace(self, transport_needed=transport_needed)


class RoleStat(NamedTuple):
    """Per-role aggregate over active users."""

    role: str
    count: int
    avg_created_at: datetime | None
    recent_login_count: int  # users of this role with last_login >= the given cutoff


class UserStore(Protocol):
    """Credential store: users keyed by id, unique by (lower-cased) email."""

    def get(self, user_id: uuid.UUID) -> UserRecord | None:
        ...

    def get_by_email(self, email: str) -> UserRecord | None:
        ...

    def create(self, **fields) -> UserRecord:
        """Insert a user. Raises DuplicateKeyError("email") on collision."""
        ...

    def update(self, user_id: uuid.UUID, **fields) -> UserRecord | None:
        """Set the given fields; refresh updated_at. Returns None when the user does not exist."""
        ...

    def count(self, user_filter: UserFilter) -> int:
        ...

    def find(self, user_filter: UserFilter, skip: int = 0, limit: int | None = None) -> list[UserRecord]:
        """Matching users, newest first (created_at desc)."""
        ...

    def count_by_role(self) -> dict[str, int]:
        """Active users per role (no date or search scoping)."""
        ...

    def daily_counts(self, user_filter: UserFilter) -> list[tuple[str, int]]:
        """Matching users bucketed by UTC creation day: [("YYYY-MM-DD", n), ...] ascending."""
        ...

    def role_stats(self, login_since: datetime) -> list[RoleStat]:
        """Per-role count, mean created_at and recent-login count over all active users, ordered by role."""
        ...


class StudentStore(Protocol):
    """Record store: students keyed by id, unique by roll_number."""

    def get(self, student_id: uuid.UUID) -> StudentRecord | None:
        ...

    def get_by_roll_number(self, roll_number: str) -> StudentRecord | None:
        ...

    def create(self, **fields) -> StudentRecord:
        """Insert a student. Raises DuplicateKeyError("roll_number") on collision."""
        ...

    def update(self, student_id: uuid.UUID, **fields) -> StudentRecord | None:
        ...

    def delete(self, student_id: uuid.UUID) -> bool:
        """Hard delete. Returns False when the student does not exist."""
        ...

    def count(self, student_filter: StudentFilter) -> int:
        ...

    def find(self, student_filter: StudentFilter, skip: int = 0, limit: int | None = None) -> list[StudentRecord]:
        """Matching students, newest first (created_at desc)."""
        ...


class Store(Protocol):
    users: UserStore
    students: StudentStore
