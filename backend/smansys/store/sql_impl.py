"""
SQLAlchemy store: one Session per request (see store.get_store). Rows are mapped to plain records
before leaving the store, so callers never hold session-bound ORM instances.
Unique violations surface as DuplicateKeyError; other DB errors propagate.
"""
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import case, extract, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from smansys.models.student import Student
from smansys.models.types import utcnow
from smansys.models.user import User
from smansys.store.base import (
    DuplicateKeyError,
    RoleStat,
    StudentFilter,
    StudentRecord,
    UserFilter,
    UserRecord,
)

logger = logging.getLogger(__name__)

_USER_FIELDS = (
    "id", "first_name", "last_name", "email", "password_hash", "role", "avatar", "bio", "phone",
    "address", "location", "district", "pincode", "state", "is_active", "last_login",
    "created_at", "updated_at",
)
_STUDENT_FIELDS = (
    "id", "first_name", "last_name", "roll_number", "class_name", "section", "gender", "date_of_birth",
    "address", "accommodation_type", "transport_needed", "location", "district", "pincode", "state",
    "contact_number", "email", "parent_details", "academic_details", "avatar", "is_active",
    "created_at", "updated_at",
)


def _like(term: str) -> str:
    """Case-insensitive substring pattern; LIKE wildcards in the term match literally."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _user_record(u: User) -> UserRecord:
    return UserRecord(**{name: getattr(u, name) for name in _USER_FIELDS})


def _student_record(s: Student) -> StudentRecord:
    data = {name: getattr(s, name) for name in _STUDENT_FIELDS}
    if data["academic_details"] is None:
        data["academic_details"] = {"rank": None, "points": 0}
    return StudentRecord(**data)


def _duplicate_key(e: IntegrityError, default: str) -> str:
    msg = str(getattr(e, "orig", e)).lower()
    if "roll_number" in msg:
        return "roll_number"
    if "email" in msg:
        return "email"
    return default


class SqlUserStore:
    def __init__(self, db: Session):
        self.db = db

    def _apply(self, q: Query, f: UserFilter) -> Query:
        if f.active is not None:
            q = q.filter(User.is_active.is_(f.active))
        if f.created_from is not None:
            q = q.filter(User.created_at >= f.created_from)
        if f.created_to is not None:
            q = q.filter(User.created_at <= f.created_to)
        if f.last_login_from is not None:
            q = q.filter(User.last_login >= f.last_login_from)
        if f.role is not None:
            q = q.filter(User.role == f.role)
        if f.search:
            pattern = _like(f.search)
            q = q.filter(or_(
                User.first_name.ilike(pattern, escape="\\"),
                User.last_name.ilike(pattern, escape="\\"),
                User.email.ilike(pattern, escape="\\"),
            ))
        return q

    def get(self, user_id: uuid.UUID) -> UserRecord | None:
        u = self.db.query(User).filter(User.id == user_id).first()
        return _user_record(u) if u else None

    def get_by_email(self, email: str) -> UserRecord | None:
        u = self.db.query(User).filter(User.email == (email or "").strip().lower()).first()
        return _user_record(u) if u else None

    def create(self, **fields) -> UserRecord:
        fields["email"] = fields["email"].strip().lower()
        user = User(**fields)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("User insert IntegrityError: %s", e)
            raise DuplicateKeyError(_duplicate_key(e, "email")) from e
        self.db.refresh(user)
        return _user_record(user)

    def update(self, user_id: uuid.UUID, **fields) -> UserRecord | None:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            return None
        if "email" in fields:
            fields["email"] = fields["email"].strip().lower()
        for name, value in fields.items():
            setattr(user, name, value)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("User update IntegrityError: %s", e)
            raise DuplicateKeyError(_duplicate_key(e, "email")) from e
        self.db.refresh(user)
        return _user_record(user)

    def count(self, user_filter: UserFilter) -> int:
        return self._apply(self.db.query(User), user_filter).count()

    def find(self, user_filter: UserFilter, skip: int = 0, limit: int | None = None) -> list[UserRecord]:
        q = self._apply(self.db.query(User), user_filter).order_by(User.created_at.desc())
        if skip:
            q = q.offset(skip)
        if limit is not None:
            q = q.limit(limit)
        return [_user_record(u) for u in q.all()]

    def count_by_role(self) -> dict[str, int]:
        rows = (
            self.db.query(User.role, func.count(User.id))
            .filter(User.is_active.is_(True))
            .group_by(User.role)
            .order_by(User.role)
            .all()
        )
        return {role: n for role, n in rows}

    def _utc_day(self):
        # SQLite holds naive UTC text; PostgreSQL timestamptz must be shifted out of the session TimeZone first
        if self.db.get_bind().dialect.name == "postgresql":
            return func.date(func.timezone("UTC", User.created_at))
        return func.date(User.created_at)

    def daily_counts(self, user_filter: UserFilter) -> list[tuple[str, int]]:
        day = self._utc_day()
        rows = (
            self._apply(self.db.query(day, func.count(User.id)), user_filter)
            .group_by(day)
            .order_by(day)
            .all()
        )
        return [(str(d), n) for d, n in rows]

    def _epoch(self):
        if self.db.get_bind().dialect.name == "sqlite":
            return func.strftime("%s", User.created_at)
        return extract("epoch", User.created_at)

    def role_stats(self, login_since: datetime) -> list[RoleStat]:
        recent_login = case((User.last_login >= login_since, 1), else_=0)
        rows = (
            self.db.query(
                User.role,
                func.count(User.id),
                func.avg(self._epoch()),
                func.sum(recent_login),
            )
            .filter(User.is_active.is_(True))
            .group_by(User.role)
            .order_by(User.role)
            .all()
        )
        return [
            RoleStat(
                role=role,
                count=n,
                avg_created_at=datetime.fromtimestamp(float(avg), tz=timezone.utc) if avg is not None else None,
                recent_login_count=int(recent or 0),
            )
            for role, n, avg, recent in rows
        ]


class SqlStudentStore:
    def __init__(self, db: Session):
        self.db = db

    def _apply(self, q: Query, f: StudentFilter) -> Query:
        if f.class_name is not None:
            q = q.filter(Student.class_name == f.class_name)
        if f.section is not None:
            q = q.filter(Student.section == f.section)
        if f.accommodation_type is not None:
            q = q.filter(Student.accommodation_type == f.accommodation_type)
        if f.transport_needed is not None:
            q = q.filter(Student.transport_needed.is_(f.transport_needed))
        if f.search:
            pattern = _like(f.search)
            q = q.filter(or_(
                Student.first_name.ilike(pattern, escape="\\"),
                Student.last_name.ilike(pattern, escape="\\"),
                Student.roll_number.ilike(pattern, escape="\\"),
            ))
        return q

    def get(self, student_id: uuid.UUID) -> StudentRecord | None:
        s = self.db.query(Student).filter(Student.id == student_id).first()
        return _student_record(s) if s else None

    def get_by_roll_number(self, roll_number: str) -> StudentRecord | None:
        s = self.db.query(Student).filter(Student.roll_number == roll_number).first()
        return _student_record(s) if s else None

    def create(self, **fields) -> StudentRecord:
        if fields.get("academic_details") is None:
            fields["academic_details"] = {"rank": None, "points": 0}
        student = Student(**fields)
        self.db.add(student)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("Student insert IntegrityError: %s", e)
            raise DuplicateKeyError(_duplicate_key(e, "roll_number")) from e
        self.db.refresh(student)
        return _student_record(student)

    def update(self, student_id: uuid.UUID, **fields) -> StudentRecord | None:
        student = self.db.query(Student).filter(Student.id == student_id).first()
        if not student:
            return None
        if "academic_details" in fields and fields["academic_details"] is None:
            fields.pop("academic_details")
        fields.setdefault("updated_at", utcnow())
        for name, value in fields.items():
            setattr(student, name, value)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("Student update IntegrityError: %s", e)
            raise DuplicateKeyError(_duplicate_key(e, "roll_number")) from e
        self.db.refresh(student)
        return _student_record(student)

    def delete(self, student_id: uuid.UUID) -> bool:
        student = self.db.query(Student).filter(Student.id == student_id).first()
        if not student:
            return False
        self.db.delete(student)
        self.db.commit()
        return True

    def count(self, student_filter: StudentFilter) -> int:
        return self._apply(self.db.query(Student), student_filter).count()

    def find(self, student_filter: StudentFilter, skip: int = 0, limit: int | None = None) -> list[StudentRecord]:
        q = self._apply(self.db.query(Student), student_filter).order_by(Student.created_at.desc())
        if skip:
            q = q.offset(skip)
        if limit is not None:
            q = q.limit(limit)
        return [_student_record(s) for s in q.all()]


class SqlStore:
    """User and student stores sharing one request-scoped Session."""

    def __init__(self, db: Session):
        self.db = db
        self.users = SqlUserStore(db)
        self.students = SqlStudentStore(db)
