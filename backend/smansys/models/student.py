"""
Student record: no relation to User. roll_number is unique across all students.
Parent and academic details are nested groups stored as JSON.
"""
import uuid
from datetime import date, datetime
from sqlalchemy import String, Boolean, Date, CheckConstraint
from sqlalchemy.types import JSON
from sqlalchemy.orm import Mapped, mapped_column

from smansys.database import Base
from smansys.models.types import UuidType, UtcDateTime, utcnow


class Student(Base):
    __tablename__ = "students"

    id: Mapped[uuid.UUID] = mapped_column(
        UuidType(), primary_key=True, default=uuid.uuid4
    )
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    roll_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    class_name: Mapped[str] = mapped_column("class", String(50), nullable=False, index=True)
    section: Mapped[str] = mapped_column(String(20), nullable=False)
    gender: Mapped[str] = mapped_column(String(10), nullable=False)  # Male | Female | Other
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    accommodation_type: Mapped[str] = mapped_column(String(20), nullable=False, default="Day Scholler")
    transport_needed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    address: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    district: Mapped[str | None] = mapped_column(String(100), nullable=True)
    pincode: Mapped[str | None] = mapped_column(String(10), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    contact_number: Mapped[str | None] = mapped_column(String(30), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    parent_details: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    academic_details: Mapped[dict | None] = mapped_column(JSON, nullable=True)  # {"rank": str, "points": int}
    avatar: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("gender IN ('Male', 'Female', 'Other')", name="students_gender_check"),
        CheckConstraint(
            "accommodation_type IN ('Day Scholler', 'Hosteller')", name="students_accommodation_type_check"
        ),
    )
