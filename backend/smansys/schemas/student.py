"""
Student schemas. PUT takes the same payload as POST; optional fields it omits are left unchanged.
"class" is a Python keyword, so the attribute is class_name with wire name "class".
"""
from datetime import date, datetime
from typing import Literal

from pydantic import EmailStr, Field, field_validator

from smansys.schemas.common import CamelModel, Pagination

Gender = Literal["Male", "Female", "Other"]
AccommodationType = Literal["Day Scholler", "Hosteller"]


class ParentDetails(CamelModel):
    father_name: str | None = None
    father_contact: str | None = None
    father_occupation: str | None = None
    mother_name: str | None = None
    mother_contact: str | None = None
    annual_income: float | None = None


class AcademicDetails(CamelModel):
    rank: str | None = None
    points: int = 0


class StudentPayload(CamelModel):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    roll_number: str = Field(min_length=1, max_length=50)
    class_name: str = Field(min_length=1, max_length=50, alias="class")
    section: str = Field(min_length=1, max_length=20)
    gender: Gender
    date_of_birth: date
    accommodation_type: AccommodationType = "Day Scholler"
    transport_needed: bool = False
    address: str = Field(min_length=1, max_length=200)
    location: str | None = None
    district: str | None = None
    pincode: str | None = None
    state: str | None = None
    contact_number: str | None = None
    email: EmailStr | None = None
    parent_details: ParentDetails | None = None
    academic_details: AcademicDetails | None = None
    avatar: str | None = None

    @field_validator("first_name", "last_name", "roll_number", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    def to_fields(self) -> dict:
        """Store fields (snake_case); nested groups as plain dicts."""
        data = self.model_dump()
        if data["avatar"] is None:
            data["avatar"] = ""
        return data

    def update_fields(self) -> dict:
        """Only the fields the client sent; omitted optional fields keep their stored values."""
        full = self.model_dump()
        data = {name: full[name] for name in self.model_fields_set}
        if "avatar" in data and data["avatar"] is None:
            data["avatar"] = ""
        return data


class StudentResponse(CamelModel):
    id: str
    first_name: str
    last_name: str
    roll_number: str
    class_name: str = Field(alias="class")
    section: str
    gender: str
    date_of_birth: date
    accommodation_type: str
    transport_needed: bool
    address: str
    location: str | None = None
    district: str | None = None
    pincode: str | None = None
    state: str | None = None
    contact_number: str | None = None
    email: str | None = None
    parent_details: ParentDetails | None = None
    academic_details: AcademicDetails
    avatar: str = ""
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class StudentEnvelope(CamelModel):
    data: StudentResponse


class StudentMessageEnvelope(CamelModel):
    message: str
    data: StudentResponse


class StudentListResponse(CamelModel):
    data: list[StudentResponse]
    pagination: Pagination


def student_to_response(s) -> StudentResponse:
    return StudentResponse(
        id=str(s.id),
        first_name=s.first_name,
        last_name=s.last_name,
        roll_number=s.roll_number,
        class_name=s.class_name,
        section=s.section,
        gender=s.gender,
        date_of_birth=s.date_of_birth,
        accommodation_type=s.accommodation_type,
        transport_needed=s.transport_needed,
        address=s.address,
        location=s.location,
        district=s.district,
        pincode=s.pincode,
        state=s.state,
        contact_number=s.contact_number,
        email=s.email,
        parent_details=ParentDetails(**s.parent_details) if s.parent_details else None,
        academic_details=AcademicDetails(**(s.academic_details or {})),
        avatar=s.avatar or "",
        is_active=s.is_active,
        created_at=s.created_at,
        updated_at=s.updated_at,
    )
