"""
Students API: list (search, exact filters, pagination), create, get, replace, delete.
All routes require manager or admin. Roll numbers are checked for collisions before writing
so the caller gets a friendly error; the store's unique key backs this up.
"""
import logging
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query, status

from smansys.api.deps import require_manager_or_admin
from smansys.errors import Conflict, NotFound
from smansys.schemas.common import MessageResponse, Pagination, page_count
from smansys.schemas.student import (
    StudentEnvelope,
    StudentListResponse,
    StudentMessageEnvelope,
    StudentPayload,
    student_to_response,
)
from smansys.services.auth import Identity
from smansys.store import DuplicateKeyError, Store, StudentFilter, get_store

router = APIRouter(prefix="/students", tags=["students"])
logger = logging.getLogger(__name__)

ROLL_NUMBER_TAKEN_MESSAGE = "A student with this roll number already exists"


def _roll_number_taken() -> Conflict:
    return Conflict(ROLL_NUMBER_TAKEN_MESSAGE, error="Validation Error")


def _student_not_found() -> NotFound:
    return NotFound("Student not found")


def build_student_filter(
    search: str | None = None,
    class_name: str | None = None,
    section: str | None = None,
    accommodation_type: str | None = None,
    transport_needed: bool | None = None,
) -> StudentFilter:
    """Empty filter plus one clause per supplied value."""
    f = StudentFilter()
    search = (search or "").strip()
    if search:
        f = f.with_search(search)
    if class_name:
        f = f.with_class(class_name)
    if section:
        f = f.with_section(section)
    if accommodation_type:
        f = f.with_accommodation_type(accommodation_type)
    if transport_needed is not None:
        f = f.with_transport_needed(transport_needed)
    return f


@router.get("", response_model=StudentListResponse)
def list_students(
    search: str | None = Query(None, max_length=100),
    class_name: str | None = Query(None, alias="class"),
    section: str | None = None,
    accommodation_type: Literal["Day Scholler", "Hosteller"] | None = Query(None, alias="accommodationType"),
    transport_needed: bool | None = Query(None, alias="transportNeeded"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    identity: Identity = Depends(require_manager_or_admin),
    store: Store = Depends(get_store),
):
    """Students newest first; skip = (page - 1) * limit."""
    f = build_student_filter(search, class_name, section, accommodation_type, transport_needed)
    total = store.students.count(f)
    items = store.students.find(f, skip=(page - 1) * limit, limit=limit)
    return StudentListResponse(
        data=[student_to_response(s) for s in items],
        pagination=Pagination(page=page, limit=limit, total=total, pages=page_count(total, limit)),
    )


@router.post("", response_model=StudentMessageEnvelope, status_code=status.HTTP_201_CREATED)
def create_student(
    data: StudentPayload,
    identity: Identity = Depends(require_manager_or_admin),
    store: Store = Depends(get_store),
):
    if store.students.get_by_roll_number(data.roll_number):
        raise _roll_number_taken()
    try:
        student = store.students.create(**data.to_fields())
    except DuplicateKeyError:
        logger.warning("Create student: duplicate roll_number on insert")
        raise _roll_number_taken()
    logger.info("Student created id=%s by user_id=%s", student.id, identity.id)
    return StudentMessageEnvelope(message="Student created successfully", data=student_to_response(student))


@router.get("/{student_id}", response_model=StudentEnvelope)
def get_student(
    student_id: uuid.UUID,
    identity: Identity = Depends(require_manager_or_admin),
    store: Store = Depends(get_store),
):
    student = store.students.get(student_id)
    if not student:
        raise _student_not_found()
    return StudentEnvelope(data=student_to_response(student))


@router.put("/{student_id}", response_model=StudentMessageEnvelope)
def update_student(
    student_id: uuid.UUID,
    data: StudentPayload,
    identity: Identity = Depends(require_manager_or_admin),
    store: Store = Depends(get_store),
):
    """Update a student from the sent fields. Keeping the same roll number is fine; taking another student's is not."""
    student = store.students.get(student_id)
    if not student:
        raise _student_not_found()
    if data.roll_number != student.roll_number:
        holder = store.students.get_by_roll_number(data.roll_number)
        if holder and holder.id != student_id:
            raise _roll_number_taken()
    try:
        updated = store.students.update(student_id, **data.update_fields())
    except DuplicateKeyError:
        logger.warning("Update student %s: duplicate roll_number on write", student_id)
        raise _roll_number_taken()
    if not updated:
        raise _student_not_found()
    return StudentMessageEnvelope(message="Student updated successfully", data=student_to_response(updated))


@router.delete("/{student_id}", response_model=MessageResponse)
def delete_student(
    student_id: uuid.UUID,
    identity: Identity = Depends(require_manager_or_admin),
    store: Store = Depends(get_store),
):
    if not store.students.delete(student_id):
        raise _student_not_found()
    logger.info("Student deleted id=%s by user_id=%s", student_id, identity.id)
    return MessageResponse(message="Student deleted successfully")
