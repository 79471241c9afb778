"""
Student record endpoints.

Handlers pass the principal to the service; the tenant used for every query
comes from it, never from the path, query string or body.
"""

import uuid
from typing import Annotated, List

from fastapi import APIRouter, Query, status

from src.api.deps import Students, guarded
from src.kernel.identity.principal import Principal
from src.schemas.student import (
    HoursResponse,
    MinutesRequest,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
)

router = APIRouter()


@router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def create_student(
    data: StudentCreate,
    students: Students,
    principal: Annotated[Principal, guarded("students.create")],
):
    """Create a student and the student's login account."""
    return await students.create(data, principal)


@router.get("", response_model=List[StudentResponse])
async def list_students(
    students: Students,
    principal: Annotated[Principal, guarded("students.list")],
    include_archived: bool = Query(False, alias="includeArchived"),
):
    return await students.list_students(principal, include_archived=include_archived)


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(
    student_id: uuid.UUID,
    students: Students,
    principal: Annotated[Principal, guarded("students.get")],
):
    return await students.get(student_id, principal)


@router.put("/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: uuid.UUID,
    data: StudentUpdate,
    students: Students,
    principal: Annotated[Principal, guarded("students.update")],
):
    return await students.update(student_id, data, principal)


@router.post("/{student_id}/archive", response_model=StudentResponse)
async def archive_student(
    student_id: uuid.UUID,
    students: Students,
    principal: Annotated[Principal, guarded("students.archive")],
):
    return await students.archive(student_id, principal)


@router.post("/{student_id}/restore", response_model=StudentResponse)
async def restore_student(
    student_id: uuid.UUID,
    students: Students,
    principal: Annotated[Principal, guarded("students.restore")],
):
    return await students.restore(student_id, principal)


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_student(
    student_id: uuid.UUID,
    students: Students,
    principal: Annotated[Principal, guarded("students.remove")],
):
    """Permanently delete a student and the student's account (administrators only)."""
    await students.remove(student_id, principal)


@router.get("/{student_id}/hours", response_model=HoursResponse)
async def get_hours(
    student_id: uuid.UUID,
    students: Students,
    principal: Annotated[Principal, guarded("students.hours.get")],
):
    student = await students.get(student_id, principal)
    return HoursResponse.from_minutes(student.minutes_purchased, student.minutes_used)


@router.post("/{student_id}/hours/purchase", response_model=StudentResponse)
async def purchase_hours(
    student_id: uuid.UUID,
    data: MinutesRequest,
    students: Students,
    principal: Annotated[Principal, guarded("students.hours.purchase")],
):
    return await students.purchase_minutes(student_id, data.minutes, principal)


@router.post("/{student_id}/hours/use", response_model=StudentResponse)
async def use_hours(
    student_id: uuid.UUID,
    data: MinutesRequest,
    students: Students,
    principal: Annotated[Principal, guarded("students.hours.consume")],
):
    """Record driving time; rejected with 409 if it exceeds the time purchased."""
    return await students.consume_minutes(student_id, data.minutes, principal)
