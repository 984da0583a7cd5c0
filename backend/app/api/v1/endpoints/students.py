"""
Student API Endpoints
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.domain import EntityStatus
from app.api.deps import Actor, require_admin
from app.api.v1.endpoints.status_routes import add_status_routes
from app.core.database import get_db
from app.schemas import StudentCreate, StudentUpdate, StudentResponse, PasswordReset
from app.services.people_service import StudentService

router = APIRouter()


@router.get("", response_model=List[StudentResponse])
async def list_students(
    department_id: Optional[str] = Query(None),
    course_id: Optional[str] = Query(None),
    year: Optional[int] = Query(None, ge=1),
    status: Optional[EntityStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    return await StudentService(db).list(
        department_id=department_id,
        course_id=course_id,
        year=year,
        status=status,
        search=search,
    )


@router.post("", response_model=StudentResponse, status_code=201)
async def create_student(
    payload: StudentCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    """Enrol a student; the initial password is the roll number unless given"""
    return await StudentService(db).create(payload.model_dump())


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(student_id: str, db: AsyncSession = Depends(get_db)):
    return await StudentService(db).get(student_id)


@router.put("/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: str,
    payload: StudentUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    return await StudentService(db).update(student_id, payload.model_dump(exclude_unset=True))


@router.post("/{student_id}/reset-password")
async def reset_student_password(
    student_id: str,
    payload: PasswordReset,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    await StudentService(db).reset_password(student_id, payload.password, payload.confirm_password)
    return {"success": True, "message": "Password reset successfully"}


add_status_routes(router, StudentService, StudentResponse)
