"""
Subject API Endpoints
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.domain import EntityStatus
from app.api.deps import Actor, require_admin
from app.api.v1.endpoints.status_routes import add_status_routes
from app.core.database import get_db
from app.schemas import SubjectCreate, SubjectUpdate, SubjectFacultyAssign, SubjectResponse
from app.services.academic_service import SubjectService

router = APIRouter()


@router.get("", response_model=List[SubjectResponse])
async def list_subjects(
    course_id: Optional[str] = Query(None),
    department_id: Optional[str] = Query(None),
    semester: Optional[int] = Query(None, ge=1),
    faculty_id: Optional[str] = Query(None),
    status: Optional[EntityStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await SubjectService(db).list(
        course_id=course_id,
        department_id=department_id,
        status=status,
        semester=semester,
        faculty_id=faculty_id,
    )


@router.post("", response_model=SubjectResponse, status_code=201)
async def create_subject(
    payload: SubjectCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    """Semester must lie within the course's total semesters"""
    return await SubjectService(db).create(payload.model_dump())


@router.get("/{subject_id}", response_model=SubjectResponse)
async def get_subject(subject_id: str, db: AsyncSession = Depends(get_db)):
    return await SubjectService(db).get(subject_id)


@router.put("/{subject_id}", response_model=SubjectResponse)
async def update_subject(
    subject_id: str,
    payload: SubjectUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    return await SubjectService(db).update(subject_id, payload.model_dump(exclude_unset=True))


@router.patch("/{subject_id}/assign-faculty", response_model=SubjectResponse)
async def assign_faculty(
    subject_id: str,
    payload: SubjectFacultyAssign,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    """Assign (or clear, with null) the subject's faculty member"""
    return await SubjectService(db).assign_faculty(subject_id, payload.faculty_id)


add_status_routes(router, SubjectService, SubjectResponse)
