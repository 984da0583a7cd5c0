"""
Course API Endpoints
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.domain import EntityStatus
from app.api.deps import Actor, require_admin
from app.api.v1.endpoints.status_routes import add_status_routes
from app.core.database import get_db
from app.schemas import CourseCreate, CourseUpdate, CourseResponse
from app.services.academic_service import CourseService

router = APIRouter()


@router.get("", response_model=List[CourseResponse])
async def list_courses(
    department_id: Optional[str] = Query(None),
    status: Optional[EntityStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Courses, optionally scoped to one department"""
    return await CourseService(db).list(department_id=department_id, status=status)


@router.post("", response_model=CourseResponse, status_code=201)
async def create_course(
    payload: CourseCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    return await CourseService(db).create(payload.model_dump())


@router.get("/{course_id}", response_model=CourseResponse)
async def get_course(course_id: str, db: AsyncSession = Depends(get_db)):
    return await CourseService(db).get(course_id)


@router.put("/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: str,
    payload: CourseUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    return await CourseService(db).update(course_id, payload.model_dump(exclude_unset=True))


add_status_routes(router, CourseService, CourseResponse)
