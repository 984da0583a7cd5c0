"""
Faculty API Endpoints
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.domain import EntityStatus
from app.api.deps import Actor, require_admin
from app.api.v1.endpoints.status_routes import add_status_routes
from app.core.database import get_db
from app.schemas import FacultyCreate, FacultyUpdate, FacultyResponse, PasswordReset
from app.services.people_service import FacultyService

router = APIRouter()


@router.get("", response_model=List[FacultyResponse])
async def list_faculty(
    department_id: Optional[str] = Query(None),
    status: Optional[EntityStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    return await FacultyService(db).list(department_id=department_id, status=status, search=search)


@router.post("", response_model=FacultyResponse, status_code=201)
async def create_faculty(
    payload: FacultyCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    """Subjects must come from the faculty member's department"""
    return await FacultyService(db).create(payload.model_dump())


@router.get("/{faculty_id}", response_model=FacultyResponse)
async def get_faculty(faculty_id: str, db: AsyncSession = Depends(get_db)):
    return await FacultyService(db).get(faculty_id)


@router.put("/{faculty_id}", response_model=FacultyResponse)
async def update_faculty(
    faculty_id: str,
    payload: FacultyUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    return await FacultyService(db).update(
        faculty_id, payload.model_dump(exclude_unset=True), changed_by_id=actor.id
    )


@router.get("/{faculty_id}/audit-log")
async def get_faculty_audit_log(faculty_id: str, db: AsyncSession = Depends(get_db)) -> List[Dict[str, Any]]:
    """Department and subject reassignments, newest first"""
    entries = await FacultyService(db).get_audit_log(faculty_id)
    return [
        {
            "id": entry.id,
            "field": entry.field,
            "old_value": entry.old_value,
            "new_value": entry.new_value,
            "changed_by_id": entry.changed_by_id,
            "created_at": entry.created_at.isoformat() if entry.created_at else None,
        }
        for entry in entries
    ]


@router.post("/{faculty_id}/reset-password")
async def reset_faculty_password(
    faculty_id: str,
    payload: PasswordReset,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    await FacultyService(db).reset_password(faculty_id, payload.password, payload.confirm_password)
    return {"success": True, "message": "Password reset successfully"}


add_status_routes(router, FacultyService, FacultyResponse)
