"""
Department API Endpoints
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.domain import EntityStatus
from app.api.deps import Actor, require_admin
from app.api.v1.endpoints.status_routes import add_status_routes
from app.core.database import get_db
from app.schemas import DepartmentCreate, DepartmentUpdate, DepartmentResponse
from app.services.academic_service import DepartmentService

router = APIRouter()


@router.get("", response_model=List[DepartmentResponse])
async def list_departments(
    status: Optional[EntityStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await DepartmentService(db).list(status=status)


@router.post("", response_model=DepartmentResponse, status_code=201)
async def create_department(
    payload: DepartmentCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    return await DepartmentService(db).create(payload.model_dump())


@router.get("/{department_id}", response_model=DepartmentResponse)
async def get_department(department_id: str, db: AsyncSession = Depends(get_db)):
    return await DepartmentService(db).get(department_id)


@router.put("/{department_id}", response_model=DepartmentResponse)
async def update_department(
    department_id: str,
    payload: DepartmentUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    return await DepartmentService(db).update(department_id, payload.model_dump(exclude_unset=True))


add_status_routes(router, DepartmentService, DepartmentResponse)
