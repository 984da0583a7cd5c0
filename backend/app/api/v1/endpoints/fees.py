"""
Fee Ledger API Endpoints
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.domain import FeeStatus
from app.api.deps import Actor, require_admin
from app.core.database import get_db
from app.schemas import FeeCreate, FeeUpdate, FeeResponse
from app.services.campus_service import FeeService

router = APIRouter()


@router.get("", response_model=List[FeeResponse])
async def list_fees(
    student_id: Optional[str] = Query(None),
    status: Optional[FeeStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await FeeService(db).list(student_id=student_id, status=status)


@router.post("", response_model=FeeResponse, status_code=201)
async def create_fee(
    payload: FeeCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    """Status follows the paid amount unless explicitly marked overdue"""
    return await FeeService(db).create(payload.model_dump())


@router.get("/{fee_id}", response_model=FeeResponse)
async def get_fee(fee_id: str, db: AsyncSession = Depends(get_db)):
    return await FeeService(db).get(fee_id)


@router.put("/{fee_id}", response_model=FeeResponse)
async def update_fee(
    fee_id: str,
    payload: FeeUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    return await FeeService(db).update(fee_id, payload.model_dump(exclude_unset=True))


@router.delete("/{fee_id}")
async def delete_fee(
    fee_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    await FeeService(db).delete(fee_id)
    return {"success": True, "message": "Fee deleted"}
