"""
Leave Request API Endpoints
- Apply (students, faculty)
- Review (faculty: student requests; admin: all)
- Stats & analytics
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.domain import LeaveStatus, Role
from app.api.deps import Actor, get_actor, require_admin, require_applicant
from app.core.database import get_db
from app.schemas import (
    LeaveApply, LeaveReview, LeaveResponse, LeaveStats, AdminLeaveStats, LeaveAnalytics,
)
from app.services.leave_service import LeaveService

router = APIRouter()


@router.post("", response_model=LeaveResponse, status_code=201)
async def apply_leave(
    payload: LeaveApply,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_applicant),
):
    """Rejects bad date ranges, short reasons and overlapping requests"""
    return await LeaveService(db).apply(actor.id, actor.role, payload.model_dump())


@router.get("", response_model=List[LeaveResponse])
async def list_leaves(
    status: Optional[LeaveStatus] = Query(None),
    applicant_role: Optional[Role] = Query(None),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    return await LeaveService(db).list(status=status, applicant_role=applicant_role)


@router.get("/my", response_model=List[LeaveResponse])
async def my_leaves(
    status: Optional[LeaveStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_applicant),
):
    return await LeaveService(db).my_leaves(actor.id, status=status)


@router.get("/faculty", response_model=List[LeaveResponse])
async def reviewable_leaves(
    status: Optional[LeaveStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Requests the caller may review"""
    return await LeaveService(db).reviewable(actor.role, status=status)


@router.get("/stats", response_model=LeaveStats)
async def leave_stats(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_applicant),
):
    return await LeaveService(db).stats(actor.id)


@router.get("/admin-stats", response_model=AdminLeaveStats)
async def admin_leave_stats(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    return await LeaveService(db).admin_stats()


@router.get("/analytics", response_model=LeaveAnalytics)
async def leave_analytics(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    return await LeaveService(db).analytics()


@router.get("/{leave_id}", response_model=LeaveResponse)
async def get_leave(leave_id: str, db: AsyncSession = Depends(get_db)):
    return await LeaveService(db).get(leave_id)


@router.patch("/{leave_id}/approve", response_model=LeaveResponse)
async def approve_leave(
    leave_id: str,
    payload: Optional[LeaveReview] = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    remarks = payload.remarks if payload else None
    return await LeaveService(db).approve(leave_id, actor.id, actor.role, remarks)


@router.patch("/{leave_id}/reject", response_model=LeaveResponse)
async def reject_leave(
    leave_id: str,
    payload: Optional[LeaveReview] = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Remarks are mandatory when rejecting"""
    remarks = payload.remarks if payload else None
    return await LeaveService(db).reject(leave_id, actor.id, actor.role, remarks)
