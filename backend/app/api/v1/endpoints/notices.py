"""
Notice Board API Endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.domain import Audience
from app.api.deps import Actor, get_actor, require_admin, require_applicant
from app.core.database import get_db
from app.schemas import (
    NoticeCreate, NoticeUpdate, NoticeResponse, NoticeListResponse,
    NoticeFeedItem, NoticeFeedResponse, NoticeReadResponse,
)
from app.services.notice_service import NoticeService

router = APIRouter()


@router.get("", response_model=NoticeListResponse)
async def list_notices(
    target_audience: Optional[Audience] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    """Every notice (admin view)"""
    return await NoticeService(db).list(
        target_audience=target_audience, search=search, page=page, limit=limit
    )


@router.get("/feed", response_model=NoticeFeedResponse)
async def notice_feed(
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Notices visible to the caller, important first, each flagged read or unread"""
    feed = await NoticeService(db).feed(
        actor.role, viewer_id=actor.id, search=search, page=page, limit=limit
    )
    read_ids = feed.pop("read_ids")
    feed["items"] = [
        NoticeFeedItem.model_validate(notice).model_copy(update={"is_read": str(notice.id) in read_ids})
        for notice in feed["items"]
    ]
    return feed


@router.post("", response_model=NoticeResponse, status_code=201)
async def create_notice(
    payload: NoticeCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Faculty notices always target students"""
    return await NoticeService(db).create(payload.model_dump(), actor.id, actor.role)


@router.patch("/{notice_id}/read", response_model=NoticeReadResponse)
async def mark_notice_read(
    notice_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_applicant),
):
    """Idempotent: a second call keeps the first read time"""
    return await NoticeService(db).mark_read(notice_id, actor.id)


@router.get("/{notice_id}", response_model=NoticeResponse)
async def get_notice(notice_id: str, db: AsyncSession = Depends(get_db)):
    return await NoticeService(db).get(notice_id)


@router.put("/{notice_id}", response_model=NoticeResponse)
async def update_notice(
    notice_id: str,
    payload: NoticeUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return await NoticeService(db).update(
        notice_id, payload.model_dump(exclude_unset=True), actor.id, actor.role
    )


@router.delete("/{notice_id}")
async def delete_notice(
    notice_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    await NoticeService(db).delete(notice_id, actor.id, actor.role)
    return {"success": True, "message": "Notice deleted"}
