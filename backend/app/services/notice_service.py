"""
Notice Board Service

Admin notices follow their target audience. Notices posted by faculty
always address students, whatever the request asked for. Visibility is
decided at read time by the shared `notice_visible_to` rule.
"""

from typing import List, Optional, Dict, Any, Set, Tuple
from datetime import datetime, timezone

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.domain import Audience, NoticePriority, Role, enum_value
from campusdesk.exceptions import AuthorizationError, ResourceNotFoundError
from campusdesk.validation import require_text
from campusdesk.workflow import filter_notices
from app.core.config import settings
from app.core.logging_config import logger
from app.core.types import utcnow
from app.models import Notice, NoticeRead


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _page_bounds(page: int, limit: Optional[int]) -> Tuple[int, int]:
    page = max(page or 1, 1)
    limit = min(max(limit or settings.NOTICE_PAGE_SIZE, 1), settings.NOTICE_MAX_PAGE_SIZE)
    return page, limit


class NoticeService:
    """Service for notice board operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, notice_id: str) -> Notice:
        notice = await self.db.get(Notice, notice_id)
        if not notice:
            raise ResourceNotFoundError("Notice", notice_id)
        return notice

    def _ensure_author(self, notice: Notice, actor_id: Optional[str], actor_role: Role) -> None:
        """Admins manage every notice; faculty only their own"""
        role = enum_value(actor_role)
        if role == Role.ADMIN.value:
            return
        if role == Role.FACULTY.value and notice.created_by_id and str(notice.created_by_id) == str(actor_id):
            return
        raise AuthorizationError("You can only manage notices you posted")

    async def create(self, data: Dict[str, Any], author_id: Optional[str], author_role: Role) -> Notice:
        role = enum_value(author_role)
        if role not in (Role.ADMIN.value, Role.FACULTY.value):
            raise AuthorizationError("Only admins and faculty can post notices")

        audience = Audience(enum_value(data.get("target_audience") or Audience.ALL))
        if role == Role.FACULTY.value:
            audience = Audience.STUDENTS

        notice = Notice(
            title=require_text(data.get("title"), "Title", "title"),
            content=require_text(data.get("content"), "Content", "content"),
            target_audience=audience,
            priority=NoticePriority(enum_value(data.get("priority") or NoticePriority.MEDIUM)),
            is_important=bool(data.get("is_important", False)),
            is_active=True,
            created_by_id=author_id,
            created_by_role=Role(role),
            expires_at=_naive_utc(data.get("expires_at")),
        )
        self.db.add(notice)
        await self.db.commit()
        logger.info(f"Notice posted by {role} for {audience.value}: {notice.title}")
        return notice

    async def update(self, notice_id: str, data: Dict[str, Any],
                     actor_id: Optional[str], actor_role: Role) -> Notice:
        notice = await self.get(notice_id)
        self._ensure_author(notice, actor_id, actor_role)

        if data.get("title") is not None:
            notice.title = require_text(data["title"], "Title", "title")
        if data.get("content") is not None:
            notice.content = require_text(data["content"], "Content", "content")
        if data.get("target_audience") is not None and notice.created_by_role != Role.FACULTY:
            notice.target_audience = Audience(enum_value(data["target_audience"]))
        if data.get("priority") is not None:
            notice.priority = NoticePriority(enum_value(data["priority"]))
        for field in ("is_important", "is_active"):
            if data.get(field) is not None:
                setattr(notice, field, bool(data[field]))
        if "expires_at" in data:
            notice.expires_at = _naive_utc(data["expires_at"])

        await self.db.commit()
        return notice

    async def delete(self, notice_id: str, actor_id: Optional[str], actor_role: Role) -> None:
        notice = await self.get(notice_id)
        self._ensure_author(notice, actor_id, actor_role)
        await self.db.delete(notice)
        await self.db.commit()
        logger.info(f"Deleted notice {notice_id}")

    async def mark_read(self, notice_id: str, reader_id: Optional[str]) -> NoticeRead:
        """Record that `reader_id` opened the notice; repeated calls keep the first read time"""
        notice = await self.get(notice_id)
        existing = await self.db.get(NoticeRead, (notice.id, reader_id))
        if existing:
            return existing

        read = NoticeRead(notice_id=notice.id, user_id=reader_id, read_at=utcnow())
        self.db.add(read)
        await self.db.commit()
        logger.debug(f"Notice {notice_id} read by {reader_id}")
        return read

    async def _read_ids(self, reader_id: Optional[str], notice_ids: List[str]) -> Set[str]:
        if not reader_id or not notice_ids:
            return set()
        result = await self.db.execute(
            select(NoticeRead.notice_id)
            .where(NoticeRead.user_id == reader_id, NoticeRead.notice_id.in_(notice_ids))
        )
        return {str(notice_id) for notice_id in result.scalars().all()}

    def _search(self, stmt, search: Optional[str]):
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(or_(func.lower(Notice.title).like(pattern), func.lower(Notice.content).like(pattern)))
        return stmt

    async def list(
        self,
        target_audience: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Admin listing: every notice, newest first"""
        page, limit = _page_bounds(page, limit)
        stmt = select(Notice)
        if target_audience:
            stmt = stmt.where(Notice.target_audience == Audience(target_audience))
        stmt = self._search(stmt, search)

        total = (await self.db.execute(select(func.count()).select_from(stmt.subquery()))).scalar() or 0
        result = await self.db.execute(
            stmt.order_by(Notice.created_at.desc()).offset((page - 1) * limit).limit(limit)
        )
        return {"items": list(result.scalars().all()), "total": total, "page": page, "limit": limit}

    async def feed(
        self,
        viewer_role: Role,
        viewer_id: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Notices visible to the viewer, important first.

        `read_ids` holds the ids the viewer has already opened; `unread`
        counts over the whole feed, not just the page.
        """
        page, limit = _page_bounds(page, limit)
        stmt = self._search(select(Notice).where(Notice.is_active == True), search)  # noqa: E712
        result = await self.db.execute(stmt)

        visible: List[Notice] = filter_notices(result.scalars().all(), viewer_role, viewer_id, now)
        read_ids = await self._read_ids(viewer_id, [notice.id for notice in visible])
        start = (page - 1) * limit
        return {
            "items": visible[start:start + limit],
            "read_ids": read_ids,
            "unread": sum(1 for notice in visible if str(notice.id) not in read_ids),
            "total": len(visible),
            "page": page,
            "limit": limit,
        }
