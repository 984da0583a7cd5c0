"""Notice board model"""

from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, ForeignKey, Text
from sqlalchemy.orm import relationship

from campusdesk.domain import Audience, NoticePriority, Role
from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow


class Notice(Base):
    __tablename__ = "notices"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    target_audience = Column(SQLEnum(Audience), default=Audience.ALL, nullable=False)
    priority = Column(SQLEnum(NoticePriority), default=NoticePriority.MEDIUM, nullable=False)
    is_important = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Audience visibility is derived at read time from these two
    created_by_id = Column(GUID, nullable=True)
    created_by_role = Column(SQLEnum(Role), default=Role.ADMIN, nullable=False)

    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    reads = relationship("NoticeRead", back_populates="notice", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Notice {self.title[:30]}>"


class NoticeRead(Base):
    """One reader having opened one notice"""
    __tablename__ = "notice_reads"

    notice_id = Column(GUID, ForeignKey("notices.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(GUID, primary_key=True, index=True)
    read_at = Column(DateTime, default=utcnow, nullable=False)

    notice = relationship("Notice", back_populates="reads")

    def __repr__(self):
        return f"<NoticeRead {self.notice_id} by {self.user_id}>"
