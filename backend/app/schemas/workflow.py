from pydantic import BaseModel, Field, ConfigDict
from typing import Any, Dict, List, Optional
from datetime import date, datetime

from campusdesk.domain import (
    Audience, LeaveStatus, LeaveType, NoticePriority, RequestType, Role,
)


# ==========================================
# Leave requests
# ==========================================

class LeaveApply(BaseModel):
    leave_type: LeaveType = LeaveType.OTHER
    request_type: RequestType = RequestType.LEAVE
    # Plain strings so date problems surface as the shared validation messages
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    reason: str = ""
    applicant_name: Optional[str] = None


class LeaveReview(BaseModel):
    remarks: Optional[str] = None


class LeaveResponse(BaseModel):
    id: str
    applicant_id: str
    applicant_role: Role
    applicant_name: Optional[str] = None
    request_type: RequestType
    leave_type: LeaveType
    from_date: date
    to_date: date
    days: int
    reason: str
    status: LeaveStatus
    remarks: Optional[str] = ""
    reviewed_by_id: Optional[str] = None
    reviewed_by_role: Optional[Role] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LeaveStats(BaseModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    total: int = 0


class AdminLeaveStats(BaseModel):
    pending_faculty_leaves: int = 0
    pending_student_leaves: int = 0
    total_pending: int = 0
    total_approved: int = 0
    total_rejected: int = 0


class LeaveAnalytics(BaseModel):
    overview: Dict[str, Any]
    by_role: Dict[str, int]
    by_type: List[Dict[str, Any]]
    monthly_trend: List[Dict[str, Any]]
    recent: List[LeaveResponse]


# ==========================================
# Notices
# ==========================================

class NoticeCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    target_audience: Audience = Audience.ALL
    priority: NoticePriority = NoticePriority.MEDIUM
    is_important: bool = False
    expires_at: Optional[datetime] = None


class NoticeUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, min_length=1)
    target_audience: Optional[Audience] = None
    priority: Optional[NoticePriority] = None
    is_important: Optional[bool] = None
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None


class NoticeResponse(BaseModel):
    id: str
    title: str
    content: str
    target_audience: Audience
    priority: NoticePriority
    is_important: bool
    is_active: bool
    created_by_id: Optional[str] = None
    created_by_role: Role
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class NoticeListResponse(BaseModel):
    items: List[NoticeResponse]
    total: int
    page: int
    limit: int


class NoticeFeedItem(NoticeResponse):
    is_read: bool = False


class NoticeFeedResponse(BaseModel):
    items: List[NoticeFeedItem]
    total: int
    unread: int = 0
    page: int
    limit: int


class NoticeReadResponse(BaseModel):
    notice_id: str
    user_id: str
    read_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==========================================
# Events
# ==========================================

class EventPublish(BaseModel):
    topic: str = Field(..., min_length=1, max_length=100)
    payload: Dict[str, Any] = {}
