"""
Leave Request Model

Filed by a student or faculty member; reviewed once (approve/reject).
Applicants are polymorphic (student or faculty), so `applicant_id`
carries no foreign key.
"""

from sqlalchemy import Column, String, Date, DateTime, Enum as SQLEnum, Text, Index

from campusdesk.domain import LeaveStatus, LeaveType, RequestType, Role
from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow


class LeaveRequest(Base):
    __tablename__ = "leave_requests"
    __table_args__ = (
        Index("ix_leave_requests_applicant", "applicant_id", "applicant_role"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    applicant_id = Column(GUID, nullable=False)
    applicant_role = Column(SQLEnum(Role), nullable=False)
    applicant_name = Column(String(255), nullable=True)

    request_type = Column(SQLEnum(RequestType), default=RequestType.LEAVE, nullable=False)
    leave_type = Column(SQLEnum(LeaveType), default=LeaveType.OTHER, nullable=False)
    from_date = Column(Date, nullable=False)
    to_date = Column(Date, nullable=False)
    reason = Column(Text, nullable=False)

    status = Column(SQLEnum(LeaveStatus), default=LeaveStatus.PENDING, nullable=False, index=True)
    remarks = Column(Text, default="")
    reviewed_by_id = Column(GUID, nullable=True)
    reviewed_by_role = Column(SQLEnum(Role), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def days(self) -> int:
        return (self.to_date - self.from_date).days + 1

    def __repr__(self):
        return f"<LeaveRequest {self.id} {self.status}>"
