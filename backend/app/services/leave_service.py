"""
Leave Service Layer

Apply, review and report on leave requests. Every rule the console
checks locally (date range, reason length, remarks on reject, transition
table) is re-checked here with the same helpers, plus the checks only the
server can make: overlapping requests and reviewer permissions.
"""

from typing import List, Optional, Dict, Any
from datetime import date, datetime

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.domain import LeaveStatus, LeaveType, RequestType, Role, enum_value
from campusdesk.exceptions import AuthorizationError, ResourceNotFoundError, ValidationError
from campusdesk.validation import validate_leave_dates, validate_reason, validate_remarks
from campusdesk.workflow import can_review, check_leave_transition
from app.core.config import settings
from app.core.logging_config import logger
from app.core.types import utcnow
from app.models import LeaveRequest


def _month_keys(today: date, months: int) -> List[tuple]:
    """(year, month) pairs for the last `months` months, oldest first"""
    keys = []
    year, month = today.year, today.month
    for _ in range(months):
        keys.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


class LeaveService:
    """Service for leave request operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, leave_id: str) -> LeaveRequest:
        leave = await self.db.get(LeaveRequest, leave_id)
        if not leave:
            raise ResourceNotFoundError("Leave request", leave_id)
        return leave

    # =====================================================
    # APPLY
    # =====================================================

    async def find_overlap(self, applicant_id: str, start: date, end: date) -> Optional[LeaveRequest]:
        """First non-rejected request of the applicant intersecting [start, end]"""
        result = await self.db.execute(
            select(LeaveRequest)
            .where(
                LeaveRequest.applicant_id == applicant_id,
                LeaveRequest.status != LeaveStatus.REJECTED,
                LeaveRequest.from_date <= end,
                LeaveRequest.to_date >= start,
            )
            .order_by(LeaveRequest.from_date)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def apply(
        self,
        applicant_id: str,
        applicant_role: Role,
        data: Dict[str, Any],
        today: Optional[date] = None,
    ) -> LeaveRequest:
        if enum_value(applicant_role) not in (Role.STUDENT.value, Role.FACULTY.value):
            raise AuthorizationError("Only students and faculty can apply for leave")

        start, end = validate_leave_dates(data.get("from_date"), data.get("to_date"), today)
        reason = validate_reason(data.get("reason"))

        overlapping = await self.find_overlap(applicant_id, start, end)
        if overlapping:
            raise ValidationError(
                f"You already have a leave request from {overlapping.from_date.isoformat()} "
                f"to {overlapping.to_date.isoformat()}",
                field="from_date",
            )

        leave = LeaveRequest(
            applicant_id=applicant_id,
            applicant_role=Role(enum_value(applicant_role)),
            applicant_name=data.get("applicant_name"),
            request_type=RequestType(enum_value(data.get("request_type") or RequestType.LEAVE)),
            leave_type=LeaveType(enum_value(data.get("leave_type") or LeaveType.OTHER)),
            from_date=start,
            to_date=end,
            reason=reason,
            status=LeaveStatus.PENDING,
            remarks="",
        )
        self.db.add(leave)
        await self.db.commit()
        logger.info(
            f"Leave applied by {enum_value(applicant_role)} {applicant_id}: {start} to {end}",
            extra={"event_type": "leave_applied", "leave_id": leave.id},
        )
        return leave

    # =====================================================
    # REVIEW
    # =====================================================

    async def _review(
        self,
        leave_id: str,
        target: LeaveStatus,
        reviewer_id: Optional[str],
        reviewer_role: Role,
        remarks: Optional[str],
    ) -> LeaveRequest:
        leave = await self.get(leave_id)
        if not can_review(reviewer_role, leave.applicant_role):
            raise AuthorizationError(
                f"A {enum_value(reviewer_role)} cannot review {enum_value(leave.applicant_role)} leave requests"
            )
        check_leave_transition(leave.status, target)

        previous = leave.status
        leave.status = target
        leave.remarks = (remarks or "").strip()
        leave.reviewed_by_id = reviewer_id
        leave.reviewed_by_role = Role(enum_value(reviewer_role))
        leave.reviewed_at = utcnow()
        await self.db.commit()

        logger.log_transition(
            "leave", str(leave.id), enum_value(previous), target.value,
            reviewer_role=enum_value(reviewer_role),
        )
        return leave

    async def approve(self, leave_id: str, reviewer_id: Optional[str], reviewer_role: Role,
                      remarks: Optional[str] = None) -> LeaveRequest:
        return await self._review(leave_id, LeaveStatus.APPROVED, reviewer_id, reviewer_role, remarks)

    async def reject(self, leave_id: str, reviewer_id: Optional[str], reviewer_role: Role,
                     remarks: Optional[str]) -> LeaveRequest:
        remarks = validate_remarks(remarks)
        return await self._review(leave_id, LeaveStatus.REJECTED, reviewer_id, reviewer_role, remarks)

    # =====================================================
    # LISTINGS
    # =====================================================

    async def list(
        self,
        status: Optional[str] = None,
        applicant_role: Optional[str] = None,
        applicant_id: Optional[str] = None,
    ) -> List[LeaveRequest]:
        stmt = select(LeaveRequest).order_by(LeaveRequest.created_at.desc())
        if status:
            stmt = stmt.where(LeaveRequest.status == LeaveStatus(status))
        if applicant_role:
            stmt = stmt.where(LeaveRequest.applicant_role == Role(applicant_role))
        if applicant_id:
            stmt = stmt.where(LeaveRequest.applicant_id == applicant_id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def my_leaves(self, applicant_id: str, status: Optional[str] = None) -> List[LeaveRequest]:
        return await self.list(status=status, applicant_id=applicant_id)

    async def reviewable(self, reviewer_role: Role, status: Optional[str] = None) -> List[LeaveRequest]:
        """Requests the reviewer may act on: student requests for faculty, everything for admins"""
        if enum_value(reviewer_role) == Role.ADMIN.value:
            return await self.list(status=status)
        if enum_value(reviewer_role) == Role.FACULTY.value:
            return await self.list(status=status, applicant_role=Role.STUDENT.value)
        raise AuthorizationError("Only faculty and admins can review leave requests")

    # =====================================================
    # STATS & ANALYTICS
    # =====================================================

    async def _status_counts(self, *conditions) -> Dict[str, int]:
        result = await self.db.execute(
            select(LeaveRequest.status, func.count(LeaveRequest.id))
            .where(*conditions)
            .group_by(LeaveRequest.status)
        )
        counts = {status.value: 0 for status in LeaveStatus}
        for status, total in result.all():
            counts[enum_value(status)] = total
        return counts

    async def stats(self, applicant_id: str) -> Dict[str, int]:
        counts = await self._status_counts(LeaveRequest.applicant_id == applicant_id)
        return {**counts, "total": sum(counts.values())}

    async def admin_stats(self) -> Dict[str, int]:
        result = await self.db.execute(
            select(LeaveRequest.applicant_role, func.count(LeaveRequest.id))
            .where(LeaveRequest.status == LeaveStatus.PENDING)
            .group_by(LeaveRequest.applicant_role)
        )
        pending_by_role = {enum_value(role): total for role, total in result.all()}
        counts = await self._status_counts()

        pending_faculty = pending_by_role.get(Role.FACULTY.value, 0)
        pending_student = pending_by_role.get(Role.STUDENT.value, 0)
        return {
            "pending_faculty_leaves": pending_faculty,
            "pending_student_leaves": pending_student,
            "total_pending": pending_faculty + pending_student,
            "total_approved": counts[LeaveStatus.APPROVED.value],
            "total_rejected": counts[LeaveStatus.REJECTED.value],
        }

    async def analytics(self, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or date.today()
        leaves = await self.list()

        counts = {status.value: 0 for status in LeaveStatus}
        by_role = {Role.STUDENT.value: 0, Role.FACULTY.value: 0}
        by_type: Dict[str, Dict[str, Any]] = {}
        months = _month_keys(today, settings.LEAVE_TREND_MONTHS)
        trend = {
            key: {"year": key[0], "month": key[1], "count": 0, "approved": 0, "rejected": 0}
            for key in months
        }

        for leave in leaves:
            status = enum_value(leave.status)
            counts[status] += 1
            by_role[enum_value(leave.applicant_role)] = by_role.get(enum_value(leave.applicant_role), 0) + 1

            leave_type = enum_value(leave.leave_type)
            bucket = by_type.setdefault(
                leave_type,
                {"leave_type": leave_type, "count": 0, "approved": 0, "rejected": 0, "pending": 0},
            )
            bucket["count"] += 1
            bucket[status] += 1

            created = leave.created_at or datetime.utcnow()
            month = trend.get((created.year, created.month))
            if month is not None:
                month["count"] += 1
                if status in ("approved", "rejected"):
                    month[status] += 1

        total = len(leaves)
        approved = counts[LeaveStatus.APPROVED.value]
        return {
            "overview": {
                "total": total,
                "approved": approved,
                "rejected": counts[LeaveStatus.REJECTED.value],
                "pending": counts[LeaveStatus.PENDING.value],
                "approval_rate": round(approved / total * 100, 1) if total else 0,
            },
            "by_role": by_role,
            "by_type": sorted(by_type.values(), key=lambda item: item["count"], reverse=True),
            "monthly_trend": [trend[key] for key in months],
            "recent": leaves[:settings.RECENT_LEAVES_LIMIT],
        }
