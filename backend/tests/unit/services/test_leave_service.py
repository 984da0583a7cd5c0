"""
Unit tests for LeaveService
"""
from datetime import date, datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.domain import LeaveStatus, Role
from campusdesk.exceptions import AuthorizationError, InvalidTransition, ValidationError
from app.models import LeaveRequest
from app.services.leave_service import LeaveService, _month_keys

TODAY = date(2026, 3, 10)
REASON = 'Medical appointment in the city'


class TestMonthKeys:
    """Trend window helper"""

    def test_window_crosses_year(self):
        assert _month_keys(date(2026, 2, 15), 4) == [(2025, 11), (2025, 12), (2026, 1), (2026, 2)]

    def test_single_month(self):
        assert _month_keys(TODAY, 1) == [(2026, 3)]


class TestApply:
    """LeaveService.apply"""

    @pytest.mark.asyncio
    async def test_apply_uses_given_today(self, db_session: AsyncSession):
        service = LeaveService(db_session)

        leave = await service.apply(
            'stu-1', Role.STUDENT,
            {'from_date': '2026-03-10', 'to_date': '2026-03-12', 'reason': REASON},
            today=TODAY,
        )

        assert leave.status == LeaveStatus.PENDING
        assert leave.days == 3
        assert leave.from_date == date(2026, 3, 10)

    @pytest.mark.asyncio
    async def test_yesterday_is_past(self, db_session: AsyncSession):
        service = LeaveService(db_session)

        with pytest.raises(ValidationError) as exc_info:
            await service.apply(
                'stu-1', Role.STUDENT,
                {'from_date': '2026-03-09', 'to_date': '2026-03-12', 'reason': REASON},
                today=TODAY,
            )

        assert exc_info.value.field == 'from_date'

    @pytest.mark.asyncio
    async def test_date_checks_run_before_reason(self, db_session: AsyncSession):
        service = LeaveService(db_session)

        with pytest.raises(ValidationError) as exc_info:
            await service.apply(
                'stu-1', Role.STUDENT,
                {'from_date': '2026-03-12', 'to_date': '2026-03-11', 'reason': 'short'},
                today=TODAY,
            )

        assert exc_info.value.message == 'Start date cannot be after end date'

    @pytest.mark.asyncio
    async def test_touching_ranges_overlap(self, db_session: AsyncSession):
        service = LeaveService(db_session)
        await service.apply('fac-1', Role.FACULTY,
                            {'from_date': '2026-03-10', 'to_date': '2026-03-12', 'reason': REASON}, today=TODAY)

        with pytest.raises(ValidationError):
            await service.apply('fac-1', Role.FACULTY,
                                {'from_date': '2026-03-12', 'to_date': '2026-03-14', 'reason': REASON},
                                today=TODAY)

        # Adjacent days are fine
        leave = await service.apply('fac-1', Role.FACULTY,
                                    {'from_date': '2026-03-13', 'to_date': '2026-03-14', 'reason': REASON},
                                    today=TODAY)
        assert leave.status == LeaveStatus.PENDING

    @pytest.mark.asyncio
    async def test_admin_cannot_apply(self, db_session: AsyncSession):
        with pytest.raises(AuthorizationError):
            await LeaveService(db_session).apply(
                'adm-1', Role.ADMIN,
                {'from_date': '2026-03-10', 'to_date': '2026-03-12', 'reason': REASON},
                today=TODAY,
            )


class TestReview:
    """approve / reject transitions"""

    @pytest.fixture
    async def pending(self, db_session: AsyncSession) -> LeaveRequest:
        return await LeaveService(db_session).apply(
            'stu-1', Role.STUDENT,
            {'from_date': '2026-03-10', 'to_date': '2026-03-12', 'reason': REASON},
            today=TODAY,
        )

    @pytest.mark.asyncio
    async def test_reject_strips_remarks(self, db_session: AsyncSession, pending: LeaveRequest):
        leave = await LeaveService(db_session).reject(pending.id, 'adm-1', Role.ADMIN, '  Clashes with exams ')

        assert leave.status == LeaveStatus.REJECTED
        assert leave.remarks == 'Clashes with exams'
        assert leave.reviewed_by_role == Role.ADMIN

    @pytest.mark.asyncio
    async def test_empty_remarks_leave_request_untouched(self, db_session: AsyncSession,
                                                         pending: LeaveRequest):
        with pytest.raises(ValidationError):
            await LeaveService(db_session).reject(pending.id, 'adm-1', Role.ADMIN, '')

        assert pending.status == LeaveStatus.PENDING
        assert pending.reviewed_at is None

    @pytest.mark.asyncio
    async def test_rejected_cannot_be_approved(self, db_session: AsyncSession, pending: LeaveRequest):
        service = LeaveService(db_session)
        await service.reject(pending.id, 'adm-1', Role.ADMIN, 'Not enough notice')

        with pytest.raises(InvalidTransition) as exc_info:
            await service.approve(pending.id, 'adm-1', Role.ADMIN)

        assert exc_info.value.current_state == 'rejected'
        assert exc_info.value.target_state == 'approved'

    @pytest.mark.asyncio
    async def test_reviewable_by_role(self, db_session: AsyncSession, pending: LeaveRequest):
        service = LeaveService(db_session)
        await service.apply('fac-1', Role.FACULTY,
                            {'from_date': '2026-03-10', 'to_date': '2026-03-12', 'reason': REASON}, today=TODAY)

        assert len(await service.reviewable(Role.ADMIN)) == 2
        assert [leave.applicant_role for leave in await service.reviewable(Role.FACULTY)] == [Role.STUDENT]
        with pytest.raises(AuthorizationError):
            await service.reviewable(Role.STUDENT)


class TestAnalytics:
    """analytics() aggregation"""

    @pytest.mark.asyncio
    async def test_monthly_trend_buckets(self, db_session: AsyncSession):
        db_session.add_all([
            LeaveRequest(applicant_id='stu-1', applicant_role=Role.STUDENT, from_date=date(2026, 1, 5),
                         to_date=date(2026, 1, 6), reason=REASON, status=LeaveStatus.APPROVED,
                         created_at=datetime(2026, 1, 2, 9, 0)),
            LeaveRequest(applicant_id='stu-2', applicant_role=Role.STUDENT, from_date=date(2026, 3, 5),
                         to_date=date(2026, 3, 6), reason=REASON, status=LeaveStatus.REJECTED,
                         created_at=datetime(2026, 3, 1, 9, 0)),
            LeaveRequest(applicant_id='fac-1', applicant_role=Role.FACULTY, from_date=date(2026, 3, 8),
                         to_date=date(2026, 3, 8), reason=REASON, status=LeaveStatus.PENDING,
                         created_at=datetime(2026, 3, 2, 9, 0)),
            # Outside the six month window
            LeaveRequest(applicant_id='fac-2', applicant_role=Role.FACULTY, from_date=date(2025, 6, 1),
                         to_date=date(2025, 6, 1), reason=REASON, status=LeaveStatus.APPROVED,
                         created_at=datetime(2025, 5, 20, 9, 0)),
        ])
        await db_session.commit()

        analytics = await LeaveService(db_session).analytics(today=TODAY)

        assert analytics['overview']['total'] == 4
        assert analytics['overview']['approval_rate'] == 50.0
        trend = {(item['year'], item['month']): item for item in analytics['monthly_trend']}
        assert list(trend) == [(2025, 10), (2025, 11), (2025, 12), (2026, 1), (2026, 2), (2026, 3)]
        assert trend[(2026, 1)]['approved'] == 1
        assert trend[(2026, 3)] == {'year': 2026, 'month': 3, 'count': 2, 'approved': 0, 'rejected': 1}
        assert analytics['recent'][0].applicant_id == 'fac-1'

    @pytest.mark.asyncio
    async def test_empty_analytics(self, db_session: AsyncSession):
        analytics = await LeaveService(db_session).analytics(today=TODAY)

        assert analytics['overview'] == {
            'total': 0, 'approved': 0, 'rejected': 0, 'pending': 0, 'approval_rate': 0,
        }
        assert analytics['by_type'] == []
        assert analytics['recent'] == []
