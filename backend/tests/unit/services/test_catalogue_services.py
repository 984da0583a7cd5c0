"""
Unit tests for the catalogue and people services
"""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.domain import DurationUnit, EntityStatus
from campusdesk.exceptions import (
    DependencyBreakdown, DependencyConflict, DuplicateResourceError, InvalidTransition, ValidationError,
)
from app.core.security import verify_password
from app.models import Course, Department, Faculty, Student, Subject
from app.services.academic_service import CourseService, DepartmentService, SubjectService
from app.services.lifecycle import dependency_breakdown
from app.services.people_service import FacultyService, StudentService


class TestDependencyBreakdown:
    """dependency_breakdown per entity type"""

    @pytest.mark.asyncio
    async def test_department_counts_everything(self, db_session: AsyncSession, department: Department,
                                                subject: Subject, student: Student, faculty: Faculty):
        breakdown = await dependency_breakdown(db_session, department)

        assert breakdown == DependencyBreakdown(courses=1, subjects=1, students=1, faculty=1)
        assert breakdown.total == 4

    @pytest.mark.asyncio
    async def test_faculty_without_subjects(self, db_session: AsyncSession, faculty: Faculty):
        breakdown = await dependency_breakdown(db_session, faculty)

        assert breakdown.total == 0

    @pytest.mark.asyncio
    async def test_subject_taught_through_assignment_table(self, db_session: AsyncSession,
                                                           faculty: Faculty, subject: Subject):
        await FacultyService(db_session).update(faculty.id, {'subject_ids': [subject.id]})

        breakdown = await dependency_breakdown(db_session, subject)

        assert breakdown.faculty == 1


class TestLifecycle:
    """Status lifecycle shared by the services"""

    @pytest.mark.asyncio
    async def test_delete_conflict_carries_breakdown(self, db_session: AsyncSession, course: Course,
                                                     student: Student):
        with pytest.raises(DependencyConflict) as exc_info:
            await CourseService(db_session).delete(course.id)

        conflict = exc_info.value
        assert conflict.entity_type == 'course'
        assert conflict.dependencies.students == 1
        assert conflict.details['dependencies'] == {'courses': 0, 'subjects': 0, 'students': 1, 'faculty': 0}

    @pytest.mark.asyncio
    async def test_activate_active_record(self, db_session: AsyncSession, department: Department):
        with pytest.raises(InvalidTransition) as exc_info:
            await DepartmentService(db_session).activate(department.id)

        assert exc_info.value.message == 'Department is already active'

    @pytest.mark.asyncio
    async def test_deactivate_then_activate(self, db_session: AsyncSession, department: Department):
        service = DepartmentService(db_session)

        assert (await service.deactivate(department.id)).status == EntityStatus.INACTIVE
        assert (await service.activate(department.id)).status == EntityStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_status_filter(self, db_session: AsyncSession, department: Department,
                                 other_department: Department):
        service = DepartmentService(db_session)
        await service.toggle_status(other_department.id)

        inactive = await service.list(status='inactive')

        assert [item.code for item in inactive] == ['MECH']


class TestAcademicServices:
    """Department, course and subject rules"""

    @pytest.mark.asyncio
    async def test_duplicate_code_on_update(self, db_session: AsyncSession, department: Department,
                                            other_department: Department):
        with pytest.raises(DuplicateResourceError):
            await DepartmentService(db_session).update(other_department.id, {'code': 'cse'})

    @pytest.mark.asyncio
    async def test_switch_to_semester_units(self, db_session: AsyncSession, course: Course, subject: Subject):
        service = CourseService(db_session)

        # 4 semesters leaves room for the semester 3 subject
        updated = await service.update(course.id, {'duration_unit': DurationUnit.SEMESTER})
        assert updated.total_semesters == 4

        with pytest.raises(ValidationError):
            await service.update(course.id, {'duration_value': 2})

    @pytest.mark.asyncio
    async def test_subject_moves_to_shorter_course(self, db_session: AsyncSession, department: Department,
                                                   subject: Subject):
        short = await CourseService(db_session).create({
            'name': 'Diploma', 'code': 'DIP', 'department_id': department.id,
            'duration_value': 1, 'duration_unit': 'year',
        })

        with pytest.raises(ValidationError) as exc_info:
            await SubjectService(db_session).update(subject.id, {'course_id': short.id})

        assert exc_info.value.message == 'Semester cannot exceed 2 for this course'

    @pytest.mark.asyncio
    async def test_subject_without_course(self, db_session: AsyncSession):
        with pytest.raises(ValidationError) as exc_info:
            await SubjectService(db_session).create({'name': 'Maths', 'code': 'MA1', 'semester': 1})

        assert exc_info.value.field == 'course_id'


class TestPeopleServices:
    """Student and faculty accounts"""

    @pytest.mark.asyncio
    async def test_initial_password_is_roll_number(self, db_session: AsyncSession, course: Course):
        student = await StudentService(db_session).create({
            'name': 'Asha Rao', 'email': 'Asha@Example.com', 'roll_no': '22cse010',
            'department_id': course.department_id, 'course_id': course.id, 'year': 1,
        })

        assert student.email == 'asha@example.com'
        assert student.semester == 1
        assert verify_password('22CSE010', student.hashed_password)

    @pytest.mark.asyncio
    async def test_faculty_audit_records_actor(self, db_session: AsyncSession, faculty: Faculty,
                                               subject: Subject):
        service = FacultyService(db_session)
        await service.update(faculty.id, {'subject_ids': [subject.id]}, changed_by_id='admin-7')

        entries = await service.get_audit_log(faculty.id)

        assert len(entries) == 1
        assert entries[0].changed_by_id == 'admin-7'
        assert entries[0].new_value == [subject.id]
