"""
People Service Layer
Student and faculty accounts: enrolment, subject assignment, password resets
"""

from typing import List, Optional, Dict, Any

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from campusdesk.domain import EntityStatus
from campusdesk.exceptions import ResourceNotFoundError, ValidationError
from campusdesk.validation import (
    default_semester_for_year, require_text, validate_password, validate_semester,
)
from app.core.logging_config import logger
from app.core.security import get_password_hash, initial_password
from app.models import Course, Department, Faculty, FacultyAuditLog, Student, Subject
from app.services.lifecycle import LifecycleService


class StudentService(LifecycleService):
    """Service for student operations"""

    model = Student
    label = "student"

    async def list(
        self,
        department_id: Optional[str] = None,
        course_id: Optional[str] = None,
        year: Optional[int] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Student]:
        stmt = select(Student).order_by(Student.roll_no)
        if department_id:
            stmt = stmt.where(Student.department_id == department_id)
        if course_id:
            stmt = stmt.where(Student.course_id == course_id)
        if year:
            stmt = stmt.where(Student.year == year)
        if status:
            stmt = stmt.where(Student.status == EntityStatus(status))
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                Student.name.ilike(pattern) | Student.roll_no.ilike(pattern) | Student.email.ilike(pattern)
            )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _resolve_enrolment(self, department_id: Optional[str], course_id: Optional[str]) -> Course:
        """The course must exist and belong to the chosen department"""
        if not department_id:
            raise ValidationError("Please select a department", field="department_id")
        if not course_id:
            raise ValidationError("Please select a course", field="course_id")
        if not await self.db.get(Department, department_id):
            raise ResourceNotFoundError("Department", department_id)
        course = await self.db.get(Course, course_id)
        if not course:
            raise ResourceNotFoundError("Course", course_id)
        if course.department_id != department_id:
            raise ValidationError("Selected course does not belong to the department", field="course_id")
        return course

    async def create(self, data: Dict[str, Any]) -> Student:
        course = await self._resolve_enrolment(data.get("department_id"), data.get("course_id"))
        roll_no = require_text(data.get("roll_no"), "Roll number", "roll_no").upper()
        email = require_text(data.get("email"), "Email", "email").lower()
        await self.ensure_unique("roll_no", roll_no)
        await self.ensure_unique("email", email)

        year = data.get("year") or 1
        semester = data.get("semester") or default_semester_for_year(year)
        semester = validate_semester(semester, course.total_semesters)

        password = data.get("password")
        if password:
            validate_password(password)

        student = Student(
            name=require_text(data.get("name"), "Name", "name"),
            email=email,
            roll_no=roll_no,
            phone=data.get("phone"),
            department_id=course.department_id,
            course_id=course.id,
            year=year,
            semester=semester,
            section=data.get("section") or "A",
            hashed_password=get_password_hash(password or initial_password(roll_no)),
        )
        self.db.add(student)
        await self.db.commit()
        logger.info(f"Enrolled student {roll_no} in {course.code}")
        return await self.get(student.id)

    async def update(self, student_id: str, data: Dict[str, Any]) -> Student:
        student = await self.get(student_id)

        department_id = data.get("department_id") or student.department_id
        course_id = data.get("course_id") or student.course_id
        course = await self._resolve_enrolment(department_id, course_id)

        year = data.get("year") or student.year
        if data.get("semester") is not None:
            semester = data["semester"]
        elif data.get("year") is not None and data["year"] != student.year:
            semester = default_semester_for_year(year)
        else:
            semester = student.semester
        semester = validate_semester(semester, course.total_semesters)

        if data.get("roll_no") is not None:
            roll_no = require_text(data["roll_no"], "Roll number", "roll_no").upper()
            await self.ensure_unique("roll_no", roll_no, exclude_id=student.id)
            student.roll_no = roll_no
        if data.get("email") is not None:
            email = data["email"].strip().lower()
            await self.ensure_unique("email", email, exclude_id=student.id)
            student.email = email
        if data.get("name") is not None:
            student.name = require_text(data["name"], "Name", "name")
        for field in ("phone", "section"):
            if field in data:
                setattr(student, field, data[field])

        student.department_id = course.department_id
        student.course_id = course.id
        student.year = year
        student.semester = semester

        await self.db.commit()
        return await self.get(student.id)

    async def reset_password(self, student_id: str, password: str,
                             confirm_password: Optional[str] = None) -> Student:
        validate_password(password, confirm_password)
        student = await self.get(student_id)
        student.hashed_password = get_password_hash(password)
        await self.db.commit()
        logger.info(f"Password reset for student {student.roll_no}")
        return student


class FacultyService(LifecycleService):
    """Service for faculty operations"""

    model = Faculty
    label = "faculty"

    def _query(self):
        return select(Faculty).options(selectinload(Faculty.subjects))

    async def list(
        self,
        department_id: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Faculty]:
        stmt = self._query().order_by(Faculty.name)
        if department_id:
            stmt = stmt.where(Faculty.department_id == department_id)
        if status:
            stmt = stmt.where(Faculty.status == EntityStatus(status))
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(Faculty.name.ilike(pattern) | Faculty.employee_id.ilike(pattern))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _require_department(self, department_id: Optional[str]) -> Department:
        if not department_id:
            raise ValidationError("Please select a department", field="department_id")
        department = await self.db.get(Department, department_id)
        if not department:
            raise ResourceNotFoundError("Department", department_id)
        return department

    async def _resolve_subjects(self, department_id: str, subject_ids: List[str]) -> List[Subject]:
        """Subjects must exist and come from the faculty member's department"""
        if not subject_ids:
            return []
        result = await self.db.execute(
            select(Subject)
            .options(selectinload(Subject.course))
            .where(Subject.id.in_(subject_ids))
        )
        subjects = list(result.scalars().all())
        found = {subject.id for subject in subjects}
        for subject_id in subject_ids:
            if subject_id not in found:
                raise ResourceNotFoundError("Subject", subject_id)
        for subject in subjects:
            if subject.department_id != department_id:
                raise ValidationError(
                    f"Subject {subject.code} does not belong to the selected department",
                    field="subject_ids",
                )
        return subjects

    async def create(self, data: Dict[str, Any]) -> Faculty:
        department = await self._require_department(data.get("department_id"))
        employee_id = require_text(data.get("employee_id"), "Employee ID", "employee_id").upper()
        email = require_text(data.get("email"), "Email", "email").lower()
        await self.ensure_unique("employee_id", employee_id)
        await self.ensure_unique("email", email)
        subjects = await self._resolve_subjects(department.id, data.get("subject_ids") or [])

        password = data.get("password")
        if password:
            validate_password(password)

        faculty = Faculty(
            name=require_text(data.get("name"), "Name", "name"),
            email=email,
            employee_id=employee_id,
            phone=data.get("phone"),
            department_id=department.id,
            designation=data.get("designation") or "Assistant Professor",
            qualification=data.get("qualification"),
            hashed_password=get_password_hash(password or initial_password(employee_id)),
            subjects=subjects,
        )
        self.db.add(faculty)
        await self.db.commit()
        logger.info(f"Created faculty {employee_id} with {len(subjects)} subjects")
        return await self.get(faculty.id)

    async def update(self, faculty_id: str, data: Dict[str, Any],
                     changed_by_id: Optional[str] = None) -> Faculty:
        faculty = await self.get(faculty_id)
        old_department = faculty.department_id
        old_subjects = sorted(faculty.subject_ids)

        department_id = faculty.department_id
        if data.get("department_id") is not None:
            department_id = (await self._require_department(data["department_id"])).id

        if data.get("subject_ids") is not None:
            subjects = await self._resolve_subjects(department_id, data["subject_ids"])
        elif department_id != old_department:
            # Subjects from the previous department no longer apply
            subjects = []
        else:
            subjects = list(faculty.subjects)

        if data.get("employee_id") is not None:
            employee_id = require_text(data["employee_id"], "Employee ID", "employee_id").upper()
            await self.ensure_unique("employee_id", employee_id, exclude_id=faculty.id)
            faculty.employee_id = employee_id
        if data.get("email") is not None:
            email = data["email"].strip().lower()
            await self.ensure_unique("email", email, exclude_id=faculty.id)
            faculty.email = email
        if data.get("name") is not None:
            faculty.name = require_text(data["name"], "Name", "name")
        for field in ("phone", "designation", "qualification"):
            if data.get(field) is not None:
                setattr(faculty, field, data[field])

        faculty.department_id = department_id
        faculty.subjects = subjects

        new_subjects = sorted(subject.id for subject in subjects)
        if department_id != old_department:
            self.db.add(FacultyAuditLog(
                faculty_id=faculty.id, changed_by_id=changed_by_id,
                field="department_id", old_value=old_department, new_value=department_id,
            ))
        if new_subjects != old_subjects:
            self.db.add(FacultyAuditLog(
                faculty_id=faculty.id, changed_by_id=changed_by_id,
                field="subject_ids", old_value=old_subjects, new_value=new_subjects,
            ))

        await self.db.commit()
        return await self.get(faculty.id)

    async def get_audit_log(self, faculty_id: str) -> List[FacultyAuditLog]:
        await self.get(faculty_id)
        result = await self.db.execute(
            select(FacultyAuditLog)
            .where(FacultyAuditLog.faculty_id == faculty_id)
            .order_by(FacultyAuditLog.created_at.desc())
        )
        return list(result.scalars().all())

    async def reset_password(self, faculty_id: str, password: str,
                             confirm_password: Optional[str] = None) -> Faculty:
        validate_password(password, confirm_password)
        faculty = await self.get(faculty_id)
        faculty.hashed_password = get_password_hash(password)
        await self.db.commit()
        logger.info(f"Password reset for faculty {faculty.employee_id}")
        return faculty
