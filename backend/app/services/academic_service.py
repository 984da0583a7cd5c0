"""
Academic Catalogue Service
Departments, courses and subjects with their status lifecycle
"""

from typing import List, Optional, Dict, Any

from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from campusdesk.domain import DurationUnit, EntityStatus, SubjectType, enum_value
from campusdesk.exceptions import ResourceNotFoundError, ValidationError
from campusdesk.validation import (
    normalize_code, require_text, total_semesters, validate_course_duration,
    validate_credits, validate_semester,
)
from app.core.logging_config import logger
from app.models import Course, Department, Faculty, Subject
from app.services.lifecycle import LifecycleService, dependency_breakdown


class DepartmentService(LifecycleService):
    """Service for department operations"""

    model = Department
    label = "department"

    async def list(self, status: Optional[str] = None) -> List[Department]:
        stmt = select(Department).order_by(Department.name)
        if status:
            stmt = stmt.where(Department.status == EntityStatus(status))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create(self, data: Dict[str, Any]) -> Department:
        code = normalize_code(data.get("code"))
        await self.ensure_unique("code", code)

        department = Department(
            name=require_text(data.get("name"), "Department name", "name"),
            code=code,
            description=data.get("description"),
            head_of_department_id=data.get("head_of_department_id"),
        )
        self.db.add(department)
        await self.db.commit()
        logger.info(f"Created department {code}")
        return await self.get(department.id)

    async def update(self, department_id: str, data: Dict[str, Any]) -> Department:
        department = await self.get(department_id)

        if data.get("code") is not None:
            code = normalize_code(data["code"])
            await self.ensure_unique("code", code, exclude_id=department.id)
            department.code = code
        if data.get("name") is not None:
            department.name = require_text(data["name"], "Department name", "name")
        for field in ("description", "head_of_department_id"):
            if field in data:
                setattr(department, field, data[field])

        await self.db.commit()
        return await self.get(department.id)


class CourseService(LifecycleService):
    """Service for course operations"""

    model = Course
    label = "course"

    async def list(self, department_id: Optional[str] = None, status: Optional[str] = None) -> List[Course]:
        stmt = select(Course).order_by(Course.name)
        if department_id:
            stmt = stmt.where(Course.department_id == department_id)
        if status:
            stmt = stmt.where(Course.status == EntityStatus(status))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _require_department(self, department_id: Optional[str]) -> Department:
        if not department_id:
            raise ValidationError("Please select a department", field="department_id")
        department = await self.db.get(Department, department_id)
        if not department:
            raise ResourceNotFoundError("Department", department_id)
        return department

    async def create(self, data: Dict[str, Any]) -> Course:
        department = await self._require_department(data.get("department_id"))
        code = normalize_code(data.get("code"))
        await self.ensure_unique("code", code)

        course = Course(
            name=require_text(data.get("name"), "Course name", "name"),
            code=code,
            department_id=department.id,
            duration_value=validate_course_duration(data.get("duration_value", 4)),
            duration_unit=DurationUnit(enum_value(data.get("duration_unit") or DurationUnit.YEAR)),
            description=data.get("description"),
        )
        self.db.add(course)
        await self.db.commit()
        logger.info(f"Created course {code} ({course.total_semesters} semesters)")
        return await self.get(course.id)

    async def update(self, course_id: str, data: Dict[str, Any]) -> Course:
        course = await self.get(course_id)

        if data.get("code") is not None:
            code = normalize_code(data["code"])
            await self.ensure_unique("code", code, exclude_id=course.id)
            course.code = code
        if data.get("name") is not None:
            course.name = require_text(data["name"], "Course name", "name")
        if data.get("department_id") is not None:
            department = await self._require_department(data["department_id"])
            if str(department.id) != str(course.department_id):
                # Students and subjects of this course belong to its current department
                dependencies = await dependency_breakdown(self.db, course)
                if dependencies.subjects + dependencies.students > 0:
                    raise ValidationError(
                        "Course department cannot be changed once subjects or students reference it",
                        field="department_id",
                    )
                course.department_id = department.id
        if "description" in data:
            course.description = data["description"]

        if data.get("duration_value") is not None or data.get("duration_unit") is not None:
            value = validate_course_duration(
                data["duration_value"] if data.get("duration_value") is not None else course.duration_value
            )
            unit = DurationUnit(enum_value(data.get("duration_unit") or course.duration_unit))
            bound = total_semesters(value, unit)

            # Existing subjects must still fit inside the shortened course
            result = await self.db.execute(
                select(func.max(Subject.semester)).where(Subject.course_id == course.id)
            )
            highest = result.scalar() or 0
            if highest > bound:
                raise ValidationError(
                    f"Course has subjects in semester {highest}; duration cannot be reduced below it",
                    field="duration_value",
                )
            course.duration_value = value
            course.duration_unit = unit

        await self.db.commit()
        return await self.get(course.id)


class SubjectService(LifecycleService):
    """Service for subject operations"""

    model = Subject
    label = "subject"

    def _query(self):
        return select(Subject).options(selectinload(Subject.course))

    async def list(
        self,
        course_id: Optional[str] = None,
        department_id: Optional[str] = None,
        status: Optional[str] = None,
        semester: Optional[int] = None,
        faculty_id: Optional[str] = None,
    ) -> List[Subject]:
        stmt = self._query().order_by(Subject.semester, Subject.name)
        if course_id:
            stmt = stmt.where(Subject.course_id == course_id)
        if department_id:
            stmt = stmt.join(Course, Subject.course_id == Course.id).where(Course.department_id == department_id)
        if status:
            stmt = stmt.where(Subject.status == EntityStatus(status))
        if semester:
            stmt = stmt.where(Subject.semester == semester)
        if faculty_id:
            stmt = stmt.where(Subject.faculty_id == faculty_id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _require_course(self, course_id: Optional[str]) -> Course:
        if not course_id:
            raise ValidationError("Please select a course", field="course_id")
        course = await self.db.get(Course, course_id)
        if not course:
            raise ResourceNotFoundError("Course", course_id)
        return course

    async def _require_faculty(self, faculty_id: Optional[str]) -> Optional[Faculty]:
        if not faculty_id:
            return None
        faculty = await self.db.get(Faculty, faculty_id)
        if not faculty:
            raise ResourceNotFoundError("Faculty", faculty_id)
        return faculty

    async def create(self, data: Dict[str, Any]) -> Subject:
        course = await self._require_course(data.get("course_id"))
        semester = validate_semester(data.get("semester"), course.total_semesters)
        credits = validate_credits(data.get("credits") or 3)
        code = normalize_code(data.get("code"))
        await self.ensure_unique("code", code)
        faculty = await self._require_faculty(data.get("faculty_id"))

        subject = Subject(
            name=require_text(data.get("name"), "Subject name", "name"),
            code=code,
            course_id=course.id,
            semester=semester,
            credits=credits,
            type=SubjectType(enum_value(data.get("type") or SubjectType.THEORY)),
            faculty_id=faculty.id if faculty else None,
            description=data.get("description"),
        )
        self.db.add(subject)
        await self.db.commit()
        logger.info(f"Created subject {code} in {course.code} semester {semester}")
        return await self.get(subject.id)

    async def update(self, subject_id: str, data: Dict[str, Any]) -> Subject:
        subject = await self.get(subject_id)

        course = subject.course
        if data.get("course_id") is not None and data["course_id"] != subject.course_id:
            course = await self._require_course(data["course_id"])

        # Re-check the bound whenever the course or semester changes
        semester = data.get("semester") if data.get("semester") is not None else subject.semester
        subject.semester = validate_semester(semester, course.total_semesters)
        subject.course_id = course.id
        subject.course = course

        if data.get("code") is not None:
            code = normalize_code(data["code"])
            await self.ensure_unique("code", code, exclude_id=subject.id)
            subject.code = code
        if data.get("name") is not None:
            subject.name = require_text(data["name"], "Subject name", "name")
        if data.get("credits") is not None:
            subject.credits = validate_credits(data["credits"])
        if data.get("type") is not None:
            subject.type = SubjectType(enum_value(data["type"]))
        if "faculty_id" in data:
            faculty = await self._require_faculty(data["faculty_id"])
            subject.faculty_id = faculty.id if faculty else None
        if "description" in data:
            subject.description = data["description"]

        await self.db.commit()
        return await self.get(subject.id)

    async def assign_faculty(self, subject_id: str, faculty_id: Optional[str]) -> Subject:
        subject = await self.get(subject_id)
        faculty = await self._require_faculty(faculty_id)
        if faculty and faculty.department_id != subject.department_id:
            raise ValidationError(
                "Faculty must belong to the subject's department", field="faculty_id"
            )
        subject.faculty_id = faculty.id if faculty else None
        await self.db.commit()
        logger.info(f"Subject {subject.code} assigned to faculty {faculty_id or '-'}")
        return await self.get(subject.id)
