"""
Academic Catalogue Models
- Department owns Courses
- Course owns Subjects (semester bounded by the course's total semesters)
- Subject may be taught by one Faculty member
"""

from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Integer, Text, ForeignKey, Table
from sqlalchemy.orm import relationship

from campusdesk.domain import DurationUnit, EntityStatus, SubjectType
from campusdesk.validation import total_semesters
from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow


# Faculty <-> Subject teaching assignments
faculty_subjects = Table(
    "faculty_subjects",
    Base.metadata,
    Column("faculty_id", GUID, ForeignKey("faculty.id", ondelete="CASCADE"), primary_key=True),
    Column("subject_id", GUID, ForeignKey("subjects.id", ondelete="CASCADE"), primary_key=True),
)


class Department(Base):
    """Academic department"""
    __tablename__ = "departments"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    code = Column(String(20), unique=True, nullable=False, index=True)  # e.g., CSE
    description = Column(Text, nullable=True)
    head_of_department_id = Column(GUID, nullable=True)

    status = Column(SQLEnum(EntityStatus), default=EntityStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    courses = relationship("Course", back_populates="department", passive_deletes="all")
    students = relationship("Student", back_populates="department", passive_deletes="all")
    faculty = relationship("Faculty", back_populates="department", passive_deletes="all")

    def __repr__(self):
        return f"<Department {self.code}>"


class Course(Base):
    """Degree programme offered by a department"""
    __tablename__ = "courses"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    department_id = Column(GUID, ForeignKey("departments.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(20), unique=True, nullable=False, index=True)  # e.g., BTECH-CSE
    description = Column(Text, nullable=True)

    duration_value = Column(Integer, nullable=False, default=4)
    duration_unit = Column(SQLEnum(DurationUnit), default=DurationUnit.YEAR, nullable=False)

    status = Column(SQLEnum(EntityStatus), default=EntityStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    department = relationship("Department", back_populates="courses")
    subjects = relationship("Subject", back_populates="course", passive_deletes="all")
    students = relationship("Student", back_populates="course", passive_deletes="all")

    @property
    def total_semesters(self) -> int:
        return total_semesters(self.duration_value, self.duration_unit)

    def __repr__(self):
        return f"<Course {self.code}>"


class Subject(Base):
    """Subject taught in one semester of a course"""
    __tablename__ = "subjects"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    course_id = Column(GUID, ForeignKey("courses.id"), nullable=False, index=True)
    faculty_id = Column(GUID, ForeignKey("faculty.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(255), nullable=False)
    code = Column(String(20), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)

    semester = Column(Integer, nullable=False)
    credits = Column(Integer, default=3, nullable=False)
    type = Column(SQLEnum(SubjectType), default=SubjectType.THEORY, nullable=False)

    status = Column(SQLEnum(EntityStatus), default=EntityStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    course = relationship("Course", back_populates="subjects")
    faculty = relationship("Faculty", foreign_keys=[faculty_id])
    taught_by = relationship("Faculty", secondary=faculty_subjects, back_populates="subjects", passive_deletes=True)

    @property
    def department_id(self):
        return self.course.department_id if self.course is not None else None

    def __repr__(self):
        return f"<Subject {self.code} sem {self.semester}>"
