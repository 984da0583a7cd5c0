"""
Student and Faculty Models
- Student belongs to a department and one of its courses
- Faculty belongs to a department and teaches subjects from its courses
- FacultyAuditLog records subject/department reassignments
"""

from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Integer, ForeignKey, JSON
from sqlalchemy.orm import relationship

from campusdesk.domain import EntityStatus
from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow
from app.models.academics import faculty_subjects


class Student(Base):
    """Student account and enrolment"""
    __tablename__ = "students"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    roll_no = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    hashed_password = Column(String(255), nullable=False)

    department_id = Column(GUID, ForeignKey("departments.id"), nullable=False, index=True)
    course_id = Column(GUID, ForeignKey("courses.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False, default=1)
    semester = Column(Integer, nullable=False, default=1)
    section = Column(String(10), default="A")

    status = Column(SQLEnum(EntityStatus), default=EntityStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    department = relationship("Department", back_populates="students")
    course = relationship("Course", back_populates="students")
    fees = relationship("Fee", back_populates="student", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Student {self.roll_no}>"


class Faculty(Base):
    """Faculty account"""
    __tablename__ = "faculty"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    employee_id = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    hashed_password = Column(String(255), nullable=False)

    department_id = Column(GUID, ForeignKey("departments.id"), nullable=False, index=True)
    designation = Column(String(100), nullable=False, default="Assistant Professor")
    qualification = Column(String(255), nullable=True)

    status = Column(SQLEnum(EntityStatus), default=EntityStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    department = relationship("Department", back_populates="faculty")
    subjects = relationship("Subject", secondary=faculty_subjects, back_populates="taught_by", passive_deletes=True)
    audit_logs = relationship("FacultyAuditLog", back_populates="faculty", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def subject_ids(self):
        return [subject.id for subject in self.subjects]

    def __repr__(self):
        return f"<Faculty {self.employee_id}>"


class FacultyAuditLog(Base):
    """Change history of a faculty member's department and subjects"""
    __tablename__ = "faculty_audit_logs"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    faculty_id = Column(GUID, ForeignKey("faculty.id", ondelete="CASCADE"), nullable=False, index=True)
    changed_by_id = Column(GUID, nullable=True)
    field = Column(String(50), nullable=False)  # subject_ids, department_id
    old_value = Column(JSON, nullable=True)
    new_value = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    faculty = relationship("Faculty", back_populates="audit_logs")

    def __repr__(self):
        return f"<FacultyAuditLog {self.faculty_id} {self.field}>"
