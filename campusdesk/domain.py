"""
Domain vocabulary shared by the console package and the backend service.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Any, Optional


class EntityStatus(str, Enum):
    """Lifecycle of toggle-status entities"""
    ACTIVE = "active"
    INACTIVE = "inactive"


class LeaveStatus(str, Enum):
    """Leave request approval states"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Role(str, Enum):
    ADMIN = "admin"
    FACULTY = "faculty"
    STUDENT = "student"


class Audience(str, Enum):
    """Notice target audience"""
    ALL = "all"
    FACULTY = "faculty"
    STUDENTS = "students"


class NoticePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class DurationUnit(str, Enum):
    YEAR = "year"
    SEMESTER = "semester"


class SubjectType(str, Enum):
    THEORY = "theory"
    PRACTICAL = "practical"
    ELECTIVE = "elective"


class LeaveType(str, Enum):
    SICK = "sick"
    CASUAL = "casual"
    EMERGENCY = "emergency"
    ACADEMIC = "academic"
    PERSONAL = "personal"
    OTHER = "other"


class RequestType(str, Enum):
    """Kind of request filed through the leave desk (OD = on duty)"""
    LEAVE = "leave"
    OD = "od"
    CERTIFICATE = "certificate"
    GENERAL = "general"


class FeeType(str, Enum):
    TUITION = "tuition"
    HOSTEL = "hostel"
    TRANSPORT = "transport"
    EXAM = "exam"
    LIBRARY = "library"
    OTHER = "other"


class FeeStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    PARTIAL = "partial"


class EntityType(str, Enum):
    """Resources exposed by the REST boundary; value is the URL segment"""
    DEPARTMENT = "departments"
    COURSE = "courses"
    SUBJECT = "subjects"
    STUDENT = "students"
    FACULTY = "faculty"
    NOTICE = "notices"
    TRANSPORT_ROUTE = "transport"
    FEE = "fees"

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").lower()

    @property
    def has_status_lifecycle(self) -> bool:
        return self in STATUS_ENTITIES


STATUS_ENTITIES = frozenset({
    EntityType.DEPARTMENT,
    EntityType.COURSE,
    EntityType.SUBJECT,
    EntityType.STUDENT,
    EntityType.FACULTY,
})


@dataclass(frozen=True)
class Option:
    """One selectable child in a cascading selector"""
    id: str
    label: str
    constraint_value: Optional[Any] = None


def field_of(record: Any, name: str, default: Any = None) -> Any:
    """Read a field from an API dict or an ORM/dataclass object"""
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value
