from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime

from campusdesk.domain import DurationUnit, EntityStatus, SubjectType


# ==========================================
# Department
# ==========================================

class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    code: str = Field(..., min_length=2, max_length=20)
    description: Optional[str] = None
    head_of_department_id: Optional[str] = None


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    code: Optional[str] = Field(None, min_length=2, max_length=20)
    description: Optional[str] = None
    head_of_department_id: Optional[str] = None


class DepartmentResponse(BaseModel):
    id: str
    name: str
    code: str
    description: Optional[str] = None
    head_of_department_id: Optional[str] = None
    status: EntityStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ==========================================
# Course
# ==========================================

class CourseCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    code: str = Field(..., min_length=2, max_length=20)
    department_id: str
    duration_value: int = 4
    duration_unit: DurationUnit = DurationUnit.YEAR
    description: Optional[str] = None


class CourseUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    code: Optional[str] = Field(None, min_length=2, max_length=20)
    department_id: Optional[str] = None
    duration_value: Optional[int] = None
    duration_unit: Optional[DurationUnit] = None
    description: Optional[str] = None


class CourseResponse(BaseModel):
    id: str
    name: str
    code: str
    department_id: str
    duration_value: int
    duration_unit: DurationUnit
    total_semesters: int
    description: Optional[str] = None
    status: EntityStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ==========================================
# Subject
# ==========================================

class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    code: str = Field(..., min_length=2, max_length=20)
    course_id: str
    semester: int
    credits: int = 3
    type: SubjectType = SubjectType.THEORY
    faculty_id: Optional[str] = None
    description: Optional[str] = None


class SubjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    code: Optional[str] = Field(None, min_length=2, max_length=20)
    course_id: Optional[str] = None
    semester: Optional[int] = None
    credits: Optional[int] = None
    type: Optional[SubjectType] = None
    faculty_id: Optional[str] = None
    description: Optional[str] = None


class SubjectFacultyAssign(BaseModel):
    faculty_id: Optional[str] = None


class SubjectResponse(BaseModel):
    id: str
    name: str
    code: str
    course_id: str
    department_id: Optional[str] = None
    semester: int
    credits: int
    type: SubjectType
    faculty_id: Optional[str] = None
    description: Optional[str] = None
    status: EntityStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
