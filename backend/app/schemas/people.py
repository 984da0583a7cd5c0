from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import List, Optional
from datetime import datetime

from campusdesk.domain import EntityStatus


class StudentCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    roll_no: str = Field(..., min_length=1, max_length=50)
    department_id: str
    course_id: str
    year: int = Field(1, ge=1, le=6)
    semester: Optional[int] = None  # defaults to the first semester of `year`
    section: str = "A"
    phone: Optional[str] = None
    password: Optional[str] = None


class StudentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    roll_no: Optional[str] = Field(None, min_length=1, max_length=50)
    department_id: Optional[str] = None
    course_id: Optional[str] = None
    year: Optional[int] = Field(None, ge=1, le=6)
    semester: Optional[int] = None
    section: Optional[str] = None
    phone: Optional[str] = None


class StudentResponse(BaseModel):
    id: str
    name: str
    email: str
    roll_no: str
    department_id: str
    course_id: str
    year: int
    semester: int
    section: Optional[str] = None
    phone: Optional[str] = None
    status: EntityStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FacultyCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    employee_id: str = Field(..., min_length=1, max_length=50)
    department_id: str
    designation: str = "Assistant Professor"
    qualification: Optional[str] = None
    phone: Optional[str] = None
    subject_ids: List[str] = []
    password: Optional[str] = None


class FacultyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    employee_id: Optional[str] = Field(None, min_length=1, max_length=50)
    department_id: Optional[str] = None
    designation: Optional[str] = None
    qualification: Optional[str] = None
    phone: Optional[str] = None
    subject_ids: Optional[List[str]] = None


class FacultyResponse(BaseModel):
    id: str
    name: str
    email: str
    employee_id: str
    department_id: str
    designation: str
    qualification: Optional[str] = None
    phone: Optional[str] = None
    subject_ids: List[str] = []
    status: EntityStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PasswordReset(BaseModel):
    password: str
    confirm_password: Optional[str] = None
