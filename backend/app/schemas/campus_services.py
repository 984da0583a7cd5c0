from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import date, datetime

from campusdesk.domain import FeeStatus, FeeType


class TransportRouteCreate(BaseModel):
    bus_number: str = Field(..., min_length=1, max_length=20)
    route_name: str = Field(..., min_length=1, max_length=255)
    stops: List[str] = []
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    capacity: int = Field(40, ge=1)
    departure_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    return_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    is_active: bool = True


class TransportRouteUpdate(BaseModel):
    bus_number: Optional[str] = Field(None, min_length=1, max_length=20)
    route_name: Optional[str] = Field(None, min_length=1, max_length=255)
    stops: Optional[List[str]] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    departure_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    return_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    is_active: Optional[bool] = None


class TransportRouteResponse(BaseModel):
    id: str
    bus_number: str
    route_name: str
    stops: List[str] = []
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    capacity: int
    departure_time: Optional[str] = None
    return_time: Optional[str] = None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FeeCreate(BaseModel):
    student_id: str
    fee_type: FeeType = FeeType.TUITION
    amount: float = Field(..., ge=0)
    paid_amount: float = Field(0, ge=0)
    semester: Optional[int] = Field(None, ge=1)
    academic_year: Optional[str] = None
    due_date: date
    status: Optional[FeeStatus] = None


class FeeUpdate(BaseModel):
    fee_type: Optional[FeeType] = None
    amount: Optional[float] = Field(None, ge=0)
    paid_amount: Optional[float] = Field(None, ge=0)
    semester: Optional[int] = Field(None, ge=1)
    academic_year: Optional[str] = None
    due_date: Optional[date] = None
    status: Optional[FeeStatus] = None


class FeeResponse(BaseModel):
    id: str
    student_id: str
    fee_type: FeeType
    amount: float
    paid_amount: float
    balance: float
    semester: Optional[int] = None
    academic_year: Optional[str] = None
    due_date: date
    status: FeeStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
