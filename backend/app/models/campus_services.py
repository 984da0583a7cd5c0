"""
Campus Service Models
- TransportRoute: college bus routes
- Fee: per-student fee ledger entries
"""

from sqlalchemy import Column, String, Boolean, Date, DateTime, Enum as SQLEnum, Integer, Float, ForeignKey
from sqlalchemy.orm import relationship

from campusdesk.domain import FeeStatus, FeeType
from app.core.database import Base
from app.core.types import GUID, StringList, generate_uuid, utcnow


class TransportRoute(Base):
    __tablename__ = "transport_routes"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    bus_number = Column(String(20), unique=True, nullable=False, index=True)
    route_name = Column(String(255), nullable=False)
    stops = Column(StringList, default=list)
    driver_name = Column(String(255), nullable=True)
    driver_phone = Column(String(20), nullable=True)
    capacity = Column(Integer, default=40, nullable=False)
    departure_time = Column(String(10), nullable=True)  # HH:MM
    return_time = Column(String(10), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<TransportRoute {self.bus_number}>"


class Fee(Base):
    __tablename__ = "fees"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    student_id = Column(GUID, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    fee_type = Column(SQLEnum(FeeType), default=FeeType.TUITION, nullable=False)
    amount = Column(Float, nullable=False)
    paid_amount = Column(Float, default=0, nullable=False)
    semester = Column(Integer, nullable=True)
    academic_year = Column(String(20), nullable=True)  # e.g., 2025-2026
    due_date = Column(Date, nullable=False)
    status = Column(SQLEnum(FeeStatus), default=FeeStatus.PENDING, nullable=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    student = relationship("Student", back_populates="fees")

    @property
    def balance(self) -> float:
        return max((self.amount or 0) - (self.paid_amount or 0), 0)

    def __repr__(self):
        return f"<Fee {self.fee_type} {self.amount}>"
