"""
Campus Services
Transport routes and the student fee ledger
"""

from typing import List, Optional, Dict, Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.domain import FeeStatus, FeeType, enum_value
from campusdesk.exceptions import DuplicateResourceError, ResourceNotFoundError, ValidationError
from campusdesk.validation import require_text
from app.core.logging_config import logger
from app.models import Fee, Student, TransportRoute


class TransportService:
    """Service for bus route operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, route_id: str) -> TransportRoute:
        route = await self.db.get(TransportRoute, route_id)
        if not route:
            raise ResourceNotFoundError("Transport route", route_id)
        return route

    async def _ensure_unique_bus(self, bus_number: str, exclude_id: Optional[str] = None) -> None:
        stmt = select(TransportRoute.id).where(TransportRoute.bus_number == bus_number)
        if exclude_id:
            stmt = stmt.where(TransportRoute.id != exclude_id)
        if (await self.db.execute(stmt)).first() is not None:
            raise DuplicateResourceError("Transport route", "bus_number", bus_number)

    async def list(self, is_active: Optional[bool] = None) -> List[TransportRoute]:
        stmt = select(TransportRoute).order_by(TransportRoute.bus_number)
        if is_active is not None:
            stmt = stmt.where(TransportRoute.is_active == is_active)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create(self, data: Dict[str, Any]) -> TransportRoute:
        bus_number = require_text(data.get("bus_number"), "Bus number", "bus_number").upper()
        await self._ensure_unique_bus(bus_number)

        route = TransportRoute(
            bus_number=bus_number,
            route_name=require_text(data.get("route_name"), "Route name", "route_name"),
            stops=[stop.strip() for stop in data.get("stops") or [] if stop and stop.strip()],
            driver_name=data.get("driver_name"),
            driver_phone=data.get("driver_phone"),
            capacity=data.get("capacity") or 40,
            departure_time=data.get("departure_time"),
            return_time=data.get("return_time"),
            is_active=data.get("is_active", True),
        )
        self.db.add(route)
        await self.db.commit()
        logger.info(f"Created transport route {bus_number}")
        return route

    async def update(self, route_id: str, data: Dict[str, Any]) -> TransportRoute:
        route = await self.get(route_id)
        if data.get("bus_number") is not None:
            bus_number = require_text(data["bus_number"], "Bus number", "bus_number").upper()
            await self._ensure_unique_bus(bus_number, exclude_id=route.id)
            route.bus_number = bus_number
        if data.get("route_name") is not None:
            route.route_name = require_text(data["route_name"], "Route name", "route_name")
        if data.get("stops") is not None:
            route.stops = [stop.strip() for stop in data["stops"] if stop and stop.strip()]
        for field in ("driver_name", "driver_phone", "capacity", "departure_time", "return_time", "is_active"):
            if field in data and data[field] is not None:
                setattr(route, field, data[field])

        await self.db.commit()
        return route

    async def delete(self, route_id: str) -> None:
        route = await self.get(route_id)
        await self.db.delete(route)
        await self.db.commit()
        logger.info(f"Deleted transport route {route.bus_number}")


def derive_fee_status(amount: float, paid_amount: float, current: Optional[FeeStatus] = None) -> FeeStatus:
    """Paid/partial follow the paid amount; overdue is only ever set explicitly"""
    if paid_amount >= amount:
        return FeeStatus.PAID
    if paid_amount > 0:
        return FeeStatus.PARTIAL
    if current == FeeStatus.OVERDUE:
        return FeeStatus.OVERDUE
    return FeeStatus.PENDING


class FeeService:
    """Service for fee ledger operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, fee_id: str) -> Fee:
        fee = await self.db.get(Fee, fee_id)
        if not fee:
            raise ResourceNotFoundError("Fee", fee_id)
        return fee

    async def list(self, student_id: Optional[str] = None, status: Optional[str] = None) -> List[Fee]:
        stmt = select(Fee).order_by(Fee.due_date)
        if student_id:
            stmt = stmt.where(Fee.student_id == student_id)
        if status:
            stmt = stmt.where(Fee.status == FeeStatus(status))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def _check_amounts(amount: float, paid_amount: float) -> None:
        if amount < 0 or paid_amount < 0:
            raise ValidationError("Amounts cannot be negative", field="amount")
        if paid_amount > amount:
            raise ValidationError("Paid amount cannot exceed the fee amount", field="paid_amount")

    async def create(self, data: Dict[str, Any]) -> Fee:
        student_id = data.get("student_id")
        if not student_id or not await self.db.get(Student, student_id):
            raise ResourceNotFoundError("Student", student_id or "")

        amount = float(data.get("amount") or 0)
        paid_amount = float(data.get("paid_amount") or 0)
        self._check_amounts(amount, paid_amount)
        requested = FeeStatus(enum_value(data["status"])) if data.get("status") else None

        fee = Fee(
            student_id=student_id,
            fee_type=FeeType(enum_value(data.get("fee_type") or FeeType.TUITION)),
            amount=amount,
            paid_amount=paid_amount,
            semester=data.get("semester"),
            academic_year=data.get("academic_year"),
            due_date=data.get("due_date"),
            status=derive_fee_status(amount, paid_amount, requested),
        )
        self.db.add(fee)
        await self.db.commit()
        logger.info(f"Fee of {amount} recorded for student {student_id}")
        return fee

    async def update(self, fee_id: str, data: Dict[str, Any]) -> Fee:
        fee = await self.get(fee_id)
        amount = float(data["amount"]) if data.get("amount") is not None else fee.amount
        paid_amount = float(data["paid_amount"]) if data.get("paid_amount") is not None else fee.paid_amount
        self._check_amounts(amount, paid_amount)

        if data.get("fee_type") is not None:
            fee.fee_type = FeeType(enum_value(data["fee_type"]))
        for field in ("semester", "academic_year", "due_date"):
            if data.get(field) is not None:
                setattr(fee, field, data[field])

        requested = FeeStatus(enum_value(data["status"])) if data.get("status") else fee.status
        fee.amount = amount
        fee.paid_amount = paid_amount
        fee.status = derive_fee_status(amount, paid_amount, requested)

        await self.db.commit()
        return fee

    async def delete(self, fee_id: str) -> None:
        fee = await self.get(fee_id)
        await self.db.delete(fee)
        await self.db.commit()
