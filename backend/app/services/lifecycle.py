"""
Status lifecycle and dependency checks shared by the catalogue services.

Departments, courses, subjects, students and faculty carry an
active/inactive status. Deactivation only flips the status; a hard delete
is refused while other records still reference the entity.
"""

from typing import Any, Dict, Optional, Type

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.domain import EntityStatus, enum_value
from campusdesk.exceptions import (
    DependencyBreakdown, DependencyConflict, DuplicateResourceError, ResourceNotFoundError,
)
from campusdesk.workflow import check_status_change, next_toggle_status
from app.core.logging_config import logger
from app.models import Course, Department, Faculty, Student, Subject, faculty_subjects


async def count(db: AsyncSession, stmt) -> int:
    result = await db.execute(stmt)
    return result.scalar() or 0


async def dependency_breakdown(db: AsyncSession, entity: Any) -> DependencyBreakdown:
    """Count the records that still reference `entity`"""
    if isinstance(entity, Department):
        return DependencyBreakdown(
            courses=await count(db, select(func.count(Course.id)).where(Course.department_id == entity.id)),
            subjects=await count(
                db,
                select(func.count(Subject.id))
                .join(Course, Subject.course_id == Course.id)
                .where(Course.department_id == entity.id)
            ),
            students=await count(db, select(func.count(Student.id)).where(Student.department_id == entity.id)),
            faculty=await count(db, select(func.count(Faculty.id)).where(Faculty.department_id == entity.id)),
        )
    if isinstance(entity, Course):
        return DependencyBreakdown(
            subjects=await count(db, select(func.count(Subject.id)).where(Subject.course_id == entity.id)),
            students=await count(db, select(func.count(Student.id)).where(Student.course_id == entity.id)),
        )
    if isinstance(entity, Subject):
        teaching = await count(
            db,
            select(func.count()).select_from(faculty_subjects)
            .where(faculty_subjects.c.subject_id == entity.id)
        )
        if entity.faculty_id and not teaching:
            teaching = 1
        return DependencyBreakdown(faculty=teaching)
    if isinstance(entity, Faculty):
        return DependencyBreakdown(
            subjects=await count(db, select(func.count(Subject.id)).where(Subject.faculty_id == entity.id)),
        )
    return DependencyBreakdown()


class LifecycleService:
    """Base for services whose records carry an active/inactive status"""

    model: Type = None
    label: str = "record"

    def __init__(self, db: AsyncSession):
        self.db = db

    def _query(self):
        return select(self.model)

    async def get(self, entity_id: str):
        result = await self.db.execute(self._query().where(self.model.id == entity_id))
        entity = result.scalar_one_or_none()
        if not entity:
            raise ResourceNotFoundError(self.label.title(), entity_id)
        return entity

    async def ensure_unique(self, field: str, value: Any, exclude_id: Optional[str] = None) -> None:
        column = getattr(self.model, field)
        stmt = select(self.model.id).where(column == value)
        if exclude_id:
            stmt = stmt.where(self.model.id != exclude_id)
        result = await self.db.execute(stmt)
        if result.first() is not None:
            raise DuplicateResourceError(self.label.title(), field, value)

    async def _set_status(self, entity, status: EntityStatus):
        previous = entity.status
        entity.status = status
        await self.db.commit()
        logger.log_transition(self.label, str(entity.id), enum_value(previous), enum_value(status))
        return await self.get(entity.id)

    async def toggle_status(self, entity_id: str):
        entity = await self.get(entity_id)
        return await self._set_status(entity, next_toggle_status(entity.status))

    async def deactivate(self, entity_id: str):
        entity = await self.get(entity_id)
        check_status_change(self.label, entity.status, EntityStatus.INACTIVE)
        return await self._set_status(entity, EntityStatus.INACTIVE)

    async def activate(self, entity_id: str):
        entity = await self.get(entity_id)
        check_status_change(self.label, entity.status, EntityStatus.ACTIVE)
        return await self._set_status(entity, EntityStatus.ACTIVE)

    async def dependencies(self, entity_id: str) -> Dict[str, int]:
        entity = await self.get(entity_id)
        return (await dependency_breakdown(self.db, entity)).to_dict()

    async def delete(self, entity_id: str) -> None:
        """Hard delete; raises DependencyConflict while dependents exist"""
        entity = await self.get(entity_id)
        breakdown = await dependency_breakdown(self.db, entity)
        if breakdown.total > 0:
            logger.info(f"Delete of {self.label} {entity_id} blocked: {breakdown.describe()}")
            raise DependencyConflict(self.label, str(entity.id), breakdown)

        await self.db.delete(entity)
        await self.db.commit()
        logger.info(f"Deleted {self.label} {entity_id}")
