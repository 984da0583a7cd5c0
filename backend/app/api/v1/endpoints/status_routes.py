"""
Status lifecycle routes shared by departments, courses, subjects,
students and faculty:

- PATCH /{id}/toggle-status
- PATCH /{id}/deactivate
- PATCH /{id}/activate
- GET   /{id}/dependencies
- DELETE /{id}   (409 DEPENDENCY_CONFLICT while dependents exist)
"""

from typing import Any, Dict, Type

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import Actor, require_admin
from app.core.database import get_db
from app.services.lifecycle import LifecycleService


def add_status_routes(router: APIRouter, service_class: Type[LifecycleService], response_model: Any) -> None:
    label = service_class.label.title()

    @router.patch("/{entity_id}/toggle-status", response_model=response_model)
    async def toggle_status(
        entity_id: str,
        db: AsyncSession = Depends(get_db),
        actor: Actor = Depends(require_admin),
    ):
        """Flip active <-> inactive"""
        return await service_class(db).toggle_status(entity_id)

    @router.patch("/{entity_id}/deactivate", response_model=response_model)
    async def deactivate(
        entity_id: str,
        db: AsyncSession = Depends(get_db),
        actor: Actor = Depends(require_admin),
    ):
        """Soft delete: hide from active listings, keep every relation"""
        return await service_class(db).deactivate(entity_id)

    @router.patch("/{entity_id}/activate", response_model=response_model)
    async def activate(
        entity_id: str,
        db: AsyncSession = Depends(get_db),
        actor: Actor = Depends(require_admin),
    ):
        return await service_class(db).activate(entity_id)

    @router.get("/{entity_id}/dependencies")
    async def dependencies(entity_id: str, db: AsyncSession = Depends(get_db)) -> Dict[str, int]:
        """Counts of records that would block a hard delete"""
        return await service_class(db).dependencies(entity_id)

    @router.delete("/{entity_id}")
    async def delete(
        entity_id: str,
        db: AsyncSession = Depends(get_db),
        actor: Actor = Depends(require_admin),
    ):
        await service_class(db).delete(entity_id)
        return {"success": True, "message": f"{label} deleted"}
