"""
Transport Route API Endpoints
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import Actor, require_admin
from app.core.database import get_db
from app.schemas import TransportRouteCreate, TransportRouteUpdate, TransportRouteResponse
from app.services.campus_service import TransportService

router = APIRouter()


@router.get("", response_model=List[TransportRouteResponse])
async def list_routes(
    is_active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await TransportService(db).list(is_active=is_active)


@router.post("", response_model=TransportRouteResponse, status_code=201)
async def create_route(
    payload: TransportRouteCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    return await TransportService(db).create(payload.model_dump())


@router.get("/{route_id}", response_model=TransportRouteResponse)
async def get_route(route_id: str, db: AsyncSession = Depends(get_db)):
    return await TransportService(db).get(route_id)


@router.put("/{route_id}", response_model=TransportRouteResponse)
async def update_route(
    route_id: str,
    payload: TransportRouteUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    return await TransportService(db).update(route_id, payload.model_dump(exclude_unset=True))


@router.delete("/{route_id}")
async def delete_route(
    route_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin),
):
    await TransportService(db).delete(route_id)
    return {"success": True, "message": "Transport route deleted"}
