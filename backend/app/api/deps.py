"""
Request dependencies shared by the v1 endpoints.

The acting user travels in the X-User-Id / X-User-Role headers. This is
identity propagation for auditing and visibility rules, not authentication.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header

from campusdesk.domain import Role
from campusdesk.exceptions import AuthorizationError, ValidationError


@dataclass(frozen=True)
class Actor:
    id: Optional[str]
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


async def get_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Actor:
    """Acting user; requests without a role act as admin"""
    try:
        role = Role((x_user_role or Role.ADMIN.value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown role '{x_user_role}'", field="X-User-Role")
    return Actor(id=x_user_id or None, role=role)


async def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise AuthorizationError("Admin access required")
    return actor


async def require_applicant(actor: Actor = Depends(get_actor)) -> Actor:
    """Actor that owns records (leaves, stats): an id is mandatory"""
    if not actor.id:
        raise ValidationError("X-User-Id header is required", field="X-User-Id")
    return actor
