"""
Explicit session context.

Replaces ambient browser storage: the acting user is a value passed into
whatever needs it, and the API client plus outbox it owns are created on
entry and closed on exit.

    async with CampusSession(config, Session(user_id="f-1", role="faculty")) as ctx:
        controller = LeaveController(ctx)
        await controller.load()
"""

from dataclasses import dataclass, replace
from typing import Optional

import httpx

from campusdesk.api_client import CampusAPIClient
from campusdesk.config import ConsoleConfig
from campusdesk.domain import Role
from campusdesk.logging_config import clear_actor, logger, set_actor
from campusdesk.outbox import EventOutbox


@dataclass(frozen=True)
class Session:
    """Who is acting; not a credential"""
    user_id: Optional[str] = None
    role: Role = Role.ADMIN
    name: Optional[str] = None
    department_id: Optional[str] = None

    @classmethod
    def from_config(cls, config: ConsoleConfig) -> "Session":
        return cls(
            user_id=config.user_id,
            role=Role(config.role),
            name=config.user_name,
            department_id=config.department_id,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class CampusSession:
    """Owns the API client and outbox for one session"""

    def __init__(
        self,
        config: Optional[ConsoleConfig] = None,
        session: Optional[Session] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        base = config or ConsoleConfig.from_env()
        self.session = session or Session.from_config(base)
        self.config = replace(
            base,
            user_id=self.session.user_id,
            role=self.session.role.value,
            user_name=self.session.name,
            department_id=self.session.department_id,
        )
        self._transport = transport
        self.api: Optional[CampusAPIClient] = None
        self.outbox: Optional[EventOutbox] = None

    async def __aenter__(self) -> "CampusSession":
        self.api = CampusAPIClient(self.config, transport=self._transport)
        self.outbox = EventOutbox(sender=self.api.emit_event)
        set_actor(self.session.user_id, self.session.role.value)
        logger.debug(f"Session opened for {self.session.role.value} {self.session.user_id or '-'}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        try:
            if self.outbox and self.outbox.pending():
                await self.outbox.flush()
                for event in self.outbox.pending():
                    logger.warning(f"Session closed with undelivered {event.topic} event {event.id}")
        finally:
            if self.api:
                await self.api.close()
            self.api = None
            self.outbox = None
            clear_actor()
