"""
Approval Workflow State Machine

Lifecycles governed here:

    LeaveRequest   pending ──approve──► approved   (terminal)
                   pending ──reject───► rejected   (terminal, remarks required)

    Department / Course / Subject / Student / Faculty
                   active ◄──toggle──► inactive

Delete vs deactivate: a hard delete is refused while dependents exist
(DependencyConflict with a per-category breakdown); deactivate only flips
status and keeps every relation.

Every check that can be made locally runs before the API is called, so a
rejected operation has no remote effect. Notification events go through
the outbox after the mutation has succeeded.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from campusdesk.domain import (
    Audience, EntityStatus, EntityType, LeaveStatus, LeaveType, Role,
    enum_value, field_of,
)
from campusdesk.exceptions import DependencyConflict, InvalidTransition, ValidationError
from campusdesk.logging_config import logger
from campusdesk.outbox import EventOutbox, Topics
from campusdesk.validation import (
    days_between, parse_datetime, validate_leave_dates, validate_reason, validate_remarks,
)


# Valid state transitions
LEAVE_TRANSITIONS: Dict[LeaveStatus, Set[LeaveStatus]] = {
    LeaveStatus.PENDING: {LeaveStatus.APPROVED, LeaveStatus.REJECTED},
    LeaveStatus.APPROVED: set(),
    LeaveStatus.REJECTED: set(),
}

STATUS_TRANSITIONS: Dict[EntityStatus, Set[EntityStatus]] = {
    EntityStatus.ACTIVE: {EntityStatus.INACTIVE},
    EntityStatus.INACTIVE: {EntityStatus.ACTIVE},
}


@dataclass
class StateTransition:
    """Record of a state transition"""
    from_state: str
    to_state: str
    timestamp: datetime = field(default_factory=datetime.utcnow)
    reason: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_state,
            "to": self.to_state,
            "timestamp": self.timestamp.isoformat(),
            "reason": self.reason,
            "metadata": self.metadata
        }


class StateMachine:
    """
    Table-driven state machine with transition history and callbacks.

    Unlike a best-effort machine, an invalid transition raises
    InvalidTransition so callers cannot silently ignore it.
    """

    def __init__(
        self,
        name: str,
        initial_state: Enum,
        transitions: Dict[Enum, Set[Enum]],
        max_history: int = 50
    ):
        self.name = name
        self._state = initial_state
        self._transitions = transitions
        self._history: deque = deque(maxlen=max_history)
        self._callbacks: List[Callable] = []

    @property
    def state(self) -> Enum:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return not self._transitions.get(self._state)

    def can_transition(self, to_state: Enum) -> bool:
        return to_state in self._transitions.get(self._state, set())

    def invalid_message(self, to_state: Enum) -> str:
        return f"Cannot move {self.name} from {self._state.value} to {to_state.value}"

    def transition(
        self,
        to_state: Enum,
        reason: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> StateTransition:
        if not self.can_transition(to_state):
            raise InvalidTransition(
                self.invalid_message(to_state),
                current_state=self._state.value,
                target_state=to_state.value,
            )

        record = StateTransition(
            from_state=self._state.value,
            to_state=to_state.value,
            reason=reason,
            metadata=metadata or {}
        )
        self._history.append(record)
        old_state = self._state
        self._state = to_state

        for callback in self._callbacks:
            try:
                callback(old_state, to_state, record)
            except Exception as e:
                logger.error(f"[{self.name}] Callback error: {e}")

        return record

    def on_transition(self, callback: Callable):
        self._callbacks.append(callback)

    def get_history(self, limit: int = 10) -> List[StateTransition]:
        return list(self._history)[-limit:]


class LeaveStateMachine(StateMachine):
    """Lifecycle of one leave request"""

    def __init__(self, status: Any = LeaveStatus.PENDING, leave_id: str = ""):
        super().__init__(f"leave {leave_id}".strip(), LeaveStatus(enum_value(status)), LEAVE_TRANSITIONS)

    def invalid_message(self, to_state: Enum) -> str:
        return f"Leave is already {self.state.value}"

    def approve(self, remarks: Optional[str] = None) -> StateTransition:
        return self.transition(LeaveStatus.APPROVED, reason=remarks)

    def reject(self, remarks: Optional[str]) -> StateTransition:
        text = validate_remarks(remarks)
        return self.transition(LeaveStatus.REJECTED, reason=text)


class StatusStateMachine(StateMachine):
    """active/inactive lifecycle of a catalogue or account record"""

    def __init__(self, status: Any, label: str = "record"):
        super().__init__(label, EntityStatus(enum_value(status)), STATUS_TRANSITIONS)

    def invalid_message(self, to_state: Enum) -> str:
        return f"{self.name.capitalize()} is already {self.state.value}"

    def toggle(self) -> StateTransition:
        return self.transition(next_toggle_status(self.state))


# ==========================================
# Pure rules (shared with the backend)
# ==========================================

def check_leave_transition(current: Any, target: Any) -> None:
    machine = LeaveStateMachine(current)
    if not machine.can_transition(LeaveStatus(enum_value(target))):
        raise InvalidTransition(
            machine.invalid_message(LeaveStatus(enum_value(target))),
            current_state=machine.state.value,
            target_state=enum_value(target),
        )


def next_toggle_status(current: Any) -> EntityStatus:
    """Toggle always flips to the opposite status"""
    if enum_value(current) == EntityStatus.ACTIVE.value:
        return EntityStatus.INACTIVE
    return EntityStatus.ACTIVE


def check_status_change(label: str, current: Any, target: Any) -> None:
    """deactivate/activate require the record to be in the opposite state"""
    StatusStateMachine(current, label).transition(EntityStatus(enum_value(target)))


def can_review(reviewer_role: Any, applicant_role: Any) -> bool:
    """Admins review every request; faculty review student requests only"""
    reviewer = enum_value(reviewer_role)
    if reviewer == Role.ADMIN.value:
        return True
    return reviewer == Role.FACULTY.value and enum_value(applicant_role) == Role.STUDENT.value


def _viewer_audience(viewer_role: Any) -> Optional[str]:
    role = enum_value(viewer_role)
    if role == Role.STUDENT.value or role == Audience.STUDENTS.value:
        return Audience.STUDENTS.value
    if role == Role.FACULTY.value:
        return Audience.FACULTY.value
    return None


def notice_visible_to(
    notice: Any,
    viewer_role: Any,
    viewer_id: Optional[str] = None,
    now: Optional[datetime] = None
) -> bool:
    """
    Read-time audience rule.

    Faculty-authored notices reach students only (plus their author);
    admin notices follow target_audience. Admins see everything.
    Inactive and expired notices are hidden from role feeds.
    """
    if field_of(notice, "is_active", True) is False:
        return False
    expires_at = field_of(notice, "expires_at")
    if expires_at:
        try:
            expires_at = parse_datetime(expires_at, field="expires_at")
        except ValidationError:
            # an unreadable expiry is treated as no expiry
            logger.warning(f"Notice {field_of(notice, 'id')} has unreadable expires_at {expires_at!r}")
            expires_at = None
        if expires_at is not None and expires_at < (now or datetime.utcnow()):
            return False

    if enum_value(viewer_role) == Role.ADMIN.value:
        return True

    audience = _viewer_audience(viewer_role)
    created_by_role = enum_value(field_of(notice, "created_by_role"))

    if created_by_role == Role.FACULTY.value:
        if viewer_id and str(field_of(notice, "created_by_id")) == str(viewer_id):
            return True
        return audience == Audience.STUDENTS.value

    target = enum_value(field_of(notice, "target_audience", Audience.ALL))
    return target == Audience.ALL.value or target == audience


def _created_key(notice: Any) -> str:
    created_at = field_of(notice, "created_at")
    return created_at.isoformat() if isinstance(created_at, datetime) else str(created_at or "")


def filter_notices(
    notices: Iterable[Any],
    viewer_role: Any,
    viewer_id: Optional[str] = None,
    now: Optional[datetime] = None
) -> List[Any]:
    """Visible notices, important first, newest first"""
    visible = [n for n in notices if notice_visible_to(n, viewer_role, viewer_id, now)]
    visible.sort(key=_created_key, reverse=True)
    visible.sort(key=lambda n: bool(field_of(n, "is_important", False)), reverse=True)
    return visible


# ==========================================
# Workflows (client side)
# ==========================================

class LeaveWorkflow:
    """
    Apply / approve / reject through the API.

    Usage:
        workflow = LeaveWorkflow(api, outbox)
        await workflow.reject(leave, remarks="Exams are scheduled that week")
    """

    def __init__(self, api, outbox: Optional[EventOutbox] = None, today: Optional[Callable] = None):
        self.api = api
        self.outbox = outbox or EventOutbox()
        self._today = today

    def validate_application(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        today = self._today() if self._today else None
        start, end = validate_leave_dates(payload.get("from_date"), payload.get("to_date"), today=today)
        reason = validate_reason(payload.get("reason"))
        leave_type = payload.get("leave_type") or LeaveType.OTHER.value
        if enum_value(leave_type) not in {t.value for t in LeaveType}:
            raise ValidationError("Invalid leave type", field="leave_type")
        return {
            **payload,
            "from_date": start.isoformat(),
            "to_date": end.isoformat(),
            "reason": reason,
            "leave_type": enum_value(leave_type),
        }

    async def apply(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = self.validate_application(payload)
        return await self.api.apply_leave(data)

    async def approve(self, leave: Any, remarks: Optional[str] = None) -> Dict[str, Any]:
        machine = LeaveStateMachine(field_of(leave, "status"), str(field_of(leave, "id")))
        machine.approve(remarks)
        result = await self.api.approve_leave(field_of(leave, "id"), remarks=remarks)
        await self._announce(leave, LeaveStatus.APPROVED, remarks)
        return result

    async def reject(self, leave: Any, remarks: Optional[str]) -> Dict[str, Any]:
        machine = LeaveStateMachine(field_of(leave, "status"), str(field_of(leave, "id")))
        transition = machine.reject(remarks)
        result = await self.api.reject_leave(field_of(leave, "id"), remarks=transition.reason)
        await self._announce(leave, LeaveStatus.REJECTED, transition.reason)
        return result

    async def _announce(self, leave: Any, status: LeaveStatus, remarks: Optional[str]) -> None:
        logger.log_transition("leave", str(field_of(leave, "id")), LeaveStatus.PENDING.value, status.value)
        await self.outbox.publish(Topics.LEAVE_STATUS, {
            "leaveId": field_of(leave, "id"),
            "applicantId": field_of(leave, "applicant_id"),
            "status": status.value,
            "remarks": remarks or "",
        })


class StatusWorkflow:
    """Toggle, deactivate/activate and dependency-checked delete"""

    def __init__(self, api):
        self.api = api

    @staticmethod
    def _require_lifecycle(entity_type: EntityType) -> None:
        if not EntityType(entity_type).has_status_lifecycle:
            raise ValidationError(f"{EntityType(entity_type).label} has no status lifecycle")

    async def toggle(self, entity_type: EntityType, entity_id: str) -> Dict[str, Any]:
        self._require_lifecycle(entity_type)
        return await self.api.toggle_status(entity_type, entity_id)

    async def deactivate(self, entity_type: EntityType, entity_id: str,
                         current_status: Optional[Any] = None) -> Dict[str, Any]:
        self._require_lifecycle(entity_type)
        if current_status is not None:
            check_status_change(EntityType(entity_type).label, current_status, EntityStatus.INACTIVE)
        return await self.api.deactivate(entity_type, entity_id)

    async def activate(self, entity_type: EntityType, entity_id: str,
                       current_status: Optional[Any] = None) -> Dict[str, Any]:
        self._require_lifecycle(entity_type)
        if current_status is not None:
            check_status_change(EntityType(entity_type).label, current_status, EntityStatus.ACTIVE)
        return await self.api.activate(entity_type, entity_id)

    async def delete(self, entity_type: EntityType, entity_id: str) -> None:
        """Raises DependencyConflict when dependents exist"""
        await self.api.delete_with_dependency_check(entity_type, entity_id)

    async def delete_or_deactivate(
        self, entity_type: EntityType, entity_id: str
    ) -> Tuple[str, Optional[DependencyConflict]]:
        """Recovery path: deactivate when the delete is blocked"""
        try:
            await self.delete(entity_type, entity_id)
            return "deleted", None
        except DependencyConflict as conflict:
            logger.info(
                f"Delete of {EntityType(entity_type).label} {entity_id} blocked "
                f"({conflict.dependencies.describe()}), deactivating instead"
            )
            await self.api.deactivate(entity_type, entity_id)
            return "deactivated", conflict


class NoticeWorkflow:
    """Notices are plain CRUD plus a post-notice event on creation"""

    def __init__(self, api, outbox: Optional[EventOutbox] = None):
        self.api = api
        self.outbox = outbox or EventOutbox()

    async def create(self, notice: Dict[str, Any], author_role: Any = Role.ADMIN) -> Dict[str, Any]:
        data = dict(notice)
        if enum_value(author_role) == Role.FACULTY.value:
            data["target_audience"] = Audience.STUDENTS.value
        created = await self.api.create(EntityType.NOTICE, data)
        await self.outbox.publish(Topics.POST_NOTICE, {
            "title": field_of(created, "title", data.get("title")),
            "message": field_of(created, "content", data.get("content")),
            "type": field_of(created, "priority", data.get("priority")),
            "targetAudience": field_of(created, "target_audience", data.get("target_audience")),
        })
        return created


def leave_duration(leave: Any) -> int:
    """Inclusive day count of a leave record"""
    return days_between(field_of(leave, "from_date"), field_of(leave, "to_date"))
