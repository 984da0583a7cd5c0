"""
Page controllers.

Each controller owns the collections it fetched, exposes an explicit
load() that returns a LoadResult instead of mutating shared state as a
render side effect, and refetches after every successful mutation (no
optimistic patching of local lists).
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from campusdesk.domain import EntityStatus, EntityType, Role, field_of
from campusdesk.exceptions import (
    CampusDeskError, DependencyConflict, ValidationError, get_error_message,
)
from campusdesk.forms import (
    FACULTY_FORM, LEAVE_FORM, NOTICE_FORM, STUDENT_FORM, SUBJECT_FORM,
    FormEngine, SubmitResult,
)
from campusdesk.logging_config import logger
from campusdesk.selectors import BoundedLevel, SelectorChain, SelectorLevel
from campusdesk.validation import default_semester_for_year, validate_semester
from campusdesk.workflow import LeaveWorkflow, NoticeWorkflow, StatusWorkflow, filter_notices


@dataclass
class LoadResult:
    items: List[Any] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ActionResult:
    ok: bool
    message: str = ""
    data: Any = None
    conflict: Optional[DependencyConflict] = None


async def _guarded_load(context: str, fetch: Callable[[], Awaitable[Any]]) -> LoadResult:
    try:
        data = await fetch()
    except CampusDeskError as e:
        logger.warning(f"[{context}] load failed: {e.code}: {e.message}")
        return LoadResult(items=[], error=get_error_message(e, f"Failed to load {context}"))
    if isinstance(data, dict) and "items" in data:
        data = data["items"]
    return LoadResult(items=list(data or []))


def _department_level(api) -> SelectorLevel:
    return SelectorLevel(
        "department",
        fetch=lambda _: api.list_departments(status=EntityStatus.ACTIVE.value),
        empty_message="No departments available",
    )


# ==========================================
# Registry (list + lifecycle actions)
# ==========================================

class RegistryController:
    """List one entity type and run toggle / delete / deactivate on it"""

    def __init__(self, ctx, entity_type: EntityType, **filters):
        self.ctx = ctx
        self.entity_type = EntityType(entity_type)
        self.filters = filters
        self.items: List[Dict[str, Any]] = []
        self.error: Optional[str] = None
        self.busy: Set[str] = set()
        self.status = StatusWorkflow(ctx.api)

    async def load(self) -> LoadResult:
        result = await _guarded_load(
            self.entity_type.label,
            lambda: self.ctx.api.list_entities(self.entity_type, **self.filters),
        )
        self.items, self.error = result.items, result.error
        return result

    async def _run(self, entity_id: str, action: Callable[[], Awaitable[Any]],
                   success: str) -> ActionResult:
        if entity_id in self.busy:
            return ActionResult(ok=False, message="Action already in progress")
        self.busy.add(entity_id)
        try:
            data = await action()
        except DependencyConflict as conflict:
            return ActionResult(ok=False, message=conflict.message, conflict=conflict)
        except CampusDeskError as e:
            return ActionResult(ok=False, message=get_error_message(e))
        finally:
            self.busy.discard(entity_id)
        await self.load()
        return ActionResult(ok=True, message=success, data=data)

    async def toggle(self, entity_id: str) -> ActionResult:
        return await self._run(
            entity_id,
            lambda: self.status.toggle(self.entity_type, entity_id),
            f"{self.entity_type.label.capitalize()} status updated",
        )

    async def deactivate(self, entity_id: str) -> ActionResult:
        current = next((field_of(i, "status") for i in self.items if str(field_of(i, "id")) == str(entity_id)), None)
        return await self._run(
            entity_id,
            lambda: self.status.deactivate(self.entity_type, entity_id, current_status=current),
            f"{self.entity_type.label.capitalize()} deactivated",
        )

    async def delete(self, entity_id: str) -> ActionResult:
        """A blocked delete returns the conflict so the caller can offer deactivate"""
        return await self._run(
            entity_id,
            lambda: self.status.delete(self.entity_type, entity_id),
            f"{self.entity_type.label.capitalize()} deleted",
        )

    async def save(self, data: Dict[str, Any], entity_id: Optional[str] = None) -> ActionResult:
        key = entity_id or "__new__"
        if entity_id:
            action = lambda: self.ctx.api.update(self.entity_type, entity_id, data)
        else:
            action = lambda: self.ctx.api.create(self.entity_type, data)
        return await self._run(key, action, f"{self.entity_type.label.capitalize()} saved")


# ==========================================
# Subject form: Department -> Course -> Semester
# ==========================================

class SubjectFormController:

    def __init__(self, ctx):
        self.ctx = ctx
        api = ctx.api
        self.form = FormEngine(SUBJECT_FORM)
        self.chain = SelectorChain([
            _department_level(api),
            SelectorLevel(
                "course",
                parent="department",
                parent_key="department_id",
                fetch=lambda dept: api.list_courses(department_id=dept, status=EntityStatus.ACTIVE.value),
                constraint=lambda c: field_of(c, "total_semesters"),
                empty_message="No courses in this department",
            ),
        ], bounded=BoundedLevel("semester", source="course"), name="subject-form")
        self.form.add_validator(self._semester_within_bound)
        self.editing_id: Optional[str] = None

    def _semester_within_bound(self, data: Dict[str, Any]) -> None:
        data["semester"] = validate_semester(data.get("semester"), self.chain.bound)

    async def load(self) -> LoadResult:
        await self.chain.load()
        departments = self.chain["department"]
        return LoadResult(items=departments.options, error=departments.error)

    async def on_department_change(self, department_id: Optional[str]) -> None:
        await self.chain.on_parent_change("department", department_id)
        self.form.set_value("course_id", None)
        self.form.set_value("semester", 1)

    async def on_course_change(self, course_id: Optional[str]) -> None:
        await self.chain.select("course", course_id)
        self.form.set_value("course_id", course_id)
        semester = self.form.values.get("semester")
        if semester and int(semester) > self.chain.bound:
            self.form.set_value("semester", 1)

    def set_semester(self, semester: Any) -> None:
        self.form.set_value("semester", semester)

    async def open_edit(self, subject: Dict[str, Any]) -> None:
        """Courses for the subject's department load before course/semester are set"""
        self.editing_id = str(field_of(subject, "id"))
        self.form.load(subject)
        await self.chain.prefill({
            "department": field_of(subject, "department_id"),
            "course": field_of(subject, "course_id"),
            "semester": field_of(subject, "semester"),
        })

    async def save(self) -> SubmitResult:
        api = self.ctx.api
        if self.editing_id:
            subject_id = self.editing_id
            return await self.form.submit(lambda data: api.update(EntityType.SUBJECT, subject_id, data))
        return await self.form.submit(lambda data: api.create(EntityType.SUBJECT, data))


# ==========================================
# Student form: Department -> Course, semester from year
# ==========================================

class StudentFormController:

    def __init__(self, ctx):
        self.ctx = ctx
        api = ctx.api
        self.form = FormEngine(STUDENT_FORM)
        self.chain = SelectorChain([
            _department_level(api),
            SelectorLevel(
                "course",
                parent="department",
                parent_key="department_id",
                fetch=lambda dept: api.list_courses(department_id=dept, status=EntityStatus.ACTIVE.value),
                empty_message="No courses in this department",
            ),
        ], bounded=BoundedLevel("semester", source="course"), name="student-form")
        self.form.add_validator(self._course_in_department)
        self.editing_id: Optional[str] = None

    def _course_in_department(self, data: Dict[str, Any]) -> None:
        course = self.chain.selected_record("course")
        if course is not None and str(field_of(course, "department_id")) != str(data.get("department_id")):
            raise ValidationError("Course does not belong to the selected department", field="course_id")
        if not data.get("semester"):
            data["semester"] = default_semester_for_year(data.get("year"))
        data["semester"] = validate_semester(data["semester"], self.chain.bound)

    async def load(self) -> LoadResult:
        await self.chain.load()
        return LoadResult(items=self.chain["department"].options, error=self.chain["department"].error)

    async def on_department_change(self, department_id: Optional[str]) -> None:
        await self.chain.on_parent_change("department", department_id)
        self.form.set_value("department_id", department_id)
        self.form.set_value("course_id", None)

    async def on_course_change(self, course_id: Optional[str]) -> None:
        await self.chain.select("course", course_id)
        self.form.set_value("course_id", course_id)

    def on_year_change(self, year: Any) -> None:
        self.form.set_value("year", year)
        self.form.set_value("semester", default_semester_for_year(year))

    async def open_edit(self, student: Dict[str, Any]) -> None:
        self.editing_id = str(field_of(student, "id"))
        self.form.load(student)
        await self.chain.prefill({
            "department": field_of(student, "department_id"),
            "course": field_of(student, "course_id"),
        })

    async def save(self) -> SubmitResult:
        api = self.ctx.api
        if self.editing_id:
            student_id = self.editing_id
            return await self.form.submit(lambda data: api.update(EntityType.STUDENT, student_id, data))
        return await self.form.submit(lambda data: api.create(EntityType.STUDENT, data))


# ==========================================
# Faculty assignment: Department -> Subjects
# ==========================================

class FacultyAssignmentController:

    def __init__(self, ctx):
        self.ctx = ctx
        api = ctx.api
        self.form = FormEngine(FACULTY_FORM)
        self.chain = SelectorChain([
            _department_level(api),
            SelectorLevel(
                "subjects",
                parent="department",
                parent_key="department_id",
                fetch=lambda dept: api.list_subjects(department_id=dept, status=EntityStatus.ACTIVE.value),
                empty_message="No subjects in this department",
                multiple=True,
            ),
        ], name="faculty-assignment")
        self.form.add_validator(self._subjects_in_department)
        self.editing_id: Optional[str] = None

    def _subjects_in_department(self, data: Dict[str, Any]) -> None:
        allowed = {option.id for option in self.chain["subjects"].options}
        stray = [s for s in data.get("subject_ids") or [] if str(s) not in allowed]
        if stray:
            raise ValidationError(
                "Subjects must belong to the faculty member's department", field="subject_ids"
            )

    async def load(self) -> LoadResult:
        await self.chain.load()
        return LoadResult(items=self.chain["department"].options, error=self.chain["department"].error)

    async def on_department_change(self, department_id: Optional[str]) -> None:
        await self.chain.on_parent_change("department", department_id)
        self.form.set_value("department_id", department_id)
        self.form.set_value("subject_ids", [])

    async def select_subjects(self, subject_ids: List[str]) -> None:
        await self.chain.select("subjects", list(subject_ids))
        self.form.set_value("subject_ids", list(subject_ids))

    async def open_edit(self, faculty: Dict[str, Any]) -> None:
        self.editing_id = str(field_of(faculty, "id"))
        self.form.load(faculty)
        await self.chain.prefill({
            "department": field_of(faculty, "department_id"),
            "subjects": list(field_of(faculty, "subject_ids") or []),
        })

    async def save(self) -> SubmitResult:
        api = self.ctx.api
        if self.editing_id:
            faculty_id = self.editing_id
            return await self.form.submit(lambda data: api.update(EntityType.FACULTY, faculty_id, data))
        return await self.form.submit(lambda data: api.create(EntityType.FACULTY, data))


# ==========================================
# Leaves
# ==========================================

class LeaveController:
    """Applicants see their own requests; reviewers see the pending queue"""

    def __init__(self, ctx):
        self.ctx = ctx
        self.workflow = LeaveWorkflow(ctx.api, ctx.outbox)
        self.form = FormEngine(LEAVE_FORM)
        self.items: List[Dict[str, Any]] = []
        self.stats: Dict[str, Any] = {}
        self.busy: Set[str] = set()

    @property
    def is_reviewer(self) -> bool:
        return self.ctx.session.role in (Role.ADMIN, Role.FACULTY)

    async def load(self, reviewing: Optional[bool] = None) -> LoadResult:
        api = self.ctx.api
        reviewing = self.is_reviewer if reviewing is None else reviewing
        if not reviewing:
            fetch = api.get_my_leaves
        elif self.ctx.session.role == Role.ADMIN:
            fetch = lambda: api.list_leaves(status="pending")
        else:
            fetch = lambda: api.get_faculty_leaves(status="pending")
        result = await _guarded_load("leaves", fetch)
        self.items = result.items
        return result

    async def load_stats(self) -> Dict[str, Any]:
        try:
            if self.ctx.session.role == Role.ADMIN:
                self.stats = await self.ctx.api.get_admin_leave_stats()
            else:
                self.stats = await self.ctx.api.get_leave_stats()
        except CampusDeskError as e:
            logger.warning(f"[leaves] stats failed: {e.message}")
            self.stats = {}
        return self.stats

    async def apply(self, values: Dict[str, Any]) -> SubmitResult:
        for name, value in values.items():
            self.form.set_value(name, value)
        result = await self.form.submit(self.workflow.apply)
        if result.ok:
            self.form.reset()
            await self.load(reviewing=False)
        return result

    def _find(self, leave_id: str) -> Optional[Dict[str, Any]]:
        return next((l for l in self.items if str(field_of(l, "id")) == str(leave_id)), None)

    async def _review(self, leave_id: str, action: Callable[[Any], Awaitable[Any]],
                      success: str) -> ActionResult:
        leave = self._find(leave_id)
        if leave is None:
            return ActionResult(ok=False, message="Leave request not found")
        if leave_id in self.busy:
            return ActionResult(ok=False, message="Action already in progress")
        self.busy.add(leave_id)
        try:
            data = await action(leave)
        except CampusDeskError as e:
            return ActionResult(ok=False, message=get_error_message(e))
        finally:
            self.busy.discard(leave_id)
        await self.load()
        return ActionResult(ok=True, message=success, data=data)

    async def approve(self, leave_id: str, remarks: Optional[str] = None) -> ActionResult:
        return await self._review(
            leave_id, lambda leave: self.workflow.approve(leave, remarks), "Leave approved"
        )

    async def reject(self, leave_id: str, remarks: Optional[str]) -> ActionResult:
        return await self._review(
            leave_id, lambda leave: self.workflow.reject(leave, remarks), "Leave rejected"
        )


# ==========================================
# Notices
# ==========================================

class NoticeBoardController:

    def __init__(self, ctx):
        self.ctx = ctx
        self.workflow = NoticeWorkflow(ctx.api, ctx.outbox)
        self.form = FormEngine(NOTICE_FORM)
        self.items: List[Dict[str, Any]] = []
        self.unread = 0

    async def load(self, search: Optional[str] = None) -> LoadResult:
        session = self.ctx.session
        if session.role == Role.ADMIN:
            result = await _guarded_load("notices", lambda: self.ctx.api.list_notices(search=search))
        else:
            result = await _guarded_load("notices", lambda: self.ctx.api.get_notice_feed(search=search))
            result.items = filter_notices(result.items, session.role, session.user_id)
        self.items = result.items
        self.unread = sum(1 for notice in self.items if field_of(notice, "is_read") is False)
        return result

    async def mark_read(self, notice_id: str) -> ActionResult:
        try:
            data = await self.ctx.api.mark_notice_read(notice_id)
        except CampusDeskError as e:
            return ActionResult(ok=False, message=get_error_message(e))
        await self.load()
        return ActionResult(ok=True, message="Notice marked as read", data=data)

    async def post(self, values: Dict[str, Any]) -> SubmitResult:
        role = self.ctx.session.role
        if role == Role.STUDENT:
            return SubmitResult(ok=False, error="Students cannot post notices")
        for name, value in values.items():
            self.form.set_value(name, value)
        result = await self.form.submit(lambda data: self.workflow.create(data, author_role=role))
        if result.ok:
            self.form.reset()
            await self.load()
        return result
