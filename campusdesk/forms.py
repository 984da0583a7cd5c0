"""
Typed form configuration and one generic form engine.

Each admin/faculty/student form is declared as a FormSpec (field name,
kind, rule); FormEngine resolves values, validates them synchronously
and runs the submit action with a `submitting` flag that is always
cleared, whatever the outcome.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from campusdesk.domain import (
    Audience, DurationUnit, FeeStatus, FeeType, LeaveType, NoticePriority,
    RequestType, SubjectType, enum_value, field_of,
)
from campusdesk.exceptions import CampusDeskError, ValidationError, get_error_message
from campusdesk.logging_config import logger
from campusdesk.validation import (
    MAX_COURSE_DURATION, MAX_CREDITS, MIN_COURSE_DURATION, MIN_CREDITS,
    parse_date, validate_leave_dates, validate_password, validate_reason,
)


class FieldKind(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    CHOICE = "choice"
    MULTI_CHOICE = "multi_choice"
    PASSWORD = "password"
    REFERENCE = "reference"  # id picked through a SelectorChain


Validator = Callable[[Any], Any]
CrossValidator = Callable[[Dict[str, Any]], None]


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind = FieldKind.TEXT
    label: Optional[str] = None
    required: bool = False
    default: Any = None
    choices: Optional[Sequence[str]] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    min_length: Optional[int] = None
    validators: Sequence[Validator] = ()

    @property
    def display_label(self) -> str:
        return self.label or self.name.replace("_", " ").capitalize()

    def coerce(self, value: Any) -> Any:
        """Convert raw input to the field's type; raises ValidationError"""
        if value is None or value == "" or value == []:
            if self.required:
                raise ValidationError(f"{self.display_label} is required", field=self.name)
            return [] if self.kind == FieldKind.MULTI_CHOICE else None

        value = enum_value(value)
        if self.kind in (FieldKind.TEXT, FieldKind.TEXTAREA, FieldKind.PASSWORD):
            value = str(value) if self.kind == FieldKind.PASSWORD else str(value).strip()
            if self.required and not value:
                raise ValidationError(f"{self.display_label} is required", field=self.name)
            if self.min_length and len(value) < self.min_length:
                raise ValidationError(
                    f"{self.display_label} must be at least {self.min_length} characters", field=self.name
                )
        elif self.kind in (FieldKind.INTEGER, FieldKind.DECIMAL):
            try:
                value = int(value) if self.kind == FieldKind.INTEGER else float(value)
            except (TypeError, ValueError):
                raise ValidationError(f"{self.display_label} must be a number", field=self.name)
            if self.min_value is not None and value < self.min_value:
                raise ValidationError(
                    f"{self.display_label} must be at least {self.min_value:g}", field=self.name
                )
            if self.max_value is not None and value > self.max_value:
                raise ValidationError(
                    f"{self.display_label} cannot exceed {self.max_value:g}", field=self.name
                )
        elif self.kind == FieldKind.BOOLEAN:
            value = value if isinstance(value, bool) else str(value).lower() in ("1", "true", "yes", "on")
        elif self.kind == FieldKind.DATE:
            value = parse_date(value, field=self.name).isoformat()
        elif self.kind == FieldKind.CHOICE:
            if self.choices and value not in self.choices:
                raise ValidationError(f"Invalid {self.display_label.lower()}", field=self.name)
        elif self.kind == FieldKind.MULTI_CHOICE:
            value = [enum_value(v) for v in (value if isinstance(value, (list, tuple, set)) else [value])]
            if self.choices and any(v not in self.choices for v in value):
                raise ValidationError(f"Invalid {self.display_label.lower()}", field=self.name)
        elif self.kind == FieldKind.REFERENCE:
            value = str(value)

        for validator in self.validators:
            result = validator(value)
            if result is not None:
                value = result
        return value


@dataclass(frozen=True)
class FormSpec:
    name: str
    fields: Sequence[FieldSpec]
    cross_validators: Sequence[CrossValidator] = ()

    def field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def defaults(self) -> Dict[str, Any]:
        return {f.name: ([] if f.kind == FieldKind.MULTI_CHOICE and f.default is None else f.default)
                for f in self.fields}


@dataclass
class SubmitResult:
    ok: bool
    data: Any = None
    error: Optional[str] = None
    field_errors: Dict[str, str] = field(default_factory=dict)


class FormEngine:
    """
    Generic form state machine: values, errors, submitting.

    Usage:
        form = FormEngine(SUBJECT_FORM)
        form.set_value("name", "Data Structures")
        result = await form.submit(lambda data: api.create(EntityType.SUBJECT, data))
    """

    def __init__(self, spec: FormSpec, initial: Optional[Dict[str, Any]] = None):
        self.spec = spec
        self.values: Dict[str, Any] = spec.defaults()
        self.errors: Dict[str, str] = {}
        self.submitting = False
        self.extra_validators: List[CrossValidator] = []
        if initial:
            self.load(initial)

    def set_value(self, name: str, value: Any) -> None:
        self.spec.field(name)
        self.values[name] = value
        self.errors.pop(name, None)

    def load(self, record: Any) -> None:
        """Pre-fill from an existing record (edit mode)"""
        for spec in self.spec.fields:
            value = field_of(record, spec.name)
            if value is not None:
                self.values[spec.name] = enum_value(value)

    def reset(self) -> None:
        self.values = self.spec.defaults()
        self.errors = {}
        self.submitting = False

    def add_validator(self, validator: CrossValidator) -> None:
        self.extra_validators.append(validator)

    def validate(self) -> Dict[str, Any]:
        """Coerced values; raises the first ValidationError and records all field errors"""
        cleaned: Dict[str, Any] = {}
        errors: Dict[str, str] = {}
        first: Optional[ValidationError] = None

        for spec in self.spec.fields:
            try:
                cleaned[spec.name] = spec.coerce(self.values.get(spec.name))
            except ValidationError as e:
                errors[e.field or spec.name] = e.message
                first = first or e

        if first is None:
            for validator in list(self.spec.cross_validators) + self.extra_validators:
                try:
                    validator(cleaned)
                except ValidationError as e:
                    errors[e.field or "__all__"] = e.message
                    first = first or e

        self.errors = errors
        if first is not None:
            raise first
        return cleaned

    async def submit(self, action: Callable[[Dict[str, Any]], Awaitable[Any]]) -> SubmitResult:
        """Validate then run `action`; never leaves `submitting` set"""
        if self.submitting:
            return SubmitResult(ok=False, error="Submission already in progress")
        try:
            data = self.validate()
        except ValidationError as e:
            return SubmitResult(ok=False, error=e.message, field_errors=dict(self.errors))

        self.submitting = True
        try:
            result = await action(data)
            return SubmitResult(ok=True, data=result)
        except ValidationError as e:
            if e.field:
                self.errors[e.field] = e.message
            return SubmitResult(ok=False, error=e.message, field_errors=dict(self.errors))
        except CampusDeskError as e:
            logger.warning(f"[{self.spec.name}] submit failed: {e.code}: {e.message}")
            return SubmitResult(ok=False, error=get_error_message(e))
        finally:
            self.submitting = False


# ==========================================
# Cross-field rules
# ==========================================

def _leave_dates(data: Dict[str, Any]) -> None:
    validate_leave_dates(data.get("from_date"), data.get("to_date"))


def _passwords_match(data: Dict[str, Any]) -> None:
    validate_password(data.get("password"), data.get("confirm_password"))


def _fee_paid_amount(data: Dict[str, Any]) -> None:
    if (data.get("paid_amount") or 0) > (data.get("amount") or 0):
        raise ValidationError("Paid amount cannot exceed the fee amount", field="paid_amount")


def _values(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


# ==========================================
# Form catalogue
# ==========================================

DEPARTMENT_FORM = FormSpec("department", [
    FieldSpec("name", required=True),
    FieldSpec("code", required=True, validators=[lambda v: v.upper()]),
    FieldSpec("description", FieldKind.TEXTAREA),
    FieldSpec("head_of_department_id", FieldKind.REFERENCE, label="Head of department"),
])

COURSE_FORM = FormSpec("course", [
    FieldSpec("name", required=True),
    FieldSpec("code", required=True, validators=[lambda v: v.upper()]),
    FieldSpec("department_id", FieldKind.REFERENCE, label="Department", required=True),
    FieldSpec("duration_value", FieldKind.INTEGER, label="Duration", required=True, default=4,
              min_value=MIN_COURSE_DURATION, max_value=MAX_COURSE_DURATION),
    FieldSpec("duration_unit", FieldKind.CHOICE, label="Duration unit", required=True,
              default=DurationUnit.YEAR.value, choices=_values(DurationUnit)),
    FieldSpec("description", FieldKind.TEXTAREA),
])

SUBJECT_FORM = FormSpec("subject", [
    FieldSpec("name", required=True),
    FieldSpec("code", required=True, validators=[lambda v: v.upper()]),
    FieldSpec("course_id", FieldKind.REFERENCE, label="Course", required=True),
    FieldSpec("semester", FieldKind.INTEGER, required=True, default=1, min_value=1),
    FieldSpec("credits", FieldKind.INTEGER, default=3, min_value=MIN_CREDITS, max_value=MAX_CREDITS),
    FieldSpec("type", FieldKind.CHOICE, default=SubjectType.THEORY.value, choices=_values(SubjectType)),
    FieldSpec("faculty_id", FieldKind.REFERENCE, label="Faculty"),
    FieldSpec("description", FieldKind.TEXTAREA),
])

STUDENT_FORM = FormSpec("student", [
    FieldSpec("name", required=True),
    FieldSpec("email", required=True, validators=[lambda v: v.lower()]),
    FieldSpec("roll_no", label="Roll number", required=True, validators=[lambda v: v.upper()]),
    FieldSpec("department_id", FieldKind.REFERENCE, label="Department", required=True),
    FieldSpec("course_id", FieldKind.REFERENCE, label="Course", required=True),
    FieldSpec("year", FieldKind.INTEGER, required=True, default=1, min_value=1, max_value=6),
    FieldSpec("semester", FieldKind.INTEGER, min_value=1),
    FieldSpec("section", default="A"),
    FieldSpec("phone"),
])

FACULTY_FORM = FormSpec("faculty", [
    FieldSpec("name", required=True),
    FieldSpec("email", required=True, validators=[lambda v: v.lower()]),
    FieldSpec("employee_id", label="Employee ID", required=True, validators=[lambda v: v.upper()]),
    FieldSpec("department_id", FieldKind.REFERENCE, label="Department", required=True),
    FieldSpec("designation", required=True, default="Assistant Professor"),
    FieldSpec("qualification"),
    FieldSpec("phone"),
    FieldSpec("subject_ids", FieldKind.MULTI_CHOICE, label="Subjects"),
])

NOTICE_FORM = FormSpec("notice", [
    FieldSpec("title", required=True),
    FieldSpec("content", FieldKind.TEXTAREA, required=True),
    FieldSpec("target_audience", FieldKind.CHOICE, label="Audience",
              default=Audience.ALL.value, choices=_values(Audience)),
    FieldSpec("priority", FieldKind.CHOICE, default=NoticePriority.MEDIUM.value,
              choices=_values(NoticePriority)),
    FieldSpec("is_important", FieldKind.BOOLEAN, label="Important", default=False),
    FieldSpec("expires_at", FieldKind.DATE, label="Expires on"),
])

LEAVE_FORM = FormSpec("leave", [
    FieldSpec("leave_type", FieldKind.CHOICE, label="Leave type", required=True,
              default=LeaveType.CASUAL.value, choices=_values(LeaveType)),
    FieldSpec("request_type", FieldKind.CHOICE, label="Request type",
              default=RequestType.LEAVE.value, choices=_values(RequestType)),
    FieldSpec("from_date", FieldKind.DATE, label="Start date", required=True),
    FieldSpec("to_date", FieldKind.DATE, label="End date", required=True),
    FieldSpec("reason", FieldKind.TEXTAREA, required=True, validators=[validate_reason]),
], cross_validators=[_leave_dates])

PASSWORD_RESET_FORM = FormSpec("password_reset", [
    FieldSpec("password", FieldKind.PASSWORD, required=True),
    FieldSpec("confirm_password", FieldKind.PASSWORD, label="Confirm password", required=True),
], cross_validators=[_passwords_match])

TRANSPORT_FORM = FormSpec("transport_route", [
    FieldSpec("bus_number", label="Bus number", required=True, validators=[lambda v: v.upper()]),
    FieldSpec("route_name", label="Route name", required=True),
    FieldSpec("stops", FieldKind.MULTI_CHOICE),
    FieldSpec("driver_name", label="Driver name"),
    FieldSpec("driver_phone", label="Driver phone"),
    FieldSpec("capacity", FieldKind.INTEGER, default=40, min_value=1),
    FieldSpec("departure_time", label="Departure time"),
    FieldSpec("return_time", label="Return time"),
    FieldSpec("is_active", FieldKind.BOOLEAN, label="Active", default=True),
])

FEE_FORM = FormSpec("fee", [
    FieldSpec("student_id", FieldKind.REFERENCE, label="Student", required=True),
    FieldSpec("fee_type", FieldKind.CHOICE, label="Fee type", required=True,
              default=FeeType.TUITION.value, choices=_values(FeeType)),
    FieldSpec("amount", FieldKind.DECIMAL, required=True, min_value=0),
    FieldSpec("paid_amount", FieldKind.DECIMAL, label="Paid amount", default=0, min_value=0),
    FieldSpec("semester", FieldKind.INTEGER, min_value=1),
    FieldSpec("academic_year", label="Academic year", default=f"{date.today().year}-{date.today().year + 1}"),
    FieldSpec("due_date", FieldKind.DATE, label="Due date", required=True),
    FieldSpec("status", FieldKind.CHOICE, default=FeeStatus.PENDING.value, choices=_values(FeeStatus)),
], cross_validators=[_fee_paid_amount])
