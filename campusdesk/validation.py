"""
Shared validation helpers.

Pure functions; every failure raises ValidationError before any network
or storage effect happens. The backend calls the same helpers so both
sides report identical messages.
"""

from datetime import date, datetime, timezone
from typing import Any, Optional, Tuple, Union

from campusdesk.domain import DurationUnit, enum_value
from campusdesk.exceptions import ValidationError


MIN_REASON_LENGTH = 10
MIN_PASSWORD_LENGTH = 6
MIN_COURSE_DURATION = 1
MAX_COURSE_DURATION = 6
MIN_CREDITS = 1
MAX_CREDITS = 6

DateLike = Union[date, datetime, str]


# ==========================================
# Dates
# ==========================================

def parse_date(value: DateLike, field: Optional[str] = None) -> date:
    """Accept a date, datetime or ISO 'YYYY-MM-DD' string"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise ValidationError("Invalid date format", field=field)


def parse_datetime(value: DateLike, field: Optional[str] = None) -> datetime:
    """Naive UTC datetime from a datetime or ISO-8601 text; offsets are converted"""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError("Invalid date format", field=field)
    if not isinstance(value, datetime):
        raise ValidationError("Invalid date format", field=field)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def validate_leave_dates(
    from_date: Optional[DateLike],
    to_date: Optional[DateLike],
    today: Optional[date] = None
) -> Tuple[date, date]:
    """
    Validate a leave date range.

    Checks run in a fixed order so the first message is deterministic:
    presence, format, ordering, then not-in-the-past.
    """
    if not from_date or not to_date:
        raise ValidationError("Please select both start and end dates", field="from_date")

    start = parse_date(from_date, field="from_date")
    end = parse_date(to_date, field="to_date")

    if start > end:
        raise ValidationError("Start date cannot be after end date", field="from_date")

    if start < (today or date.today()):
        raise ValidationError("Start date cannot be in the past", field="from_date")

    return start, end


def days_between(from_date: DateLike, to_date: DateLike) -> int:
    """Inclusive number of days covered by a range"""
    return (parse_date(to_date) - parse_date(from_date)).days + 1


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    return a_start <= b_end and b_start <= a_end


# ==========================================
# Free text
# ==========================================

def validate_reason(reason: Optional[str]) -> str:
    text = (reason or "").strip()
    if len(text) < MIN_REASON_LENGTH:
        raise ValidationError(
            f"Reason must be at least {MIN_REASON_LENGTH} characters", field="reason"
        )
    return text


def validate_remarks(remarks: Optional[str]) -> str:
    """Remarks are mandatory when rejecting"""
    text = (remarks or "").strip()
    if not text:
        raise ValidationError("Remarks are required when rejecting a leave", field="remarks")
    return text


def validate_password(password: Optional[str], confirm: Optional[str] = None) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
        )
    if confirm is not None and confirm != password:
        raise ValidationError("Passwords do not match", field="confirm_password")
    return password


def normalize_code(code: Optional[str], field: str = "code") -> str:
    value = (code or "").strip().upper()
    if not value:
        raise ValidationError("Code is required", field=field)
    return value


def require_text(value: Optional[str], label: str, field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{label} is required", field=field)
    return text


# ==========================================
# Numbers
# ==========================================

def _as_int(value: Any, field: str, label: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a whole number", field=field)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a whole number", field=field)


def total_semesters(duration_value: Any, duration_unit: Any) -> int:
    """A year-based course has two semesters per year"""
    value = _as_int(duration_value, "duration_value", "Duration")
    if enum_value(duration_unit) == DurationUnit.YEAR.value:
        return value * 2
    return value


def validate_semester(semester: Any, bound: int) -> int:
    value = _as_int(semester, "semester", "Semester")
    if value < 1:
        raise ValidationError("Semester must be at least 1", field="semester")
    if value > bound:
        raise ValidationError(
            f"Semester cannot exceed {bound} for this course", field="semester"
        )
    return value


def validate_course_duration(duration_value: Any) -> int:
    value = _as_int(duration_value, "duration_value", "Duration")
    if not MIN_COURSE_DURATION <= value <= MAX_COURSE_DURATION:
        raise ValidationError(
            f"Duration must be between {MIN_COURSE_DURATION} and {MAX_COURSE_DURATION}",
            field="duration_value"
        )
    return value


def validate_credits(credits: Any) -> int:
    value = _as_int(credits, "credits", "Credits")
    if not MIN_CREDITS <= value <= MAX_CREDITS:
        raise ValidationError(
            f"Credits must be between {MIN_CREDITS} and {MAX_CREDITS}", field="credits"
        )
    return value


def default_semester_for_year(year: Any) -> int:
    """Students start a year in its odd semester"""
    value = _as_int(year, "year", "Year")
    if value < 1:
        raise ValidationError("Year must be at least 1", field="year")
    return value * 2 - 1
