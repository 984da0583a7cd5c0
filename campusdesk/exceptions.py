"""
Custom Exceptions for CampusDesk
================================

One error taxonomy shared by the console package and the backend service:

- ValidationError: caught before any network or storage effect
- InvalidTransition: the record's lifecycle does not allow the operation
- DependencyConflict: a hard delete is blocked by live dependents
- RemoteOperationFailed: network/server failure, with the raw cause attached

Usage:
    from campusdesk.exceptions import ValidationError, get_error_message

    try:
        await workflow.reject(leave, remarks="")
    except ValidationError as e:
        console.print(get_error_message(e))
"""

from typing import Optional, Any, Dict


DEFAULT_ERROR_MESSAGE = "An unexpected error occurred"


class CampusDeskError(Exception):
    """Base exception for all CampusDesk errors"""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Client-detectable Errors
# ============================================

class ValidationError(CampusDeskError):
    """Input validation failed"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)
        self.field = field


class InvalidTransition(CampusDeskError):
    """Lifecycle state does not permit the requested operation"""

    def __init__(
        self,
        message: str,
        current_state: Optional[str] = None,
        target_state: Optional[str] = None
    ):
        super().__init__(
            message,
            code="INVALID_TRANSITION",
            details={"current_state": current_state, "target_state": target_state}
        )
        self.current_state = current_state
        self.target_state = target_state


# ============================================
# Dependency Errors (409-type)
# ============================================

class DependencyBreakdown:
    """Counts of live records that reference an entity"""

    CATEGORIES = ("courses", "subjects", "students", "faculty")

    def __init__(self, courses: int = 0, subjects: int = 0, students: int = 0, faculty: int = 0):
        self.courses = courses
        self.subjects = subjects
        self.students = students
        self.faculty = faculty

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DependencyBreakdown":
        data = data or {}
        return cls(**{name: int(data.get(name) or 0) for name in cls.CATEGORIES})

    @property
    def total(self) -> int:
        return self.courses + self.subjects + self.students + self.faculty

    def to_dict(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in self.CATEGORIES}

    def describe(self) -> str:
        """Human readable summary, e.g. '2 courses, 1 student'"""
        parts = []
        for name in self.CATEGORIES:
            count = getattr(self, name)
            if count:
                label = name if count != 1 or name == "faculty" else name[:-1]
                parts.append(f"{count} {label}")
        return ", ".join(parts) or "no dependents"

    def __eq__(self, other) -> bool:
        return isinstance(other, DependencyBreakdown) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"<DependencyBreakdown {self.to_dict()}>"


class DependencyConflict(CampusDeskError):
    """Hard delete blocked by existing dependent records"""

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        dependencies: DependencyBreakdown,
        message: Optional[str] = None
    ):
        super().__init__(
            message or f"Cannot delete {entity_type}: it still has {dependencies.describe()}",
            code="DEPENDENCY_CONFLICT",
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "dependencies": dependencies.to_dict(),
                "suggestion": f"Deactivate the {entity_type} instead to preserve its records",
            }
        )
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.dependencies = dependencies


# ============================================
# Remote Errors
# ============================================

class RemoteOperationFailed(CampusDeskError):
    """Network or server failure; `cause` keeps the raw error for logging"""

    def __init__(
        self,
        message: str = DEFAULT_ERROR_MESSAGE,
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
        code: str = "REMOTE_OPERATION_FAILED",
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, code=code, details=details)
        self.cause = cause
        self.status_code = status_code


# ============================================
# Server-side Errors
# ============================================

class ResourceNotFoundError(CampusDeskError):
    """Base class for not found errors"""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code="NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class DuplicateResourceError(CampusDeskError):
    """A unique field already holds this value"""

    def __init__(self, resource_type: str, field: str, value: Any):
        super().__init__(
            f"{resource_type} with {field} '{value}' already exists",
            code="DUPLICATE_RESOURCE",
            details={"resource_type": resource_type, "field": field}
        )


class AuthorizationError(CampusDeskError):
    """Actor not allowed to perform this action"""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


# ============================================
# Display helpers
# ============================================

def get_error_message(error: Any, fallback: str = "Something went wrong") -> str:
    """
    Normalize any error value into a display string.

    Never returns a raw object: dicts are searched for `message`/`detail`/`error`,
    exceptions use their message, anything else falls back.
    """
    if error is None:
        return fallback
    if isinstance(error, str):
        return error or fallback
    if isinstance(error, CampusDeskError):
        return error.message or fallback
    if isinstance(error, dict):
        for key in ("message", "detail", "error"):
            value = error.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict):
                return get_error_message(value, fallback)
            if isinstance(value, list) and value:
                first = value[0]
                if isinstance(first, dict) and first.get("msg"):
                    return str(first["msg"])
        return fallback
    if isinstance(error, BaseException):
        return str(error) or fallback
    return fallback
