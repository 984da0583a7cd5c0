"""
Exceptions for the CampusDesk API
=================================

The error taxonomy itself lives in `campusdesk.exceptions` so the console
and the API raise and recognise the same types. This module adds the
HTTP mapping and the response body format.

Usage:
    from app.core.exceptions import ResourceNotFoundError, DependencyConflict

    if not department:
        raise ResourceNotFoundError("Department", department_id)
"""

from typing import Any, Dict

from campusdesk.exceptions import (
    AuthorizationError,
    CampusDeskError,
    DependencyBreakdown,
    DependencyConflict,
    DuplicateResourceError,
    InvalidTransition,
    ResourceNotFoundError,
    ValidationError,
)


# ============================================
# HTTP status per error code
# ============================================

STATUS_CODES: Dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "INVALID_TRANSITION": 400,
    "NOT_AUTHORIZED": 403,
    "NOT_FOUND": 404,
    "DEPENDENCY_CONFLICT": 409,
    "DUPLICATE_RESOURCE": 409,
}


def status_code_for(error: CampusDeskError) -> int:
    return STATUS_CODES.get(error.code, 500)


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: CampusDeskError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }


__all__ = [
    "AuthorizationError",
    "CampusDeskError",
    "DependencyBreakdown",
    "DependencyConflict",
    "DuplicateResourceError",
    "InvalidTransition",
    "ResourceNotFoundError",
    "ValidationError",
    "STATUS_CODES",
    "status_code_for",
    "error_response",
]
