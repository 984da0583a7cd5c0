"""
CampusDesk REST client.

Thin async wrapper over the backend's /api/v1 boundary. Successful calls
return decoded JSON; failures are mapped back onto the shared error
taxonomy using the `code` of the server's error body:

    VALIDATION_ERROR     -> ValidationError
    INVALID_TRANSITION   -> InvalidTransition
    DEPENDENCY_CONFLICT  -> DependencyConflict (with breakdown)
    anything else        -> RemoteOperationFailed (cause + status attached)
"""

from typing import Any, Dict, List, Optional

import httpx

from campusdesk.config import ConsoleConfig
from campusdesk.domain import EntityType, enum_value
from campusdesk.exceptions import (
    DEFAULT_ERROR_MESSAGE, DependencyBreakdown, DependencyConflict,
    InvalidTransition, RemoteOperationFailed, ValidationError, get_error_message,
)
from campusdesk.logging_config import logger


def _clean(params: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unset filters and unwrap enums"""
    return {k: enum_value(v) for k, v in params.items() if v not in (None, "")}


class CampusAPIClient:
    """
    Usage:
        async with CampusAPIClient(config) as api:
            departments = await api.list_departments(status="active")
    """

    def __init__(
        self,
        config: Optional[ConsoleConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or ConsoleConfig()
        self._client = httpx.AsyncClient(
            base_url=self.config.api_base_url.rstrip("/"),
            timeout=self.config.timeout,
            headers=self._get_headers(),
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.config.user_id:
            headers["X-User-Id"] = str(self.config.user_id)
        if self.config.role:
            headers["X-User-Role"] = str(self.config.role)
        return headers

    # ==================== Transport ====================

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method, endpoint, json=json, params=_clean(params or {})
            )
        except httpx.HTTPError as e:
            logger.warning(f"{method} {endpoint} failed: {type(e).__name__}: {e}")
            raise RemoteOperationFailed(
                "Unable to reach the server. Please try again.", cause=e
            )

        if response.is_success:
            if response.status_code == 204 or not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                logger.warning(f"{method} {endpoint} -> {response.status_code} non-JSON body")
                raise RemoteOperationFailed(
                    "Unexpected response from server", cause=e, status_code=response.status_code
                )

        raise self._to_error(method, endpoint, response)

    def _to_error(self, method: str, endpoint: str, response: httpx.Response) -> Exception:
        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text}

        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            code = error.get("code")
            message = error.get("message") or DEFAULT_ERROR_MESSAGE
            details = error.get("details") or {}
        else:
            code = None
            message = get_error_message(body, DEFAULT_ERROR_MESSAGE)
            details = {}

        logger.info(f"{method} {endpoint} -> {response.status_code} {code or ''} {message}")

        if code == "VALIDATION_ERROR":
            return ValidationError(message, field=details.get("field"))
        if code == "INVALID_TRANSITION":
            return InvalidTransition(
                message,
                current_state=details.get("current_state"),
                target_state=details.get("target_state"),
            )
        if code == "DEPENDENCY_CONFLICT":
            return DependencyConflict(
                details.get("entity_type", "record"),
                details.get("entity_id", ""),
                DependencyBreakdown.from_dict(details.get("dependencies")),
                message=message,
            )
        return RemoteOperationFailed(
            message,
            cause=httpx.HTTPStatusError(message, request=response.request, response=response),
            status_code=response.status_code,
            code=code or "REMOTE_OPERATION_FAILED",
            details=details,
        )

    # ==================== Health ====================

    async def health_check(self) -> Dict[str, Any]:
        return await self._request("GET", "/health")

    # ==================== Listings ====================

    async def list_departments(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self._request("GET", "/departments", params={"status": status})

    async def list_courses(self, department_id: Optional[str] = None,
                           status: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self._request("GET", "/courses", params={
            "department_id": department_id, "status": status,
        })

    async def list_subjects(self, course_id: Optional[str] = None, department_id: Optional[str] = None,
                            status: Optional[str] = None, semester: Optional[int] = None) -> List[Dict[str, Any]]:
        return await self._request("GET", "/subjects", params={
            "course_id": course_id, "department_id": department_id,
            "status": status, "semester": semester,
        })

    async def list_faculty(self, department_id: Optional[str] = None,
                           status: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self._request("GET", "/faculty", params={
            "department_id": department_id, "status": status,
        })

    async def list_students(self, department_id: Optional[str] = None, year: Optional[int] = None,
                            course_id: Optional[str] = None, status: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self._request("GET", "/students", params={
            "department_id": department_id, "year": year,
            "course_id": course_id, "status": status,
        })

    async def list_transport_routes(self, is_active: Optional[bool] = None) -> List[Dict[str, Any]]:
        return await self._request("GET", "/transport", params={"is_active": is_active})

    async def list_fees(self, student_id: Optional[str] = None,
                        status: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self._request("GET", "/fees", params={"student_id": student_id, "status": status})

    async def list_entities(self, entity_type: EntityType, **filters) -> Any:
        return await self._request("GET", f"/{EntityType(entity_type).value}", params=filters)

    # ==================== Generic CRUD ====================

    async def get(self, entity_type: EntityType, entity_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/{EntityType(entity_type).value}/{entity_id}")

    async def create(self, entity_type: EntityType, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", f"/{EntityType(entity_type).value}", json=data)

    async def update(self, entity_type: EntityType, entity_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/{EntityType(entity_type).value}/{entity_id}", json=data)

    async def delete(self, entity_type: EntityType, entity_id: str) -> Any:
        return await self._request("DELETE", f"/{EntityType(entity_type).value}/{entity_id}")

    # ==================== Status lifecycle ====================

    async def toggle_status(self, entity_type: EntityType, entity_id: str) -> Dict[str, Any]:
        return await self._request("PATCH", f"/{EntityType(entity_type).value}/{entity_id}/toggle-status")

    async def deactivate(self, entity_type: EntityType, entity_id: str) -> Dict[str, Any]:
        return await self._request("PATCH", f"/{EntityType(entity_type).value}/{entity_id}/deactivate")

    async def activate(self, entity_type: EntityType, entity_id: str) -> Dict[str, Any]:
        return await self._request("PATCH", f"/{EntityType(entity_type).value}/{entity_id}/activate")

    async def delete_with_dependency_check(self, entity_type: EntityType, entity_id: str) -> Any:
        """DELETE that surfaces a 409 as DependencyConflict"""
        return await self.delete(entity_type, entity_id)

    async def assign_subject_faculty(self, subject_id: str, faculty_id: Optional[str]) -> Dict[str, Any]:
        return await self._request(
            "PATCH", f"/subjects/{subject_id}/assign-faculty", json={"faculty_id": faculty_id}
        )

    async def reset_password(self, entity_type: EntityType, entity_id: str, password: str) -> Dict[str, Any]:
        return await self._request(
            "POST", f"/{EntityType(entity_type).value}/{entity_id}/reset-password",
            json={"password": password},
        )

    # ==================== Leaves ====================

    async def apply_leave(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/leaves", json=payload)

    async def approve_leave(self, leave_id: str, remarks: Optional[str] = None) -> Dict[str, Any]:
        return await self._request("PATCH", f"/leaves/{leave_id}/approve", json={"remarks": remarks})

    async def reject_leave(self, leave_id: str, remarks: Optional[str] = None) -> Dict[str, Any]:
        return await self._request("PATCH", f"/leaves/{leave_id}/reject", json={"remarks": remarks})

    async def get_my_leaves(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self._request("GET", "/leaves/my", params={"status": status})

    async def get_faculty_leaves(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """Student requests awaiting a reviewer"""
        return await self._request("GET", "/leaves/faculty", params={"status": status})

    async def list_leaves(self, status: Optional[str] = None,
                          applicant_role: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self._request("GET", "/leaves", params={
            "status": status, "applicant_role": applicant_role,
        })

    async def get_leave_stats(self) -> Dict[str, Any]:
        return await self._request("GET", "/leaves/stats")

    async def get_admin_leave_stats(self) -> Dict[str, Any]:
        return await self._request("GET", "/leaves/admin-stats")

    async def get_leave_analytics(self) -> Dict[str, Any]:
        return await self._request("GET", "/leaves/analytics")

    # ==================== Notices ====================

    async def list_notices(self, target_audience: Optional[str] = None, search: Optional[str] = None,
                           page: int = 1, limit: Optional[int] = None) -> Dict[str, Any]:
        return await self._request("GET", "/notices", params={
            "target_audience": target_audience, "search": search, "page": page, "limit": limit,
        })

    async def get_notice_feed(self, search: Optional[str] = None, page: int = 1,
                              limit: Optional[int] = None) -> Dict[str, Any]:
        return await self._request("GET", "/notices/feed", params={
            "search": search, "page": page, "limit": limit,
        })

    async def mark_notice_read(self, notice_id: str) -> Dict[str, Any]:
        return await self._request("PATCH", f"/notices/{notice_id}/read")

    # ==================== Events ====================

    async def emit_event(self, topic: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/events", json={"topic": topic, "payload": payload})
