"""
Unit tests for the CampusDesk REST client
"""
import json

import httpx
import pytest

from campusdesk.api_client import CampusAPIClient
from campusdesk.config import ConsoleConfig
from campusdesk.domain import EntityType
from campusdesk.exceptions import (
    DependencyConflict, InvalidTransition, RemoteOperationFailed, ValidationError,
)


def error_body(code: str, message: str, details: dict = None) -> dict:
    return {'success': False, 'error': {'code': code, 'message': message, 'details': details or {}}}


class Recorder:
    """MockTransport handler that replays a fixed response and keeps the requests"""

    def __init__(self, status_code: int = 200, body=None, text: str = None):
        self.status_code = status_code
        self.body = body
        self.text = text
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        if self.body is None:
            return httpx.Response(self.status_code)
        return httpx.Response(self.status_code, json=self.body)


@pytest.fixture
def config() -> ConsoleConfig:
    return ConsoleConfig(api_base_url='http://campus.test/api/v1/', user_id='fac-1', role='faculty')


def client_for(config: ConsoleConfig, handler) -> CampusAPIClient:
    return CampusAPIClient(config, transport=httpx.MockTransport(handler))


class TestRequests:
    """URLs, headers and filters"""

    @pytest.mark.asyncio
    async def test_actor_headers_and_filters(self, config):
        recorder = Recorder(body=[{'id': 'c1'}])

        async with client_for(config, recorder) as api:
            courses = await api.list_courses(department_id='d1', status=None)

        request = recorder.requests[0]
        assert courses == [{'id': 'c1'}]
        assert request.url.path == '/api/v1/courses'
        assert dict(request.url.params) == {'department_id': 'd1'}
        assert request.headers['X-User-Id'] == 'fac-1'
        assert request.headers['X-User-Role'] == 'faculty'

    @pytest.mark.asyncio
    async def test_reject_sends_remarks(self, config):
        recorder = Recorder(body={'id': 'L1', 'status': 'rejected'})

        async with client_for(config, recorder) as api:
            await api.reject_leave('L1', remarks='Exams that week')

        request = recorder.requests[0]
        assert request.method == 'PATCH'
        assert request.url.path == '/api/v1/leaves/L1/reject'
        assert json.loads(request.content) == {'remarks': 'Exams that week'}

    @pytest.mark.asyncio
    async def test_lifecycle_endpoints(self, config):
        recorder = Recorder(body={'status': 'inactive'})

        async with client_for(config, recorder) as api:
            await api.toggle_status(EntityType.DEPARTMENT, 'd1')
            await api.deactivate('courses', 'c1')

        assert [r.url.path for r in recorder.requests] == [
            '/api/v1/departments/d1/toggle-status',
            '/api/v1/courses/c1/deactivate',
        ]

    @pytest.mark.asyncio
    async def test_no_content(self, config):
        async with client_for(config, Recorder(status_code=204)) as api:
            assert await api.delete(EntityType.SUBJECT, 's1') is None

    @pytest.mark.asyncio
    async def test_emit_event(self, config):
        recorder = Recorder(status_code=202, body={'success': True})

        async with client_for(config, recorder) as api:
            await api.emit_event('post-notice', {'title': 'Holiday'})

        assert json.loads(recorder.requests[0].content) == {
            'topic': 'post-notice', 'payload': {'title': 'Holiday'},
        }

    @pytest.mark.asyncio
    async def test_mark_notice_read(self, config):
        recorder = Recorder(body={'notice_id': 'n1', 'user_id': 'fac-1', 'read_at': '2026-03-10T09:00:00'})

        async with client_for(config, recorder) as api:
            read = await api.mark_notice_read('n1')

        request = recorder.requests[0]
        assert request.method == 'PATCH'
        assert request.url.path == '/api/v1/notices/n1/read'
        assert read['notice_id'] == 'n1'

    def test_anonymous_session_sends_no_user_id(self):
        api = CampusAPIClient(ConsoleConfig())

        headers = api._get_headers()

        assert 'X-User-Id' not in headers
        assert headers['X-User-Role'] == 'admin'


class TestErrorMapping:
    """Server error bodies back onto the shared taxonomy"""

    @pytest.mark.asyncio
    async def test_validation_error(self, config):
        body = error_body('VALIDATION_ERROR', 'Semester cannot exceed 4 for this course', {'field': 'semester'})

        async with client_for(config, Recorder(400, body)) as api:
            with pytest.raises(ValidationError) as exc_info:
                await api.create(EntityType.SUBJECT, {'semester': 5})

        assert exc_info.value.message == 'Semester cannot exceed 4 for this course'
        assert exc_info.value.field == 'semester'

    @pytest.mark.asyncio
    async def test_invalid_transition(self, config):
        body = error_body('INVALID_TRANSITION', 'Leave is already approved',
                          {'current_state': 'approved', 'target_state': 'rejected'})

        async with client_for(config, Recorder(400, body)) as api:
            with pytest.raises(InvalidTransition) as exc_info:
                await api.reject_leave('L1', remarks='Late')

        assert exc_info.value.current_state == 'approved'

    @pytest.mark.asyncio
    async def test_dependency_conflict(self, config):
        body = error_body('DEPENDENCY_CONFLICT', 'Cannot delete course: it still has 2 students', {
            'entity_type': 'course', 'entity_id': 'c1',
            'dependencies': {'courses': 0, 'subjects': 0, 'students': 2, 'faculty': 0},
        })

        async with client_for(config, Recorder(409, body)) as api:
            with pytest.raises(DependencyConflict) as exc_info:
                await api.delete_with_dependency_check(EntityType.COURSE, 'c1')

        conflict = exc_info.value
        assert conflict.message == 'Cannot delete course: it still has 2 students'
        assert conflict.entity_type == 'course'
        assert conflict.dependencies.students == 2

    @pytest.mark.asyncio
    async def test_not_found_keeps_status_and_cause(self, config):
        body = error_body('NOT_FOUND', "Leave with ID 'L9' not found")

        async with client_for(config, Recorder(404, body)) as api:
            with pytest.raises(RemoteOperationFailed) as exc_info:
                await api.approve_leave('L9')

        error = exc_info.value
        assert error.status_code == 404
        assert error.code == 'NOT_FOUND'
        assert isinstance(error.cause, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_plain_text_error(self, config):
        async with client_for(config, Recorder(502, text='Bad Gateway')) as api:
            with pytest.raises(RemoteOperationFailed) as exc_info:
                await api.list_departments()

        assert exc_info.value.message == 'Bad Gateway'
        assert exc_info.value.code == 'REMOTE_OPERATION_FAILED'

    @pytest.mark.asyncio
    async def test_non_json_success_body(self, config):
        async with client_for(config, Recorder(200, text='<html>gateway</html>')) as api:
            with pytest.raises(RemoteOperationFailed) as exc_info:
                await api.list_departments()

        assert exc_info.value.message == 'Unexpected response from server'
        assert exc_info.value.status_code == 200
        assert isinstance(exc_info.value.cause, ValueError)

    @pytest.mark.asyncio
    async def test_request_validation_detail(self, config):
        body = {'detail': [{'loc': ['body', 'name'], 'msg': 'field required'}]}

        async with client_for(config, Recorder(422, body)) as api:
            with pytest.raises(RemoteOperationFailed) as exc_info:
                await api.create(EntityType.DEPARTMENT, {})

        assert exc_info.value.message == 'field required'

    @pytest.mark.asyncio
    async def test_network_failure(self, config):
        def unreachable(request):
            raise httpx.ConnectError('Connection refused', request=request)

        async with client_for(config, unreachable) as api:
            with pytest.raises(RemoteOperationFailed) as exc_info:
                await api.get_my_leaves()

        assert exc_info.value.message == 'Unable to reach the server. Please try again.'
        assert isinstance(exc_info.value.cause, httpx.ConnectError)
        assert exc_info.value.status_code is None
