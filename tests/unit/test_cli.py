"""
Unit tests for the campusdesk command line
"""
import json

import httpx
import pytest

from campusdesk import main as cli
from campusdesk.config import ConsoleConfig


class FakeBackend:
    """Routes MockTransport requests to canned responses keyed by (method, path)"""

    def __init__(self, routes: dict):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path.replace('/api/v1', '', 1))
        status_code, body = self.routes.get(key, (404, {
            'success': False, 'error': {'code': 'NOT_FOUND', 'message': 'Not Found', 'details': {}},
        }))
        return httpx.Response(status_code, json=body)

    def paths(self, method: str = None) -> list:
        return [
            r.url.path for r in self.requests if method is None or r.method == method
        ]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ConsoleConfig.ENV_MAPPINGS:
        monkeypatch.delenv(name, raising=False)


def parse(*argv):
    return cli.create_parser().parse_args(list(argv))


class TestParser:

    def test_registry_delete(self):
        args = parse('departments', 'delete', 'd1', '--yes')

        assert (args.command, args.action, args.id, args.yes) == ('departments', 'delete', 'd1', True)

    def test_reject_requires_remarks(self):
        with pytest.raises(SystemExit):
            parse('leaves', 'reject', 'L1')

    def test_unknown_role(self):
        with pytest.raises(SystemExit):
            parse('--role', 'principal', 'leaves', 'mine')

    def test_build_config_overrides(self):
        args = parse('--role', 'faculty', '--user-id', 'F1', '--json', '--verbose',
                     '--server-url', 'http://campus.test/api/v1', 'leaves', 'pending')

        config = cli.build_config(args)

        assert config.role == 'faculty'
        assert config.user_id == 'F1'
        assert config.output_format == 'json'
        assert config.log_level == 'INFO'
        assert config.api_base_url == 'http://campus.test/api/v1'

    def test_no_command_prints_help(self):
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])

        assert exc_info.value.code == 0


class TestDispatch:
    """Commands against a mocked backend"""

    @pytest.fixture
    def config(self) -> ConsoleConfig:
        return ConsoleConfig(api_base_url='http://campus.test/api/v1', user_id='adm-1', role='admin',
                             output_format='json')

    @pytest.mark.asyncio
    async def test_list(self, config):
        backend = FakeBackend({
            ('GET', '/departments'): (200, [{'id': 'd1', 'code': 'CSE', 'name': 'Computer Science',
                                             'status': 'active'}]),
        })

        code = await cli.dispatch(config, parse('departments', 'list', '--status', 'active'),
                                  transport=httpx.MockTransport(backend))

        assert code == 0
        assert backend.requests[0].url.params['status'] == 'active'

    @pytest.mark.asyncio
    async def test_blocked_delete_deactivates_with_yes(self, config):
        backend = FakeBackend({
            ('DELETE', '/courses/c1'): (409, {'success': False, 'error': {
                'code': 'DEPENDENCY_CONFLICT',
                'message': 'Cannot delete course: it still has 3 students',
                'details': {'entity_type': 'course', 'entity_id': 'c1',
                            'dependencies': {'courses': 0, 'subjects': 0, 'students': 3, 'faculty': 0}},
            }}),
            ('PATCH', '/courses/c1/deactivate'): (200, {'id': 'c1', 'status': 'inactive'}),
            ('GET', '/courses'): (200, []),
        })

        code = await cli.dispatch(config, parse('courses', 'delete', 'c1', '--yes'),
                                  transport=httpx.MockTransport(backend))

        assert code == 0
        assert '/api/v1/courses/c1/deactivate' in backend.paths('PATCH')

    @pytest.mark.asyncio
    async def test_blocked_delete_declined(self, config, monkeypatch):
        monkeypatch.setattr(cli.Confirm, 'ask', classmethod(lambda cls, *a, **kw: False))
        backend = FakeBackend({
            ('DELETE', '/subjects/s1'): (409, {'success': False, 'error': {
                'code': 'DEPENDENCY_CONFLICT', 'message': 'Cannot delete subject: it still has 1 faculty',
                'details': {'dependencies': {'faculty': 1}},
            }}),
        })

        code = await cli.dispatch(config, parse('subjects', 'delete', 's1'),
                                  transport=httpx.MockTransport(backend))

        assert code == 1
        assert backend.paths('PATCH') == []

    @pytest.mark.asyncio
    async def test_reject_posts_leave_status_event(self, config):
        config.role, config.user_id = 'faculty', 'fac-1'
        backend = FakeBackend({
            ('GET', '/leaves/faculty'): (200, [{'id': 'L1', 'status': 'pending', 'applicant_id': 'stu-1'}]),
            ('PATCH', '/leaves/L1/reject'): (200, {'id': 'L1', 'status': 'rejected'}),
            ('POST', '/events'): (202, {'success': True}),
        })

        code = await cli.dispatch(
            config, parse('leaves', 'reject', 'L1', '--remarks', 'Internal exams that week'),
            transport=httpx.MockTransport(backend),
        )

        assert code == 0
        event = next(r for r in backend.requests if r.url.path.endswith('/events'))
        assert json.loads(event.content)['payload']['status'] == 'rejected'
        assert event.headers['X-User-Role'] == 'faculty'

    @pytest.mark.asyncio
    async def test_student_cannot_post_notice(self, config):
        config.role, config.user_id = 'student', 'stu-1'
        backend = FakeBackend({})

        code = await cli.dispatch(config, parse('notices', 'post', '--title', 'Hi', '--content', 'Hello'),
                                  transport=httpx.MockTransport(backend))

        assert code == 1
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_unreachable_server(self, config):
        def unreachable(request):
            raise httpx.ConnectError('Connection refused', request=request)

        code = await cli.dispatch(config, parse('faculty', 'list'), transport=httpx.MockTransport(unreachable))

        assert code == 1

    @pytest.mark.asyncio
    async def test_gateway_page_reported_not_raised(self, config):
        def gateway(request):
            return httpx.Response(200, text='<html>gateway</html>')

        code = await cli.dispatch(config, parse('departments', 'list'), transport=httpx.MockTransport(gateway))

        assert code == 1

    @pytest.mark.asyncio
    async def test_mark_notice_read(self, config):
        config.role, config.user_id = 'student', 'stu-1'
        backend = FakeBackend({
            ('PATCH', '/notices/n1/read'): (200, {'notice_id': 'n1', 'user_id': 'stu-1',
                                                  'read_at': '2026-03-10T09:00:00'}),
            ('GET', '/notices/feed'): (200, {'items': [], 'total': 0, 'unread': 0, 'page': 1, 'limit': 20}),
        })

        code = await cli.dispatch(config, parse('notices', 'read', 'n1'), transport=httpx.MockTransport(backend))

        assert code == 0
        assert backend.paths('PATCH') == ['/api/v1/notices/n1/read']
