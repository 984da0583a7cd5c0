"""
Unit tests for the notice board endpoints and audience visibility
"""
import pytest
from httpx import AsyncClient
from faker import Faker

fake = Faker()

API = '/api/v1'


async def post_notice(client: AsyncClient, headers: dict, title: str, **fields):
    payload = {'title': title, 'content': fake.paragraph(), **fields}
    response = await client.post(f'{API}/notices', json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestNoticeCreation:
    """POST /notices"""

    @pytest.mark.asyncio
    async def test_admin_targets_audience(self, client: AsyncClient, admin_headers: dict):
        notice = await post_notice(client, admin_headers, 'Staff meeting', target_audience='faculty')

        assert notice['target_audience'] == 'faculty'
        assert notice['created_by_role'] == 'admin'
        assert notice['is_active'] is True

    @pytest.mark.asyncio
    async def test_faculty_notice_always_targets_students(self, client: AsyncClient, faculty_headers: dict):
        notice = await post_notice(client, faculty_headers, 'Lab moved to block C', target_audience='all')

        assert notice['target_audience'] == 'students'
        assert notice['created_by_role'] == 'faculty'
        assert notice['created_by_id'] == faculty_headers['X-User-Id']

    @pytest.mark.asyncio
    async def test_student_cannot_post(self, client: AsyncClient, student_headers: dict):
        response = await client.post(
            f'{API}/notices', json={'title': 'Party', 'content': 'Tonight'}, headers=student_headers
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_blank_title(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            f'{API}/notices', json={'title': '   ', 'content': 'Body'}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()['error']['message'] == 'Title is required'


class TestNoticeFeed:
    """GET /notices/feed visibility rules"""

    @pytest.fixture
    async def board(self, client: AsyncClient, admin_headers: dict, faculty_headers: dict) -> dict:
        return {
            'everyone': await post_notice(client, admin_headers, 'Holiday on Friday', target_audience='all'),
            'staff': await post_notice(client, admin_headers, 'Appraisal forms', target_audience='faculty'),
            'pupils': await post_notice(client, admin_headers, 'Exam timetable', target_audience='students',
                                        is_important=True),
            'from_faculty': await post_notice(client, faculty_headers, 'Assignment 3 deadline'),
        }

    @staticmethod
    async def feed_titles(client: AsyncClient, headers: dict) -> set:
        response = await client.get(f'{API}/notices/feed', headers=headers)
        assert response.status_code == 200
        return {item['title'] for item in response.json()['items']}

    @pytest.mark.asyncio
    async def test_student_feed(self, client: AsyncClient, board: dict, student_headers: dict):
        titles = await self.feed_titles(client, student_headers)

        assert titles == {'Holiday on Friday', 'Exam timetable', 'Assignment 3 deadline'}

    @pytest.mark.asyncio
    async def test_author_sees_own_faculty_notice(self, client: AsyncClient, board: dict,
                                                  faculty_headers: dict):
        titles = await self.feed_titles(client, faculty_headers)

        assert titles == {'Holiday on Friday', 'Appraisal forms', 'Assignment 3 deadline'}

    @pytest.mark.asyncio
    async def test_other_faculty_feed(self, client: AsyncClient, board: dict):
        headers = {'X-User-Id': fake.uuid4(), 'X-User-Role': 'faculty'}

        titles = await self.feed_titles(client, headers)

        assert titles == {'Holiday on Friday', 'Appraisal forms'}

    @pytest.mark.asyncio
    async def test_admin_feed_sees_everything(self, client: AsyncClient, board: dict, admin_headers: dict):
        titles = await self.feed_titles(client, admin_headers)

        assert len(titles) == 4

    @pytest.mark.asyncio
    async def test_important_first(self, client: AsyncClient, board: dict, student_headers: dict):
        response = await client.get(f'{API}/notices/feed', headers=student_headers)

        assert response.json()['items'][0]['title'] == 'Exam timetable'

    @pytest.mark.asyncio
    async def test_expired_and_inactive_hidden(self, client: AsyncClient, admin_headers: dict,
                                               student_headers: dict):
        await post_notice(client, admin_headers, 'Old circular', expires_at='2020-01-01T00:00:00')
        archived = await post_notice(client, admin_headers, 'Archived circular')
        await client.put(f'{API}/notices/{archived["id"]}', json={'is_active': False}, headers=admin_headers)

        assert await self.feed_titles(client, student_headers) == set()

        response = await client.get(f'{API}/notices', headers=admin_headers)
        assert response.json()['total'] == 2


class TestNoticeManagement:
    """Admin listing, update and delete"""

    @pytest.mark.asyncio
    async def test_admin_list_paginates(self, client: AsyncClient, admin_headers: dict):
        for index in range(5):
            await post_notice(client, admin_headers, f'Circular {index}')

        response = await client.get(f'{API}/notices', params={'page': 2, 'limit': 2}, headers=admin_headers)

        data = response.json()
        assert data['total'] == 5
        assert data['page'] == 2
        assert data['limit'] == 2
        assert len(data['items']) == 2

    @pytest.mark.asyncio
    async def test_admin_list_search(self, client: AsyncClient, admin_headers: dict):
        await post_notice(client, admin_headers, 'Sports day schedule')
        await post_notice(client, admin_headers, 'Library timings')

        response = await client.get(f'{API}/notices', params={'search': 'SPORTS'}, headers=admin_headers)

        assert [item['title'] for item in response.json()['items']] == ['Sports day schedule']

    @pytest.mark.asyncio
    async def test_faculty_cannot_edit_admin_notice(self, client: AsyncClient, admin_headers: dict,
                                                    faculty_headers: dict):
        notice = await post_notice(client, admin_headers, 'Fee deadline')

        response = await client.put(
            f'{API}/notices/{notice["id"]}', json={'title': 'Changed'}, headers=faculty_headers
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_faculty_edits_own_notice_audience_fixed(self, client: AsyncClient, faculty_headers: dict):
        notice = await post_notice(client, faculty_headers, 'Quiz on Monday')

        response = await client.put(
            f'{API}/notices/{notice["id"]}',
            json={'title': 'Quiz on Tuesday', 'target_audience': 'faculty'},
            headers=faculty_headers,
        )

        assert response.status_code == 200
        assert response.json()['title'] == 'Quiz on Tuesday'
        assert response.json()['target_audience'] == 'students'

    @pytest.mark.asyncio
    async def test_delete_notice(self, client: AsyncClient, admin_headers: dict):
        notice = await post_notice(client, admin_headers, 'Temporary')

        response = await client.delete(f'{API}/notices/{notice["id"]}', headers=admin_headers)
        assert response.json() == {'success': True, 'message': 'Notice deleted'}

        response = await client.get(f'{API}/notices/{notice["id"]}')
        assert response.status_code == 404


class TestNoticeReads:
    """PATCH /notices/{id}/read and the unread flags of the feed"""

    @pytest.mark.asyncio
    async def test_mark_read_flags_feed_item(self, client: AsyncClient, admin_headers: dict,
                                             student_headers: dict):
        holiday = await post_notice(client, admin_headers, 'Holiday on Friday')
        await post_notice(client, admin_headers, 'Exam timetable')

        response = await client.patch(f'{API}/notices/{holiday["id"]}/read', headers=student_headers)
        assert response.status_code == 200
        assert response.json()['notice_id'] == holiday['id']
        assert response.json()['user_id'] == student_headers['X-User-Id']

        response = await client.get(f'{API}/notices/feed', headers=student_headers)
        data = response.json()
        assert {item['title']: item['is_read'] for item in data['items']} == {
            'Holiday on Friday': True, 'Exam timetable': False,
        }
        assert data['unread'] == 1

    @pytest.mark.asyncio
    async def test_mark_read_is_idempotent(self, client: AsyncClient, admin_headers: dict,
                                           student_headers: dict):
        notice = await post_notice(client, admin_headers, 'Library hours')

        first = await client.patch(f'{API}/notices/{notice["id"]}/read', headers=student_headers)
        second = await client.patch(f'{API}/notices/{notice["id"]}/read', headers=student_headers)

        assert second.status_code == 200
        assert second.json()['read_at'] == first.json()['read_at']

    @pytest.mark.asyncio
    async def test_reads_are_per_user(self, client: AsyncClient, admin_headers: dict,
                                      student_headers: dict):
        notice = await post_notice(client, admin_headers, 'Sports day')
        await client.patch(f'{API}/notices/{notice["id"]}/read', headers=student_headers)

        other = {'X-User-Id': fake.uuid4(), 'X-User-Role': 'student'}
        response = await client.get(f'{API}/notices/feed', headers=other)

        assert response.json()['items'][0]['is_read'] is False
        assert response.json()['unread'] == 1

    @pytest.mark.asyncio
    async def test_mark_read_requires_user_id(self, client: AsyncClient, admin_headers: dict):
        notice = await post_notice(client, admin_headers, 'Fee reminder')

        response = await client.patch(
            f'{API}/notices/{notice["id"]}/read', headers={'X-User-Role': 'student'}
        )

        assert response.status_code == 400
        assert response.json()['error']['details']['field'] == 'X-User-Id'

    @pytest.mark.asyncio
    async def test_mark_missing_notice(self, client: AsyncClient, student_headers: dict):
        response = await client.patch(f'{API}/notices/{fake.uuid4()}/read', headers=student_headers)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_removes_reads(self, client: AsyncClient, admin_headers: dict,
                                        student_headers: dict):
        notice = await post_notice(client, admin_headers, 'Temporary')
        await client.patch(f'{API}/notices/{notice["id"]}/read', headers=student_headers)

        response = await client.delete(f'{API}/notices/{notice["id"]}', headers=admin_headers)

        assert response.status_code == 200
        response = await client.get(f'{API}/notices/feed', headers=student_headers)
        assert response.json()['unread'] == 0
