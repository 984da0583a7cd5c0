"""
Unit tests for notification events and health endpoints
"""
import pytest
from httpx import AsyncClient

from app.services.event_bus import event_bus

API = '/api/v1'


class TestEvents:
    """POST /events and GET /events"""

    @pytest.mark.asyncio
    async def test_publish_event(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            f'{API}/events',
            json={'topic': 'post-notice', 'payload': {'title': 'Holiday'}},
            headers=admin_headers,
        )

        assert response.status_code == 202
        event = response.json()['event']
        assert event['topic'] == 'post-notice'
        assert event['payload'] == {'title': 'Holiday'}
        assert event['actor_role'] == 'admin'
        assert event['actor_id'] == admin_headers['X-User-Id']

    @pytest.mark.asyncio
    async def test_recent_events_by_topic(self, client: AsyncClient, admin_headers: dict):
        await client.post(f'{API}/events', json={'topic': 'post-notice'}, headers=admin_headers)
        await client.post(f'{API}/events', json={'topic': 'leave-status'}, headers=admin_headers)

        response = await client.get(f'{API}/events', params={'topic': 'leave-status'})

        assert [item['topic'] for item in response.json()] == ['leave-status']

    @pytest.mark.asyncio
    async def test_subscribers_receive_events(self, client: AsyncClient, admin_headers: dict):
        queue = event_bus.subscribe()

        await client.post(
            f'{API}/events', json={'topic': 'leave-status', 'payload': {'status': 'approved'}},
            headers=admin_headers,
        )

        event = queue.get_nowait()
        assert event.topic == 'leave-status'
        assert event.payload == {'status': 'approved'}
        event_bus.unsubscribe(queue)

    @pytest.mark.asyncio
    async def test_empty_topic_rejected(self, client: AsyncClient):
        response = await client.post(f'{API}/events', json={'topic': ''})

        assert response.status_code == 422


class TestHealth:
    """Health endpoints"""

    @pytest.mark.asyncio
    async def test_root_health(self, client: AsyncClient):
        response = await client.get('/health')

        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'

    @pytest.mark.asyncio
    async def test_api_health(self, client: AsyncClient):
        response = await client.get(f'{API}/health')

        assert response.json()['service'] == 'campusdesk-backend'

    @pytest.mark.asyncio
    async def test_liveness(self, client: AsyncClient):
        response = await client.get(f'{API}/health/live')

        assert response.json()['status'] == 'alive'

    @pytest.mark.asyncio
    async def test_readiness(self, client: AsyncClient):
        response = await client.get(f'{API}/health/ready')

        assert response.status_code == 200
        data = response.json()
        assert data['status'] == 'ready'
        assert data['checks']['database']['tables_ready'] is True

    @pytest.mark.asyncio
    async def test_request_id_header(self, client: AsyncClient):
        response = await client.get(f'{API}/departments', headers={'X-Request-ID': 'req-123'})

        assert response.headers['X-Request-ID'] == 'req-123'
        assert 'X-Response-Time' in response.headers
