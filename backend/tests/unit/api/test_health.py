"""
Unit Tests for Health Check Endpoints
"""
import pytest
from httpx import AsyncClient


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get('/api/health')

        assert response.status_code == 200
        data = response.json()
        assert data['success'] is True
        assert data['status'] == 'OK'
        assert data['database'] == 'connected'
        assert data['environment'] == 'testing'

    @pytest.mark.asyncio
    async def test_liveness(self, client: AsyncClient):
        response = await client.get('/api/health/live')

        assert response.status_code == 200
        assert response.json()['status'] == 'alive'

    @pytest.mark.asyncio
    async def test_readiness(self, client: AsyncClient):
        response = await client.get('/api/health/ready')

        assert response.status_code == 200
        data = response.json()
        assert data['status'] == 'ready'
        assert data['checks']['database']['status'] == 'connected'

    @pytest.mark.asyncio
    async def test_root(self, client: AsyncClient):
        response = await client.get('/')

        assert response.status_code == 200
        assert response.json()['message'] == 'Welcome to EcoWasteConnect'

    @pytest.mark.asyncio
    async def test_unknown_route_uses_envelope(self, client: AsyncClient):
        response = await client.get('/api/nowhere')

        assert response.status_code == 404
        assert response.json()['success'] is False


class TestMiddleware:
    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client: AsyncClient):
        response = await client.get('/api/health/live', headers={'X-Request-ID': 'abc123'})

        assert response.headers['X-Request-ID'] == 'abc123'
        assert response.headers['X-Response-Time'].endswith('ms')
        assert response.headers['X-Content-Type-Options'] == 'nosniff'

    @pytest.mark.asyncio
    async def test_oversized_body_rejected(self, client: AsyncClient):
        response = await client.post('/api/auth/login', content=b'x',
                                     headers={'Content-Length': str(11 * 1024 * 1024)})

        assert response.status_code == 413
        assert response.json()['code'] == 'PAYLOAD_TOO_LARGE'
